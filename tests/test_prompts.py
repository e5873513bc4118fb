"""Tests for prompt log serialization and templates."""

from datetime import datetime, timedelta, timezone

from shared.prompts import SANITY_CHECK, TEMPLATES, build_log, format_timestamp, predictor_prompt
from shared.records import CaptureRecord


def test_timestamp_format_is_utc_millis():
    ts = datetime(2025, 3, 4, 5, 6, 7, 123456, tzinfo=timezone.utc)
    assert format_timestamp(ts) == "2025-03-04T05:06:07.123Z"


def test_timestamp_converted_to_utc():
    ts = datetime(2025, 3, 4, 7, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(ts) == "2025-03-04T05:00:00.000Z"


def test_naive_timestamp_treated_as_utc():
    assert format_timestamp(datetime(2025, 1, 1)) == "2025-01-01T00:00:00.000Z"


def test_log_lines_flatten_newlines():
    records = [
        CaptureRecord(timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc), content="line one\nline two"),
        CaptureRecord(timestamp=datetime(2025, 1, 1, 0, 0, 5, tzinfo=timezone.utc), content="next"),
    ]
    assert build_log(records) == (
        "[2025-01-01T00:00:00.000Z] line one line two\n"
        "[2025-01-01T00:00:05.000Z] next"
    )


def test_empty_log():
    assert build_log([]) == ""


def test_templates_embed_log():
    log = "[2025-01-01T00:00:00.000Z] hello"
    for template in TEMPLATES.values():
        assert template(log).endswith(f"OCR Log:\n{log}")
    assert "write" in predictor_prompt(log)


def test_sanity_check_prompt():
    assert "ACK" in SANITY_CHECK
