"""Tests for recognized-text deduplication."""

from recorder.dedup import TextDeduplicator


def test_same_text_twice_forwards_once():
    dedup = TextDeduplicator()
    forwarded = [t for t in (dedup.accept("hello"), dedup.accept("hello")) if t is not None]
    assert forwarded == ["hello"]


def test_comparison_is_on_trimmed_text():
    dedup = TextDeduplicator()
    assert dedup.accept("  hello world \n") == "hello world"
    assert dedup.accept("hello world") is None


def test_blank_text_discarded():
    dedup = TextDeduplicator()
    assert dedup.accept("") is None
    assert dedup.accept(" \n\t ") is None
    assert dedup.accept("hello") == "hello"


def test_only_immediate_repeat_is_suppressed():
    dedup = TextDeduplicator()
    assert dedup.accept("a") == "a"
    assert dedup.accept("b") == "b"
    assert dedup.accept("a") == "a"


def test_blank_text_does_not_move_baseline():
    dedup = TextDeduplicator()
    dedup.accept("a")
    dedup.accept("   ")
    assert dedup.accept("a") is None


def test_reset_allows_repeat():
    dedup = TextDeduplicator()
    dedup.accept("a")
    dedup.reset()
    assert dedup.accept("a") == "a"
