# =============================================================================
# Screenlog - Prompt Library
# =============================================================================
# Serializes selected records into the chronological log consumed by prompt
# templates, and holds the templates themselves.  The log line format
#     [<ISO-8601 timestamp>] <content with newlines flattened to spaces>
# is relied on by existing templates and must not change.
# =============================================================================

from datetime import datetime, timezone
from typing import Iterable

from shared.records import CaptureRecord

SANITY_CHECK = "Reply with the word 'ACK' if you received this message."

DESCRIBE_SCREEN_PROMPT = (
    "Describe this computer screenshot in two or three sentences. Name the "
    "application in focus, what the user appears to be doing, and any visible "
    "document or page title. Only describe what is clearly visible."
)


def format_timestamp(ts: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    text = ts.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def format_record(record: CaptureRecord) -> str:
    content = record.content.replace("\n", " ")
    return f"[{format_timestamp(record.timestamp)}] {content}"


def build_log(records: Iterable[CaptureRecord]) -> str:
    """Serialize records one per line, in the order given."""
    return "\n".join(format_record(record) for record in records)


def summary_prompt(log: str) -> str:
    return (
        "You are an assistant that reviews chronological OCR logs taken from a "
        "desktop. Your job is to produce a concise summary of what the user was "
        "doing and highlight any actionable insights. Limit the response to a "
        "short paragraph and, if relevant, a bullet list of next steps. Use the "
        "provided timestamps to keep context, but do not repeat every line "
        "verbatim.\n\n"
        f"OCR Log:\n{log}"
    )


def predictor_prompt(log: str) -> str:
    return (
        "You are a writing assistant. The context below is OCR text captured "
        "from the user's screen. Work out what the user is doing and what they "
        "are about to write next, then return only that content, ready to copy "
        "and paste. No explanation, no analysis.\n\n"
        f"OCR Log:\n{log}"
    )


TEMPLATES = {
    "predict": predictor_prompt,
    "summary": summary_prompt,
}
