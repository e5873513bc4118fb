# =============================================================================
# Screenlog - Recognized Text Deduplication
# =============================================================================
# Drops recognized text that is empty or identical to the text accepted for
# the immediately preceding capture.  Storage never deduplicates, so this is
# the only place consecutive repeats are suppressed.
# =============================================================================

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class TextDeduplicator:
    """Remembers the last accepted text of one capture session."""

    def __init__(self):
        self._last_accepted: Optional[str] = None

    def accept(self, text: str) -> Optional[str]:
        """
        Return the trimmed text if it should be stored, else None.

        Accepted text becomes the new comparison baseline.
        """
        trimmed = text.strip()
        if not trimmed:
            return None
        if trimmed == self._last_accepted:
            logger.debug("Duplicate text skipped (%d chars)", len(trimmed))
            return None
        self._last_accepted = trimmed
        return trimmed

    def reset(self) -> None:
        self._last_accepted = None
