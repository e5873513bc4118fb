# =============================================================================
# Screenlog - Text Recognition
# =============================================================================
# Thin wrapper over Tesseract (via pytesseract).  Recognition is the
# expensive step the change detector exists to avoid, so it only ever sees
# frames that passed change detection.
# =============================================================================

import logging
import time

import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)


class TextRecognizer:
    """
    Full-frame OCR.

    Args:
        language:      Tesseract language code(s), e.g. "eng" or "eng+deu".
        tesseract_cmd: Path to the tesseract binary; empty uses PATH.
    """

    def __init__(self, language: str = "eng", tesseract_cmd: str = ""):
        self._language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: Image.Image) -> str:
        """Return recognized lines joined by newlines (may be empty)."""
        start = time.time()
        raw = pytesseract.image_to_string(image, lang=self._language)
        lines = [line.strip() for line in raw.splitlines() if line.strip()]
        logger.debug("OCR duration: %.3fs (%d lines)", time.time() - start, len(lines))
        return "\n".join(lines)
