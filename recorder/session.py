# =============================================================================
# Screenlog - Capture Session State
# =============================================================================
# A CaptureSession is created when recording starts and discarded when it
# stops.  It owns the change detector's signature baseline and the
# deduplicator's last accepted text, so nothing leaks from one session into
# the next.  Frame evaluation is serialized by a lock; work still in flight
# when the session closes can finish, but its result is discarded.
# =============================================================================

import logging
import threading
import uuid
from typing import Optional

from PIL import Image

from recorder.change import FrameChangeDetector, FrameDecision, FrameMetadata
from recorder.dedup import TextDeduplicator

logger = logging.getLogger(__name__)


class CaptureSession:
    """
    State owned by one running capture session.

    Args:
        min_change_ratio: Threshold passed to the change detector.
        signature_size:   Signature side length for the change detector.
    """

    def __init__(self, min_change_ratio: float = 0.02, signature_size: int = 16):
        self.session_id = str(uuid.uuid4())
        self._detector = FrameChangeDetector(
            min_change_ratio=min_change_ratio,
            signature_size=signature_size,
        )
        self._deduplicator = TextDeduplicator()
        self._lock = threading.Lock()
        self._active = True
        logger.info("Capture session %s started", self.session_id)

    @property
    def active(self) -> bool:
        return self._active

    def evaluate_frame(
        self,
        frame: Image.Image,
        metadata: Optional[FrameMetadata] = None,
    ) -> FrameDecision:
        """Run the change detector for one frame; skips if the session is closed."""
        with self._lock:
            if not self._active:
                return FrameDecision(process=False)
            return self._detector.evaluate(frame, metadata)

    def accept_text(self, text: str) -> Optional[str]:
        """
        Pass recognized text through the deduplicator.

        Returns the trimmed text to store, or None if it was empty, a
        repeat, or the session closed while recognition was running.
        """
        with self._lock:
            if not self._active:
                logger.debug("Session %s closed; discarding recognized text", self.session_id)
                return None
            return self._deduplicator.accept(text)

    def reset_text(self) -> None:
        """Forget the last accepted text (after the record log is cleared)."""
        with self._lock:
            self._deduplicator.reset()

    def close(self) -> None:
        with self._lock:
            self._active = False
            self._detector.reset()
            self._deduplicator.reset()
        logger.info("Capture session %s stopped", self.session_id)
