# =============================================================================
# Screenlog - Frame Change Detection
# =============================================================================
# Decides whether a freshly captured frame is worth sending to text
# recognition.  Two mutually exclusive paths per frame:
#
#   1. Metadata path: the frame source reported a status and dirty
#      rectangles.  Idle frames are skipped; otherwise the changed area as a
#      fraction of the screen is compared with ``min_change_ratio``.
#   2. Signature path: no usable metadata.  The frame is downscaled to a
#      small grayscale signature and compared with the previous signature.
#      The baseline advances on every observed frame, skipped or not.
# =============================================================================

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class FrameStatus(enum.Enum):
    IDLE = "idle"
    UPDATED = "updated"


@dataclass(frozen=True)
class DirtyRect:
    """A changed screen region in screen coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class FrameMetadata:
    """
    Change metadata supplied by the frame source alongside a frame.

    Attributes:
        status:      IDLE when nothing changed since the last delivered frame.
        dirty_rects: Changed regions, or None when the source did not report
                     any (an empty list means "reported, nothing changed").
        screen_area: Screen pixel area used to normalise the dirty area.
    """

    status: FrameStatus = FrameStatus.UPDATED
    dirty_rects: Optional[List[DirtyRect]] = None
    screen_area: float = 0.0


@dataclass(frozen=True)
class FrameDecision:
    """
    Outcome of evaluating one frame.

    Attributes:
        process:        True if the frame should go on to text recognition.
        observed_ratio: Dirty-area ratio when the metadata path was used.
        pixel_delta:    Normalised signature difference when the signature
                        path compared against a previous frame.
    """

    process: bool
    observed_ratio: Optional[float] = None
    pixel_delta: Optional[float] = None


def make_signature(frame: Image.Image, size: int = 16) -> np.ndarray:
    """
    Downscale a frame to a ``size x size`` single-channel intensity buffer.

    Returns:
        uint8 numpy array of shape (size, size).
    """
    small = frame.convert("L").resize((size, size), Image.BILINEAR)
    return np.asarray(small, dtype=np.uint8)


def signature_delta(previous: np.ndarray, current: np.ndarray) -> float:
    """Sum of absolute differences normalised to [0, 1] by 255 * N^2."""
    diff = np.abs(previous.astype(np.int32) - current.astype(np.int32))
    return float(diff.sum()) / (255.0 * current.size)


class FrameChangeDetector:
    """
    Per-session change filter in front of text recognition.

    Holds the last observed frame signature.  Not thread-safe: callers
    evaluate one frame at a time, in delivery order.

    Args:
        min_change_ratio: Minimum dirty ratio / signature delta to process.
        signature_size:   Side length of the square signature.
    """

    def __init__(self, min_change_ratio: float = 0.02, signature_size: int = 16):
        self._min_change_ratio = min_change_ratio
        self._signature_size = signature_size
        self._last_signature: Optional[np.ndarray] = None

    def reset(self) -> None:
        """Forget the stored signature (session start / stop)."""
        self._last_signature = None

    def evaluate(
        self,
        frame: Image.Image,
        metadata: Optional[FrameMetadata] = None,
    ) -> FrameDecision:
        """
        Decide whether ``frame`` should proceed to text recognition.

        Args:
            frame:    The captured frame.
            metadata: Change metadata from the frame source, if any.

        Returns:
            FrameDecision with the verdict and the observed ratio or delta.
        """
        if metadata is not None:
            if metadata.status is FrameStatus.IDLE:
                logger.debug("Skipping idle frame")
                return FrameDecision(process=False)

            if metadata.dirty_rects is not None and metadata.screen_area > 0:
                changed = sum(rect.area for rect in metadata.dirty_rects)
                ratio = changed / metadata.screen_area
                logger.debug(
                    "Dirty ratio (metadata): %.4f with %d rects",
                    ratio, len(metadata.dirty_rects),
                )
                return FrameDecision(process=ratio >= self._min_change_ratio, observed_ratio=ratio)

        return self._evaluate_signature(frame)

    def _evaluate_signature(self, frame: Image.Image) -> FrameDecision:
        signature = make_signature(frame, self._signature_size)
        previous = self._last_signature
        self._last_signature = signature

        if previous is None or previous.shape != signature.shape:
            logger.debug("No previous signature; processing frame")
            return FrameDecision(process=True)

        delta = signature_delta(previous, signature)
        if delta < self._min_change_ratio:
            logger.debug("Frame skipped (delta=%.4f < threshold=%.4f)", delta, self._min_change_ratio)
            return FrameDecision(process=False, pixel_delta=delta)

        logger.debug("Frame changed (delta=%.4f)", delta)
        return FrameDecision(process=True, pixel_delta=delta)
