# =============================================================================
# Screenlog - Screen Capture Module
# =============================================================================
# Provides the ScreenCapture class for periodic screenshot capture using the
# mss library. Captures are delivered via a callback pattern, one frame at a
# time on a single background thread, decoupling capture timing from
# downstream processing.
# =============================================================================

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import mss
from PIL import Image

from recorder.change import FrameMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapturedFrame:
    """
    One frame delivered by a frame source.

    Attributes:
        image:       The screenshot as a PIL RGB Image.
        captured_at: UTC capture time.
        metadata:    Change metadata, when the source reports it.  mss does
                     not, so ScreenCapture always leaves this None.
    """

    image: Image.Image
    captured_at: datetime
    metadata: Optional[FrameMetadata] = None


class ScreenCapture:
    """
    Periodic screen capture using the mss library.

    Captures screenshots of a specified monitor at a configurable interval
    and delivers each frame to a callback function in a background thread.

    Args:
        monitor_index: Index of the monitor to capture (1 = primary).
        capture_interval: Seconds between consecutive captures.
    """

    def __init__(self, monitor_index: int = 1, capture_interval: float = 1.0):
        self._monitor_index = monitor_index
        self._capture_interval = capture_interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """True while a loop is running that has not been asked to stop."""
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def capture_frame(self) -> CapturedFrame:
        """
        Capture a single screenshot of the configured monitor.

        Uses mss to grab raw pixel data and converts it to a PIL RGB Image.

        Returns:
            CapturedFrame: The screenshot with its capture time.
        """
        with mss.mss() as sct:
            # mss monitor list: index 0 = all monitors combined, 1+ = individual
            monitor = sct.monitors[self._monitor_index]
            raw = sct.grab(monitor)
            captured_at = datetime.now(timezone.utc)

            # mss returns BGRA; convert to PIL Image then to RGB
            image = Image.frombytes("RGB", raw.size, raw.bgra, "raw", "BGRX")

        logger.debug(
            "Captured frame: %dx%d from monitor %d",
            image.width,
            image.height,
            self._monitor_index,
        )
        return CapturedFrame(image=image, captured_at=captured_at)

    def start(self, callback: Callable[[CapturedFrame], None]) -> None:
        """
        Start periodic screen capture in a background daemon thread.

        Each captured frame is passed to the provided callback function.
        The callback runs on the capture thread, so frames are handled
        strictly one at a time and in capture order.

        Every run gets its own stop event.  A previous loop still finishing
        an in-flight frame keeps its event set and exits after that frame.

        Args:
            callback: Function that receives a CapturedFrame for each frame.
        """
        if self.is_running:
            logger.warning("Capture thread is already running.")
            return

        stop_event = threading.Event()

        def _capture_loop():
            """Internal loop: capture → callback → sleep → repeat."""
            logger.info(
                "Capture loop started (interval=%.2fs, monitor=%d)",
                self._capture_interval,
                self._monitor_index,
            )
            while not stop_event.is_set():
                try:
                    frame = self.capture_frame()
                    callback(frame)
                except Exception:
                    logger.exception("Error during frame capture/processing")

                stop_event.wait(timeout=self._capture_interval)

            logger.info("Capture loop stopped.")

        self._stop_event = stop_event
        self._thread = threading.Thread(target=_capture_loop, name="screen-capture", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """
        Signal the capture loop to stop and wait for the thread to finish.

        If the thread is still inside a callback after ``timeout`` seconds it
        is left to finish that frame on its own; it will not deliver another.
        """
        self._stop_event.set()
        if self._thread is None:
            return
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Capture thread still finishing a frame after %.1fs.", timeout)
        else:
            logger.info("Capture thread joined.")
