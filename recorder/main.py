# =============================================================================
# Screenlog - Recorder Orchestrator
# =============================================================================
# Entry point for the recorder process.  Orchestrates screen capture, change
# detection, text recognition, deduplication and record upload.
#
# Per-frame flow:
#   1. Capture screenshot (single delivery thread, one frame at a time)
#   2. Skip frames that have not meaningfully changed (metadata or signature)
#   3. Recognize text on the frame
#   4. Drop empty text and text identical to the previous accepted capture
#   5. Optionally describe the screen, then append the record to the server
# =============================================================================

import argparse
import logging
import sys
import threading
from typing import Optional

from config import Config, get_config
from recorder.capture import CapturedFrame, ScreenCapture
from recorder.client import RecordClient
from recorder.ocr import TextRecognizer
from recorder.session import CaptureSession
from shared.generation import GenerationClient

logger = logging.getLogger(__name__)


class CapturePipeline:
    """
    Orchestrator that ties together screen capture, change detection, text
    recognition, deduplication and storage.

    A fresh CaptureSession is created on every start() and closed on every
    stop(), so change baselines and the last accepted text never carry over
    between sessions.

    Args:
        config:     The global Config instance with all tunable parameters.
        capture:    Frame source; defaults to an mss ScreenCapture.
        recognizer: Text recognizer; defaults to Tesseract.
        client:     Record client; defaults to one pointed at config.server_url.
        describer:  Optional generation client used to describe frames.
    """

    def __init__(
        self,
        config: Config,
        capture=None,
        recognizer=None,
        client=None,
        describer: Optional[GenerationClient] = None,
    ):
        self._config = config
        self._session: Optional[CaptureSession] = None

        logger.info(
            "Initializing screen capture (monitor=%d, interval=%.2fs)",
            config.capture_monitor,
            config.capture_interval_seconds,
        )
        self._capture = capture or ScreenCapture(
            monitor_index=config.capture_monitor,
            capture_interval=config.capture_interval_seconds,
        )
        self._recognizer = recognizer or TextRecognizer(
            language=config.ocr_language,
            tesseract_cmd=config.tesseract_cmd,
        )

        logger.info("Initializing record client → %s", config.server_url)
        self._client = client or RecordClient(server_url=config.server_url)

        if describer is None and config.describe_frames:
            describer = GenerationClient(
                api_url=config.generation_api_url,
                api_key=config.generation_api_key,
                model=config.generation_model,
                timeout=config.generation_timeout,
            )
        self._describer = describer

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    # -----------------------------------------------------------------
    # Frame processing
    # -----------------------------------------------------------------

    def process_frame(self, frame: CapturedFrame) -> Optional[dict]:
        """
        Process a single captured frame.

        Returns the stored record as reported by the server, or None if the
        frame was skipped at any stage.

        Args:
            frame: A CapturedFrame from the frame source.
        """
        session = self._session
        if session is None:
            return None

        decision = session.evaluate_frame(frame.image, frame.metadata)
        if not decision.process:
            return None

        try:
            text = self._recognizer.recognize(frame.image)
        except Exception:
            logger.exception("OCR failed")
            return None

        # Accepted text is the dedup baseline from here on, even if the upload
        # below fails and the capture loop logs the error.
        content = session.accept_text(text)
        if content is None:
            return None

        description = self._describe(frame)

        # A stop() during recognition or description discards the result
        if not session.active:
            logger.debug("Session closed during processing; dropping record")
            return None

        return self._client.append_record(
            content=content,
            timestamp=frame.captured_at,
            description=description,
        )

    def _describe(self, frame: CapturedFrame) -> Optional[str]:
        if self._describer is None:
            return None
        try:
            return self._describer.describe_screen(frame.image) or None
        except Exception as exc:
            logger.error("Image description failed: %s", exc)
            return None

    # -----------------------------------------------------------------
    # Session lifecycle
    # -----------------------------------------------------------------

    def start(self) -> None:
        """Open a fresh capture session and start the capture loop."""
        if self._session is not None:
            logger.warning("Capture session already running.")
            return
        self._session = CaptureSession(
            min_change_ratio=self._config.min_change_ratio,
            signature_size=self._config.signature_size,
        )
        self._capture.start(callback=self.process_frame)

    def stop(self) -> None:
        """Stop the capture loop and discard the session state."""
        session, self._session = self._session, None
        if session is None:
            return
        session.close()
        self._capture.stop()
        if self._config.auto_clear_on_stop:
            self.clear_records()
        logger.info("Recorder stopped.")

    def clear_records(self) -> int:
        """Clear the server's record log and forget the last accepted text."""
        removed = self._client.clear_records()
        if self._session is not None:
            self._session.reset_text()
        return removed

    def run(self) -> None:
        """
        Start the recorder.

        Waits for the server to be ready, then begins the capture loop.
        Blocks until interrupted with Ctrl+C.
        """
        print("\n" + "=" * 60)
        print("  Screenlog — Recorder")
        print("=" * 60)
        print(f"  Interval    : {self._config.capture_interval_seconds}s")
        print(f"  Monitor     : {self._config.capture_monitor}")
        print(f"  Change thr. : {self._config.min_change_ratio}")
        print(f"  Signature   : {self._config.signature_size}x{self._config.signature_size}")
        print(f"  OCR lang    : {self._config.ocr_language}")
        print(f"  Describe    : {self._describer is not None}")
        print(f"  Server      : {self._config.server_url}")
        print("=" * 60 + "\n")

        if not self._client.wait_for_server():
            logger.error("Server not available. Exiting.")
            sys.exit(1)

        logger.info("Starting capture loop — press Ctrl+C to stop.")
        self.start()

        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received. Shutting down...")
        finally:
            self.stop()


def main():
    """CLI entry point for the recorder."""
    parser = argparse.ArgumentParser(
        description="Screenlog — Recorder (capture, OCR, dedup, upload)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between screen captures (overrides config)",
    )
    parser.add_argument(
        "--monitor", type=int, default=None,
        help="Monitor index to capture (1 = primary)",
    )
    parser.add_argument(
        "--server-url", type=str, default=None,
        help="Server base URL (e.g., http://127.0.0.1:8000)",
    )
    parser.add_argument(
        "--describe", action="store_true",
        help="Describe each accepted frame with the generation endpoint",
    )
    parser.add_argument(
        "--clear-on-start", action="store_true",
        help="Clear the server's record log before recording",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = get_config()
    if args.interval is not None:
        config.capture_interval_seconds = args.interval
    if args.monitor is not None:
        config.capture_monitor = args.monitor
    if args.server_url is not None:
        config.server_url = args.server_url
    if args.describe:
        config.describe_frames = True

    pipeline = CapturePipeline(config)
    if args.clear_on_start:
        pipeline.clear_records()
    pipeline.run()


if __name__ == "__main__":
    main()
