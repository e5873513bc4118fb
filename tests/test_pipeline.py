"""Tests for the recorder pipeline with fake capture, OCR and client."""

from datetime import datetime, timezone

import pytest

from config import Config
from recorder.capture import CapturedFrame
from recorder.main import CapturePipeline


class FakeCapture:
    def __init__(self):
        self.callback = None
        self.stopped = 0

    def start(self, callback):
        self.callback = callback

    def stop(self):
        self.stopped += 1


class FakeRecognizer:
    def __init__(self, texts):
        self._texts = list(texts)
        self.calls = 0
        self.on_recognize = None

    def recognize(self, image):
        self.calls += 1
        if self.on_recognize is not None:
            self.on_recognize()
        return self._texts.pop(0)


class FakeClient:
    def __init__(self):
        self.appended = []
        self.cleared = 0

    def append_record(self, content, timestamp, description=None):
        self.appended.append((content, timestamp, description))
        return {"id": len(self.appended), "content": content}

    def clear_records(self):
        self.cleared += 1
        removed, self.appended = len(self.appended), []
        return removed


@pytest.fixture
def config():
    cfg = Config()
    cfg.describe_frames = False
    cfg.auto_clear_on_stop = False
    return cfg


def _frame(image):
    return CapturedFrame(image=image, captured_at=datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc))


def _pipeline(config, texts):
    capture, recognizer, client = FakeCapture(), FakeRecognizer(texts), FakeClient()
    pipeline = CapturePipeline(config, capture=capture, recognizer=recognizer, client=client)
    return pipeline, capture, recognizer, client


def test_no_session_ignores_frames(config, solid_frame):
    pipeline, _, recognizer, _ = _pipeline(config, ["hello"])
    assert pipeline.process_frame(_frame(solid_frame(0))) is None
    assert recognizer.calls == 0


def test_unchanged_frame_skips_recognition(config, solid_frame):
    pipeline, capture, recognizer, client = _pipeline(config, ["hello", "hello again"])
    pipeline.start()
    assert capture.callback == pipeline.process_frame

    assert pipeline.process_frame(_frame(solid_frame(0)))["content"] == "hello"
    assert pipeline.process_frame(_frame(solid_frame(0))) is None
    assert recognizer.calls == 1
    assert [c for c, _, _ in client.appended] == ["hello"]


def test_repeated_text_is_stored_once(config, solid_frame):
    pipeline, _, recognizer, client = _pipeline(config, ["  hello\n", "hello", "", "world"])
    pipeline.start()
    for level in (0, 255, 0, 255):
        pipeline.process_frame(_frame(solid_frame(level)))
    assert recognizer.calls == 4
    assert [c for c, _, _ in client.appended] == ["hello", "world"]


def test_recognition_failure_is_skipped(config, solid_frame):
    pipeline, _, recognizer, client = _pipeline(config, [])
    pipeline.start()
    # pop from an empty list raises inside recognize()
    assert pipeline.process_frame(_frame(solid_frame(0))) is None
    assert client.appended == []


def test_stop_during_recognition_discards_result(config, solid_frame):
    pipeline, _, recognizer, client = _pipeline(config, ["hello"])
    pipeline.start()
    recognizer.on_recognize = pipeline.stop
    assert pipeline.process_frame(_frame(solid_frame(0))) is None
    assert client.appended == []
    assert pipeline.session is None


def test_restart_opens_fresh_session(config, solid_frame):
    pipeline, capture, _, client = _pipeline(config, ["hello", "hello"])
    pipeline.start()
    first = pipeline.session
    pipeline.process_frame(_frame(solid_frame(0)))
    pipeline.stop()
    assert capture.stopped == 1
    assert not first.active

    pipeline.start()
    assert pipeline.session is not first
    # Same frame and same text are accepted again in the new session
    pipeline.process_frame(_frame(solid_frame(0)))
    assert [c for c, _, _ in client.appended] == ["hello", "hello"]


def test_clear_resets_last_accepted_text(config, solid_frame):
    pipeline, _, _, client = _pipeline(config, ["hello", "hello"])
    pipeline.start()
    pipeline.process_frame(_frame(solid_frame(0)))
    assert pipeline.clear_records() == 1
    pipeline.process_frame(_frame(solid_frame(255)))
    assert [c for c, _, _ in client.appended] == ["hello"]
    assert client.cleared == 1


def test_auto_clear_on_stop(config, solid_frame):
    config.auto_clear_on_stop = True
    pipeline, _, _, client = _pipeline(config, ["hello"])
    pipeline.start()
    pipeline.process_frame(_frame(solid_frame(0)))
    pipeline.stop()
    assert client.cleared == 1


def test_description_is_attached(config, solid_frame):
    class Describer:
        def describe_screen(self, image):
            return "A text editor"

    capture, recognizer, client = FakeCapture(), FakeRecognizer(["hello"]), FakeClient()
    pipeline = CapturePipeline(
        config, capture=capture, recognizer=recognizer, client=client, describer=Describer(),
    )
    pipeline.start()
    pipeline.process_frame(_frame(solid_frame(0)))
    assert client.appended[0][2] == "A text editor"


def test_failed_upload_still_sets_dedup_baseline(config, solid_frame):
    class FailingOnceClient(FakeClient):
        def append_record(self, content, timestamp, description=None):
            if not self.appended and not getattr(self, "failed", False):
                self.failed = True
                raise ConnectionError("server unreachable")
            return super().append_record(content, timestamp, description)

    capture, recognizer, client = FakeCapture(), FakeRecognizer(["hello", "hello", "world"]), FailingOnceClient()
    pipeline = CapturePipeline(config, capture=capture, recognizer=recognizer, client=client)
    pipeline.start()

    with pytest.raises(ConnectionError):
        pipeline.process_frame(_frame(solid_frame(0)))
    assert pipeline.process_frame(_frame(solid_frame(255))) is None
    pipeline.process_frame(_frame(solid_frame(0)))
    assert [c for c, _, _ in client.appended] == ["world"]
