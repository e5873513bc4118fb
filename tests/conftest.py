"""
Shared pytest fixtures for the Screenlog test suite.

Builds in-memory capture records and synthetic frames so tests run without
a screen, Tesseract, a HuggingFace model download, or network access.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from shared.records import CaptureRecord  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


@pytest.fixture
def make_record():
    """Factory: make_record(seconds, content=..., embedding=[...])."""

    def _make(seconds, content=None, embedding=None, description=None, record_id=None):
        return CaptureRecord(
            timestamp=at(seconds),
            content=content if content is not None else f"text at {seconds}s",
            description=description,
            embedding=None if embedding is None else np.asarray(embedding, dtype=np.float64),
            id=record_id,
        )

    return _make


@pytest.fixture
def solid_frame():
    """Factory: solid_frame(gray_level) → 64x64 RGB image of one gray level."""

    def _make(level, size=(64, 64)):
        return Image.new("RGB", size, (level, level, level))

    return _make
