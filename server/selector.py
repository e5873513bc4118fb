# =============================================================================
# Screenlog - Context Selection
# =============================================================================
# Picks a bounded, chronologically ordered subset of the record log to hand
# to a generation prompt.  The subset starts from "what just happened" (a
# trailing time window, or the last N records when the window is too sparse)
# and is expanded with older records whose embeddings are close to the
# centroid of the recent ones.
#
# Pure function over a snapshot: no state is kept between calls.
# =============================================================================

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Sequence

from shared.records import CaptureRecord
from shared.vectors import centroid, cosine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionConfig:
    """
    Tunables for select_context().

    Attributes:
        recent_window_seconds: Trailing window measured back from the latest record.
        min_recent:            Below this many in-window records, fall back to
                               the last ``max_recent_fallback`` records.
        max_recent_fallback:   Size of the fallback window.
        max_total:             Hard cap on the number of records returned.
        similarity_threshold:  Minimum cosine to the recent centroid for an
                               older record to be added.
    """

    recent_window_seconds: float = 60.0
    min_recent: int = 5
    max_recent_fallback: int = 20
    max_total: int = 40
    similarity_threshold: float = 0.75

    def __post_init__(self):
        if self.max_total < 1:
            raise ValueError("max_total must be at least 1")
        if self.max_recent_fallback < 1:
            raise ValueError("max_recent_fallback must be at least 1")

    @classmethod
    def from_config(cls, config) -> "SelectionConfig":
        return cls(
            recent_window_seconds=config.recent_window_seconds,
            min_recent=config.min_recent,
            max_recent_fallback=config.max_recent_fallback,
            max_total=config.max_total,
            similarity_threshold=config.similarity_threshold,
        )


def _by_time(records: Sequence[CaptureRecord]) -> List[CaptureRecord]:
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(records, key=lambda r: r.timestamp)


def recent_window(
    records: Sequence[CaptureRecord],
    config: SelectionConfig,
) -> List[CaptureRecord]:
    """
    The recency part of the selection, before similarity expansion.

    Args:
        records: Records sorted ascending by timestamp.
        config:  Selection tunables.
    """
    if not records:
        return []

    cutoff = records[-1].timestamp - timedelta(seconds=config.recent_window_seconds)
    recent = [r for r in records if r.timestamp >= cutoff]
    if len(recent) < config.min_recent:
        recent = list(records[-config.max_recent_fallback:])
    return recent


def select_context(
    records: Sequence[CaptureRecord],
    config: SelectionConfig = SelectionConfig(),
) -> List[CaptureRecord]:
    """
    Select a bounded context for a generation prompt.

    Steps:
        1. Sort by timestamp; the recent window is records within
           ``recent_window_seconds`` of the latest one, or the last
           ``max_recent_fallback`` records when fewer than ``min_recent``
           fall inside it.
        2. If any recent record has an embedding, score every other embedded
           record against the centroid of the recent embeddings and add them
           best-first while under ``max_total`` and at or above
           ``similarity_threshold``.  The candidates are sorted, so the first
           miss ends the walk.
        3. If still over ``max_total``, keep the most recent ones.

    Records without an embedding never contribute to the centroid and are
    never scored, but stay selected when they fall in the recent window.

    Args:
        records: Full record log snapshot, in any order.
        config:  Selection tunables.

    Returns:
        At most ``max_total`` records, ascending by timestamp.
    """
    ordered = _by_time(records)
    if not ordered:
        return []

    recent = recent_window(ordered, config)
    selected = list(recent)
    selected_ids = {id(r) for r in selected}

    recent_vectors = [r.embedding for r in recent if r.has_embedding]
    if recent_vectors:
        center = centroid(recent_vectors)
        candidates = [
            (record, cosine(record.embedding, center))
            for record in ordered
            if id(record) not in selected_ids and record.has_embedding
        ]
        # Stable: equal scores keep chronological order
        candidates.sort(key=lambda pair: pair[1], reverse=True)

        added = 0
        for record, score in candidates:
            if len(selected) >= config.max_total or score < config.similarity_threshold:
                break
            selected.append(record)
            selected_ids.add(id(record))
            added += 1

        logger.debug(
            "Similarity expansion: %d candidates, %d added (centroid of %d)",
            len(candidates), added, len(recent_vectors),
        )

    selected = _by_time(selected)
    if len(selected) > config.max_total:
        selected = selected[-config.max_total:]

    logger.debug(
        "Selected %d of %d records (%d recent)",
        len(selected), len(ordered), len(recent),
    )
    return selected
