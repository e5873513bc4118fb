# =============================================================================
# Screenlog - Embedding Cluster Diagnostics
# =============================================================================
# Online greedy clustering of embedded records plus a brute-force nearest
# pair query.  Both are diagnostics over a snapshot of the record log.
#
# Clustering is single pass and order dependent: a record joins the best
# qualifying cluster that exists when it arrives and is never moved later,
# even if a later record would have produced a better grouping.
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from shared.records import CaptureRecord
from shared.vectors import cosine

logger = logging.getLogger(__name__)


@dataclass
class Cluster:
    """
    A group of records with a running embedding sum.

    Attributes:
        records:       Members in assignment order.
        embedding_sum: Elementwise sum of the members' embeddings.
    """

    records: List[CaptureRecord] = field(default_factory=list)
    embedding_sum: Optional[np.ndarray] = None

    @property
    def size(self) -> int:
        return len(self.records)

    @property
    def centroid(self) -> np.ndarray:
        return self.embedding_sum / len(self.records)

    def add(self, record: CaptureRecord) -> None:
        vector = np.asarray(record.embedding, dtype=np.float64)
        if self.embedding_sum is None:
            self.embedding_sum = vector.copy()
        else:
            self.embedding_sum = self.embedding_sum + vector
        self.records.append(record)

    def by_time(self) -> List[CaptureRecord]:
        return sorted(self.records, key=lambda r: r.timestamp)


@dataclass(frozen=True)
class NearestPair:
    first: CaptureRecord
    second: CaptureRecord
    similarity: float


def cluster_records(
    records: Sequence[CaptureRecord],
    threshold: float = 0.85,
) -> List[Cluster]:
    """
    Greedy online clustering in the order given.

    Each embedded record joins the existing cluster whose current centroid
    is most similar, provided the similarity is at least ``threshold``.  On
    a tie the earliest-created cluster wins.  Otherwise the record starts a
    new cluster.  Records without an embedding are ignored.

    Returns:
        Clusters in creation order.
    """
    if not -1.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [-1, 1], got {threshold}")

    clusters: List[Cluster] = []

    for record in records:
        if not record.has_embedding:
            continue

        best_index = None
        best_score = None
        for index, cluster in enumerate(clusters):
            score = cosine(record.embedding, cluster.centroid)
            if score >= threshold and (best_score is None or score > best_score):
                best_index = index
                best_score = score

        if best_index is None:
            cluster = Cluster()
            cluster.add(record)
            clusters.append(cluster)
        else:
            clusters[best_index].add(record)

    logger.info("Formed %d embedding clusters (threshold %.2f)", len(clusters), threshold)
    return clusters


def nearest_pair(records: Sequence[CaptureRecord]) -> Optional[NearestPair]:
    """
    Most similar pair among embedded records.

    Scans pairs (i, j), i < j, in index order; the first pair seen with the
    maximal similarity wins.

    Returns:
        The pair, or None when fewer than two records carry an embedding.
    """
    embedded = [r for r in records if r.has_embedding]
    if len(embedded) < 2:
        logger.info("Not enough embeddings to compare.")
        return None

    best: Optional[NearestPair] = None
    for i in range(len(embedded) - 1):
        for j in range(i + 1, len(embedded)):
            score = cosine(embedded[i].embedding, embedded[j].embedding)
            if best is None or score > best.similarity:
                best = NearestPair(first=embedded[i], second=embedded[j], similarity=score)

    logger.info("Closest embeddings similarity: %.3f", best.similarity)
    return best
