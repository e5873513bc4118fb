# =============================================================================
# Screenlog - Capture Record
# =============================================================================
# The in-memory form of one accepted, deduplicated capture.  Records are
# immutable after creation and compare by identity, so selection sets built
# from a snapshot never merge two records that happen to share a timestamp
# and text.
# =============================================================================

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np


@dataclass(frozen=True, eq=False)
class CaptureRecord:
    """
    One recognized-text capture as held by storage.

    Attributes:
        timestamp:   Capture time (timezone-aware, UTC).
        content:     Non-empty recognized text.
        description: Optional enrichment text describing the screen.
        embedding:   Optional 1-D embedding vector; None when the embedding
                     provider produced nothing for this record.
        id:          Storage row id, None for records not yet stored.
    """

    timestamp: datetime
    content: str
    description: Optional[str] = None
    embedding: Optional[np.ndarray] = None
    id: Optional[int] = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None
