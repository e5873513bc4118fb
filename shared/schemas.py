# =============================================================================
# Screenlog - Shared API Schemas
# =============================================================================
# Pydantic models defining the data contracts between the recorder and the
# server.  These schemas are used for request/response validation and
# serialization across the HTTP API boundary.
#
# The recorder only ever sends text (recognized content plus an optional
# screen description).  Embeddings are computed server-side and are never
# part of a request body.
# =============================================================================

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from shared.records import CaptureRecord


class RecordCreate(BaseModel):
    """
    Payload sent from the recorder for each accepted, deduplicated frame.

    Attributes:
        content:     Trimmed recognized text (never empty).
        timestamp:   ISO 8601 timestamp of when the frame was captured.
        description: Optional enrichment text describing the screen.
    """

    content: str = Field(..., min_length=1, description="Recognized text")
    timestamp: datetime = Field(..., description="ISO 8601 capture timestamp")
    description: Optional[str] = Field(default=None, description="Screen description")


class RecordResponse(BaseModel):
    """
    A stored capture record as returned by the server.

    Attributes:
        id:            Storage row id.
        timestamp:     ISO 8601 capture timestamp.
        content:       Recognized text.
        description:   Optional screen description.
        has_embedding: Whether the embedding provider produced a vector.
    """

    id: int
    timestamp: datetime
    content: str
    description: Optional[str] = None
    has_embedding: bool

    @classmethod
    def from_record(cls, record: CaptureRecord) -> "RecordResponse":
        return cls(
            id=record.id,
            timestamp=record.timestamp,
            content=record.content,
            description=record.description,
            has_embedding=record.has_embedding,
        )


class RecordListResponse(BaseModel):
    """Paginated list of records, ascending by timestamp."""

    records: List[RecordResponse]
    total_count: int
    page: int
    page_size: int


class ClearResponse(BaseModel):
    removed: int


class StatsResponse(BaseModel):
    """Counts over the whole record log."""

    total: int
    with_description: int
    with_embedding: int


class ContextResponse(BaseModel):
    """
    Output of the context selector.

    Attributes:
        records: Selected records in ascending time order.
        log:     The records serialized one per line for a generation prompt.
    """

    records: List[RecordResponse]
    log: str


class PredictionRequest(BaseModel):
    use_recent_context: bool = Field(
        default=True,
        description="Select a bounded context instead of sending the full log",
    )
    template: Literal["predict", "summary"] = "predict"


class PredictionResponse(BaseModel):
    text: str
    duration_seconds: float
    record_count: int


class ClusterResponse(BaseModel):
    """One diagnostic cluster; members are listed in ascending time order."""

    index: int
    size: int
    records: List[RecordResponse]


class ClusterListResponse(BaseModel):
    threshold: float
    clusters: List[ClusterResponse]


class NearestPairResponse(BaseModel):
    """
    Most similar pair of embedded records.

    ``sufficient`` is False when fewer than two records carry an embedding;
    the remaining fields are then null.
    """

    sufficient: bool
    similarity: Optional[float] = None
    first: Optional[RecordResponse] = None
    second: Optional[RecordResponse] = None


class GenerationCheckResponse(BaseModel):
    """Round trip of the ACK prompt through the generation endpoint."""

    ok: bool
    reply: str
    duration_seconds: float
