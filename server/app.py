# =============================================================================
# Screenlog - FastAPI Server Application
# =============================================================================
# Defines the HTTP API endpoints for receiving accepted capture text from the
# recorder, embedding and storing it, selecting context for generation
# prompts, requesting predictions, and embedding-cluster diagnostics.
# =============================================================================

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from config import get_config
from server.clusters import cluster_records, nearest_pair
from server.database import RecordStore
from server.embedding import TextEmbedder
from server.selector import SelectionConfig, select_context
from shared.generation import GenerationClient, GenerationError
from shared.prompts import TEMPLATES, build_log
from shared.schemas import (
    ClearResponse,
    ClusterListResponse,
    ClusterResponse,
    ContextResponse,
    GenerationCheckResponse,
    NearestPairResponse,
    PredictionRequest,
    PredictionResponse,
    RecordCreate,
    RecordListResponse,
    RecordResponse,
    StatsResponse,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Global references populated during lifespan startup
# ---------------------------------------------------------------------------
_store: RecordStore = None
_embedder: TextEmbedder = None
_generator: GenerationClient = None
_selection: SelectionConfig = SelectionConfig()
_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler — initializes and tears down resources.

    On startup:
        - Loads the sentence-embedding model.
        - Opens the SQLite record store; stored vectors from a different
          model load without an embedding.
        - Creates the generation client.

    On shutdown:
        - Closes the database connection.
    """
    global _store, _embedder, _generator, _selection, _start_time

    config = get_config()
    _start_time = time.time()
    _selection = SelectionConfig.from_config(config)

    logger.info("Starting server — loading embedding model...")
    _embedder = TextEmbedder(
        model_id=config.embedding_model_id,
        device=config.device,
        max_length=config.embedding_max_length,
    )

    logger.info("Opening database: %s (embedding dim %d)", config.db_path, _embedder.dimension)
    _store = RecordStore(db_path=config.db_path, embedding_dim=_embedder.dimension)

    _generator = GenerationClient(
        api_url=config.generation_api_url,
        api_key=config.generation_api_key,
        model=config.generation_model,
        temperature=config.generation_temperature,
        timeout=config.generation_timeout,
    )
    if not _generator.has_key:
        logger.warning("No generation API key configured; predictions are disabled.")

    logger.info("Server ready — accepting requests.")
    yield

    logger.info("Shutting down server...")
    if _store is not None:
        _store.close()


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Screenlog Server",
    description=(
        "Stores recognized screen text from recorders, embeds it, selects a "
        "bounded recent-and-relevant context for generation prompts, and "
        "exposes embedding-cluster diagnostics."
    ),
    version="0.1.0",
    lifespan=lifespan,
)


def _require_store() -> RecordStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Record store not ready")
    return _store


@app.get("/health")
def health_check():
    """
    Health check endpoint.

    Returns server status, whether the store and embedder are loaded, and uptime.
    """
    embedder_loaded = _embedder is not None and _embedder.is_ready
    ready = _store is not None and embedder_loaded
    uptime = time.time() - _start_time if _start_time > 0 else 0.0
    return {
        "status": "ok" if ready else "loading",
        "ready": ready,
        "embedder_loaded": embedder_loaded,
        "generation_enabled": _generator is not None and _generator.has_key,
        "uptime_seconds": round(uptime, 2),
    }


@app.post("/api/v1/records", response_model=RecordResponse)
def append_record(payload: RecordCreate):
    """
    Store one accepted capture.

    The embedding is computed from the description when one is present,
    otherwise from the recognized text.  A failed embedding still stores
    the record, without a vector.
    """
    store = _require_store()
    if _embedder is None:
        raise HTTPException(status_code=503, detail="Embedding model not loaded yet")

    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=422, detail="content must not be blank")

    source = payload.description or content
    embedding = _embedder.embed(source)

    record = store.append(
        content=content,
        timestamp=payload.timestamp,
        description=payload.description,
        embedding=embedding,
    )
    logger.info(
        "Record %d stored (%d chars, description=%s, embedding=%s)",
        record.id, len(content), payload.description is not None, embedding is not None,
    )
    return RecordResponse.from_record(record)


@app.get("/api/v1/records", response_model=RecordListResponse)
def list_records(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
):
    """List stored records, ascending by capture time, with pagination."""
    store = _require_store()
    offset = (page - 1) * page_size
    records = store.list_page(limit=page_size, offset=offset)
    return RecordListResponse(
        records=[RecordResponse.from_record(r) for r in records],
        total_count=store.count(),
        page=page,
        page_size=page_size,
    )


@app.delete("/api/v1/records", response_model=ClearResponse)
def clear_records():
    """Delete every stored record."""
    return ClearResponse(removed=_require_store().clear())


@app.get("/api/v1/records/stats", response_model=StatsResponse)
def record_stats():
    """Record counts, with description and with embedding."""
    return StatsResponse(**_require_store().stats())


@app.get("/api/v1/records/{record_id}", response_model=RecordResponse)
def get_record(record_id: int):
    """Retrieve a single record by id."""
    record = _require_store().get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return RecordResponse.from_record(record)


@app.get("/api/v1/context", response_model=ContextResponse)
def get_context():
    """The records the context selector would send to a generation prompt."""
    selected = select_context(_require_store().list_all(), _selection)
    return ContextResponse(
        records=[RecordResponse.from_record(r) for r in selected],
        log=build_log(selected),
    )


@app.post("/api/v1/predictions", response_model=PredictionResponse)
def create_prediction(request: PredictionRequest):
    """
    Run a prompt template over the full log or the selected context.

    An empty log short-circuits without calling the generation endpoint.
    """
    store = _require_store()
    records = store.list_all()
    if request.use_recent_context:
        records = select_context(records, _selection)

    if not records:
        return PredictionResponse(text="No OCR data captured yet.", duration_seconds=0.0, record_count=0)

    if _generator is None or not _generator.has_key:
        raise HTTPException(status_code=503, detail="Generation API key missing.")

    prompt = TEMPLATES[request.template](build_log(records))
    start = time.time()
    try:
        text = _generator.send_chat(prompt)
    except GenerationError as exc:
        logger.error("Generation failed (status=%s): %s", exc.status_code, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.exception("Generation request failed")
        raise HTTPException(status_code=502, detail=f"Generation request failed: {exc}")
    duration = time.time() - start

    logger.info("Prediction generated in %.2fs from %d records", duration, len(records))
    return PredictionResponse(
        text=text,
        duration_seconds=round(duration, 3),
        record_count=len(records),
    )


@app.get("/api/v1/diagnostics/clusters", response_model=ClusterListResponse)
def get_clusters(threshold: Optional[float] = Query(default=None, ge=-1.0, le=1.0)):
    """Greedy embedding clusters over the whole log, in creation order."""
    if threshold is None:
        threshold = get_config().cluster_threshold
    clusters = cluster_records(_require_store().list_all(), threshold=threshold)
    return ClusterListResponse(
        threshold=threshold,
        clusters=[
            ClusterResponse(
                index=i,
                size=cluster.size,
                records=[RecordResponse.from_record(r) for r in cluster.by_time()],
            )
            for i, cluster in enumerate(clusters)
        ],
    )


@app.get("/api/v1/diagnostics/nearest", response_model=NearestPairResponse)
def get_nearest_pair():
    """The most similar pair of embedded records, if there are at least two."""
    pair = nearest_pair(_require_store().list_all())
    if pair is None:
        return NearestPairResponse(sufficient=False)
    return NearestPairResponse(
        sufficient=True,
        similarity=pair.similarity,
        first=RecordResponse.from_record(pair.first),
        second=RecordResponse.from_record(pair.second),
    )


@app.get("/api/v1/diagnostics/generation", response_model=GenerationCheckResponse)
def check_generation():
    """Send the ACK prompt to the generation endpoint and report the reply."""
    if _generator is None or not _generator.has_key:
        raise HTTPException(status_code=503, detail="Generation API key missing.")

    start = time.time()
    try:
        reply = _generator.sanity_check()
    except GenerationError as exc:
        logger.error("Generation check failed (status=%s): %s", exc.status_code, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.exception("Generation check request failed")
        raise HTTPException(status_code=502, detail=f"Generation request failed: {exc}")

    return GenerationCheckResponse(
        ok="ACK" in reply.upper(),
        reply=reply,
        duration_seconds=round(time.time() - start, 3),
    )
