# =============================================================================
# Screenlog - Record Storage
# =============================================================================
# SQLite-backed record log.  Records are appended once, never updated, and
# only removed by clear().  Embeddings are stored as JSON float arrays; a
# value that fails to decode is treated as "no embedding" for that record.
# =============================================================================

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional

import numpy as np

from shared.records import CaptureRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp   TEXT NOT NULL,
    content     TEXT NOT NULL,
    description TEXT,
    embedding   TEXT,
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_records_timestamp ON records (timestamp);
"""

_COLUMNS = "id, timestamp, content, description, embedding"


def _to_utc_text(ts: datetime) -> str:
    # Fixed-width UTC text so lexical order matches chronological order
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _decode_embedding(
    raw: Optional[str],
    record_id: int,
    expected_dim: Optional[int] = None,
) -> Optional[np.ndarray]:
    if raw is None:
        return None
    try:
        values = json.loads(raw)
        vector = np.asarray(values, dtype=np.float32)
        if vector.ndim != 1 or vector.size == 0:
            raise ValueError(f"expected a non-empty 1-D array, got shape {vector.shape}")
        if expected_dim is not None and vector.size != expected_dim:
            raise ValueError(f"dimension {vector.size} does not match the current model ({expected_dim})")
        return vector
    except (ValueError, TypeError) as exc:
        logger.warning("Ignoring stored embedding for record %d: %s", record_id, exc)
        return None


class RecordStore:
    """
    Append-only capture record log in SQLite.

    Safe to share between request threads; all access goes through one lock.

    Args:
        db_path:       SQLite database file, or ":memory:".
        embedding_dim: Dimension of the current embedding model.  Stored
                       vectors of any other length (left over from a
                       different model) load as None.
    """

    def __init__(self, db_path: str, embedding_dim: Optional[int] = None):
        self.embedding_dim = embedding_dim
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        self._lock = threading.Lock()

    def _row_to_record(self, row) -> CaptureRecord:
        record_id, timestamp, content, description, embedding = row
        return CaptureRecord(
            id=record_id,
            timestamp=datetime.fromisoformat(timestamp),
            content=content,
            description=description,
            embedding=_decode_embedding(embedding, record_id, self.embedding_dim),
        )

    def append(
        self,
        content: str,
        timestamp: datetime,
        description: Optional[str] = None,
        embedding: Optional[np.ndarray] = None,
    ) -> CaptureRecord:
        """Insert one record and return it with its assigned id."""
        encoded = None
        if embedding is not None:
            encoded = json.dumps([float(x) for x in np.asarray(embedding).ravel()])

        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO records (timestamp, content, description, embedding, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    _to_utc_text(timestamp),
                    content,
                    description,
                    encoded,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            self._conn.commit()
            record_id = cursor.lastrowid

        return self.get(record_id)

    def get(self, record_id: int) -> Optional[CaptureRecord]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM records WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list_all(self) -> List[CaptureRecord]:
        """Every record, ascending by timestamp (insertion order on ties)."""
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM records ORDER BY timestamp ASC, id ASC"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_page(self, limit: int, offset: int) -> List[CaptureRecord]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM records ORDER BY timestamp ASC, id ASC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM records").fetchone()[0]

    def stats(self) -> dict:
        """Total records, and how many carry a description / an embedding."""
        with self._lock:
            total, with_description, with_embedding = self._conn.execute(
                "SELECT COUNT(*), "
                "COUNT(CASE WHEN description IS NOT NULL AND description != '' THEN 1 END), "
                "COUNT(embedding) FROM records"
            ).fetchone()
        return {
            "total": total,
            "with_description": with_description,
            "with_embedding": with_embedding,
        }

    def clear(self) -> int:
        """Delete every record. Returns the number removed."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM records")
            self._conn.commit()
            removed = cursor.rowcount
        logger.info("Cleared %d stored records", removed)
        return removed

    def close(self) -> None:
        with self._lock:
            self._conn.close()
