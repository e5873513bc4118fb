# =============================================================================
# Screenlog - Record HTTP Client
# =============================================================================
# Provides the RecordClient class the recorder uses to append accepted text
# to the server's record log, clear the log, and wait for the server to come
# up.  Only recognized text (and an optional description) leaves the device.
# =============================================================================

import logging
import time
from datetime import datetime
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class RecordClient:
    """
    HTTP client for the server's record API.

    Args:
        server_url: Base URL of the server (e.g., "http://127.0.0.1:8000").
    """

    def __init__(self, server_url: str):
        self._server_url = server_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def append_record(
        self,
        content: str,
        timestamp: datetime,
        description: Optional[str] = None,
        max_retries: int = 3,
    ) -> dict:
        """
        Append one record to the server's log.

        Retries on failure with exponential backoff.

        Args:
            content:     Trimmed recognized text.
            timestamp:   Capture time (timezone-aware).
            description: Optional screen description.
            max_retries: Maximum number of attempts.

        Returns:
            dict: The stored record as returned by the server.

        Raises:
            requests.exceptions.RequestException: After all retries exhausted.
        """
        payload = {
            "content": content,
            "timestamp": timestamp.isoformat(),
            "description": description,
        }
        url = f"{self._server_url}/api/v1/records"
        last_exception = None

        for attempt in range(1, max_retries + 1):
            try:
                response = self._session.post(url, json=payload, timeout=60)
                response.raise_for_status()
                result = response.json()
                logger.info(
                    "Stored record %s (attempt %d, %d chars, embedding=%s)",
                    result.get("id"), attempt, len(content), result.get("has_embedding"),
                )
                return result

            except requests.exceptions.RequestException as exc:
                last_exception = exc
                wait_time = 2 ** (attempt - 1)
                logger.warning(
                    "Failed to store record (attempt %d/%d): %s — retrying in %ds",
                    attempt, max_retries, exc, wait_time,
                )
                time.sleep(wait_time)

        logger.error("All %d attempts failed for record at %s", max_retries, payload["timestamp"])
        raise last_exception

    def clear_records(self) -> int:
        """Delete every stored record. Returns the number removed."""
        response = self._session.delete(f"{self._server_url}/api/v1/records", timeout=30)
        response.raise_for_status()
        removed = response.json().get("removed", 0)
        logger.info("Cleared %d stored records", removed)
        return removed

    def wait_for_server(self, timeout: int = 300, poll_interval: float = 5.0) -> bool:
        """
        Block until the server's /health endpoint reports it is ready.

        Args:
            timeout:       Maximum seconds to wait for the server.
            poll_interval: Seconds between health check polls.

        Returns:
            True if the server is ready, False if timeout expired.
        """
        url = f"{self._server_url}/health"
        start = time.time()

        logger.info("Waiting for server at %s (timeout=%ds)...", url, timeout)

        while (time.time() - start) < timeout:
            try:
                response = self._session.get(url, timeout=5)
                if response.status_code == 200:
                    data = response.json()
                    if data.get("ready", False):
                        logger.info("Server is ready.")
                        return True
                    else:
                        logger.info("Server responded but is still loading...")
            except requests.exceptions.ConnectionError:
                logger.debug("Server not reachable yet...")
            except Exception:
                logger.debug("Health check error", exc_info=True)

            time.sleep(poll_interval)

        logger.error("Timed out waiting for server after %ds.", timeout)
        return False
