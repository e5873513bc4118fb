# =============================================================================
# Screenlog - Generation HTTP Client
# =============================================================================
# Provides the GenerationClient class, a thin wrapper over an OpenAI-compatible
# chat completions endpoint.  The server uses it to turn a selected context
# log into a prediction; the recorder optionally uses it to describe a
# screenshot before storing the recognized text.
# =============================================================================

import base64
import io
import logging
import time
from typing import List, Optional

import requests
from PIL import Image

from shared.prompts import DESCRIBE_SCREEN_PROMPT, SANITY_CHECK

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Raised when the generation endpoint rejects a request or returns nothing."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationClient:
    """
    HTTP client for a chat completions endpoint.

    Args:
        api_url:     Full URL of the chat completions endpoint.
        api_key:     Bearer token.  An empty key fails every call up front.
        model:       Model name sent with each request.
        temperature: Default sampling temperature.
        timeout:     Request timeout in seconds.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @property
    def has_key(self) -> bool:
        return bool(self._api_key)

    def send_chat(self, prompt: str, temperature: Optional[float] = None) -> str:
        """Send a single user prompt and return the reply text."""
        return self.send_messages([{"role": "user", "content": prompt}], temperature=temperature)

    def send_messages(self, messages: List[dict], temperature: Optional[float] = None) -> str:
        """
        POST a list of chat messages and return the first choice's content.

        Raises:
            GenerationError: Missing API key, non-2xx status, or empty choices.
            requests.exceptions.RequestException: Transport failures.
        """
        if not self._api_key:
            raise GenerationError("Generation API key missing.")

        payload = {
            "messages": messages,
            "model": self._model,
            "stream": False,
            "temperature": self._temperature if temperature is None else temperature,
        }

        start = time.time()
        response = self._session.post(
            self._api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
        )
        if not 200 <= response.status_code < 300:
            body = response.text or "No response body"
            raise GenerationError(f"API error: {body}", status_code=response.status_code)

        choices = response.json().get("choices") or []
        if not choices:
            raise GenerationError("Empty response", status_code=response.status_code)

        content = choices[0]["message"]["content"]
        logger.info("Response in %.2fs: %s", time.time() - start, content[:120])
        return content

    def describe_screen(self, image: Image.Image) -> str:
        """
        Ask the model to describe a screenshot.

        The image is sent inline as a base64 PNG data URL.
        """
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")

        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": DESCRIBE_SCREEN_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/png;base64,{encoded}"},
                    },
                ],
            }
        ]
        return self.send_messages(messages, temperature=0.0).strip()

    def sanity_check(self) -> str:
        """Round-trip a trivial prompt; returns the reply (expected "ACK")."""
        return self.send_chat(SANITY_CHECK, temperature=0.0)
