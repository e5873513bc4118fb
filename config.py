# =============================================================================
# Screenlog - Centralized Configuration
# =============================================================================
# Provides a single Config dataclass containing all tunable parameters for
# both the recorder and the server. Parameters are overridable via environment
# variables with the SCREENLOG_ prefix (e.g., SCREENLOG_MIN_CHANGE_RATIO=0.05).
# =============================================================================

import os
from dataclasses import dataclass, field, fields
from typing import Optional

import torch


def _detect_device() -> str:
    """
    Auto-detect the best available compute device.

    Returns:
        str: "mps" on Apple Silicon, "cuda" on NVIDIA GPUs, "cpu" as fallback.
    """
    if torch.backends.mps.is_available():
        return "mps"
    elif torch.cuda.is_available():
        return "cuda"
    return "cpu"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """
    Centralized configuration for the Screenlog recorder and server.

    All fields can be overridden via environment variables prefixed with SCREENLOG_.
    """

    # -- Screen Capture --
    capture_interval_seconds: float = 1.0
    capture_monitor: int = 1

    # -- Change Detection --
    min_change_ratio: float = 0.02
    signature_size: int = 16  # Signature is signature_size x signature_size

    # -- Text Recognition --
    ocr_language: str = "eng"
    tesseract_cmd: str = ""  # Empty = tesseract on PATH
    describe_frames: bool = False
    auto_clear_on_stop: bool = False

    # -- Networking --
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    # -- Embeddings --
    embedding_model_id: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_max_length: int = 256
    device: str = field(default_factory=_detect_device)

    # -- Context Selection --
    recent_window_seconds: float = 60.0
    min_recent: int = 5
    max_recent_fallback: int = 20
    max_total: int = 40
    similarity_threshold: float = 0.75

    # -- Diagnostics --
    cluster_threshold: float = 0.85

    # -- Generation (OpenAI-compatible chat completions) --
    generation_api_url: str = "https://api.x.ai/v1/chat/completions"
    generation_model: str = "grok-4-1-fast-non-reasoning"
    generation_temperature: float = 0.2
    generation_timeout: float = 120.0
    generation_api_key: str = ""

    # -- Database --
    db_path: str = "records.db"

    # -- Derived (computed post-init) --
    server_url: str = field(init=False)

    def __post_init__(self):
        """Apply environment variable overrides and compute derived fields."""
        self._apply_env_overrides()
        self.server_url = f"http://{self.server_host}:{self.server_port}"

    def _apply_env_overrides(self):
        """
        Override config fields from environment variables.

        Looks for SCREENLOG_<FIELD_NAME_UPPERCASE> environment variables and
        applies them with the type of the field's default.
        """
        converters = {float: float, int: int, str: str, bool: _parse_bool}
        for f in fields(self):
            if not f.init:
                continue
            env_value = os.environ.get(f"SCREENLOG_{f.name.upper()}")
            if env_value is None:
                continue
            field_type = type(getattr(self, f.name))
            setattr(self, f.name, converters[field_type](env_value))


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Return the singleton Config instance, creating it on first call.

    Returns:
        Config: The global configuration object.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance
