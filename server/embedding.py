# =============================================================================
# Screenlog - Text Embedding Provider
# =============================================================================
# Provides the TextEmbedder class that loads a sentence-embedding model from
# HuggingFace and turns recognized text or screen descriptions into a single
# fixed-dimension vector.  Failure to embed is a normal outcome: the record
# is still stored, just without a vector.
# =============================================================================

import logging
from typing import Optional

import numpy as np
import torch
from transformers import AutoModel, AutoTokenizer

logger = logging.getLogger(__name__)


class TextEmbedder:
    """
    Mean-pooled transformer sentence embeddings.

    Args:
        model_id:   HuggingFace model identifier
                    (e.g., "sentence-transformers/all-MiniLM-L6-v2").
        device:     Compute device string ("mps", "cuda", or "cpu").
        max_length: Token limit; longer text is truncated.
    """

    def __init__(self, model_id: str, device: str = "cpu", max_length: int = 256):
        self._device = device
        self._max_length = max_length

        logger.info("Loading tokenizer: %s", model_id)
        self._tokenizer = AutoTokenizer.from_pretrained(model_id)

        logger.info("Loading embedding model: %s (device=%s)", model_id, device)
        self._model = AutoModel.from_pretrained(model_id).to(device)
        self._model.eval()
        self._ready = True

        logger.info("Text embedder ready.")

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def dimension(self) -> int:
        """Length of the vectors produced by embed()."""
        return self._model.config.hidden_size

    @torch.no_grad()
    def _encode(self, text: str) -> np.ndarray:
        """
        Pipeline:
            1. Tokenize → input_ids / attention_mask (1, seq)
            2. Forward pass → last_hidden_state (1, seq, dim)
            3. Mean over tokens, weighted by the attention mask → (dim,)
        """
        inputs = self._tokenizer(
            text,
            return_tensors="pt",
            truncation=True,
            max_length=self._max_length,
        ).to(self._device)

        outputs = self._model(**inputs)
        hidden = outputs.last_hidden_state

        mask = inputs["attention_mask"].unsqueeze(-1).to(hidden.dtype)
        summed = (hidden * mask).sum(dim=1)
        counts = mask.sum(dim=1).clamp(min=1e-9)
        pooled = (summed / counts).squeeze(0)

        return pooled.cpu().to(torch.float32).numpy()

    def embed(self, text: str) -> Optional[np.ndarray]:
        """
        Embed ``text`` (lowercased).

        Returns:
            1-D float32 numpy array, or None for empty text or on any
            model failure.
        """
        normalized = text.strip().lower()
        if not normalized:
            return None
        try:
            embedding = self._encode(normalized)
        except Exception:
            logger.exception("Embedding failed; storing record without a vector")
            return None

        logger.debug("Embedded %d chars → shape=%s", len(normalized), embedding.shape)
        return embedding
