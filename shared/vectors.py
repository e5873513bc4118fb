# =============================================================================
# Screenlog - Vector Math
# =============================================================================
# Cosine similarity and centroid computation over fixed-length embedding
# vectors.  Both the context selector and the cluster engine score records
# through these two functions.
# =============================================================================

from typing import Sequence

import numpy as np


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors of equal length.

    A zero-magnitude vector on either side yields 0.0 rather than an error.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        dot(a, b) / (|a| * |b|), or 0.0 if either magnitude is zero.

    Raises:
        ValueError: If the vectors have different lengths.
    """
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape != vb.shape:
        raise ValueError(f"Vector length mismatch: {va.shape[0]} != {vb.shape[0]}")

    mag_a = np.linalg.norm(va)
    mag_b = np.linalg.norm(vb)
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (mag_a * mag_b))


def centroid(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Elementwise arithmetic mean of a non-empty set of equal-length vectors.

    Raises:
        ValueError: If ``vectors`` is empty or the lengths differ.
    """
    if len(vectors) == 0:
        raise ValueError("Cannot compute the centroid of an empty set")

    arrays = [np.asarray(v, dtype=np.float64).ravel() for v in vectors]
    dim = arrays[0].shape[0]
    for arr in arrays[1:]:
        if arr.shape[0] != dim:
            raise ValueError(f"Vector length mismatch: {arr.shape[0]} != {dim}")
    return np.mean(np.stack(arrays), axis=0)
