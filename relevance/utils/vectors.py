"""
Vector utilities: centroid, cosine similarity, and incremental means.

All functions accept plain lists (as stored on models) and return plain
floats / lists so results serialize directly into pydantic models.
"""

from typing import List, Sequence

import numpy as np

from ..errors import EmptyInputError, InputError


def _as_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    lengths = {len(v) for v in vectors}
    if len(lengths) > 1:
        raise InputError(f"Vectors have mismatched dimensions: {sorted(lengths)}")
    return np.asarray(vectors, dtype=float)


def centroid(vectors: Sequence[Sequence[float]]) -> List[float]:
    """
    Arithmetic mean per dimension. Permutation-invariant.

    Raises:
        EmptyInputError: if vectors is empty
        InputError: if vectors have different dimensions
    """
    if len(vectors) == 0:
        raise EmptyInputError("Cannot calculate centroid of empty embedding set")
    return _as_matrix(vectors).mean(axis=0).tolist()


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors in [-1, 1]. Zero or empty vectors give 0.0."""
    if v1 is None or v2 is None or len(v1) == 0 or len(v2) == 0:
        return 0.0
    if len(v1) != len(v2):
        raise InputError(f"Embeddings must have same dimensions ({len(v1)} != {len(v2)})")
    a = np.asarray(v1, dtype=float)
    b = np.asarray(v2, dtype=float)
    norm_product = np.linalg.norm(a) * np.linalg.norm(b)
    if norm_product == 0:
        return 0.0
    return float(np.clip(np.dot(a, b) / norm_product, -1.0, 1.0))


def similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Cosine similarity mapped from [-1, 1] to [0, 1]."""
    return (cosine_similarity(v1, v2) + 1.0) / 2.0


def max_cosine_similarity(vector: Sequence[float], others: Sequence[Sequence[float]]) -> float:
    """Highest cosine similarity between vector and any of others (0.0 when others is empty)."""
    if not others:
        return 0.0
    return max(cosine_similarity(vector, o) for o in others)


def running_mean(current: Sequence[float], count: int, vector: Sequence[float]) -> List[float]:
    """
    Fold one vector into a mean of `count` vectors.

    Produces the same result as centroid() over all count + 1 vectors,
    up to floating-point error.
    """
    x = np.asarray(vector, dtype=float)
    if count <= 0 or current is None:
        return x.tolist()
    mean = np.asarray(current, dtype=float)
    if mean.shape != x.shape:
        raise InputError(f"Embeddings must have same dimensions ({mean.shape[0]} != {x.shape[0]})")
    return (mean + (x - mean) / (count + 1)).tolist()
