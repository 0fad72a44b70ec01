"""Shared utilities for vector maths and text handling."""

from .text import boundary_windows, count_words
from .timestamps import UtcDatetime, to_utc, utc_now
from .vectors import (
    centroid,
    cosine_similarity,
    max_cosine_similarity,
    running_mean,
    similarity,
)

__all__ = [
    "boundary_windows",
    "centroid",
    "cosine_similarity",
    "count_words",
    "max_cosine_similarity",
    "running_mean",
    "similarity",
    "to_utc",
    "utc_now",
    "UtcDatetime",
]
