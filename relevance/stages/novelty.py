"""
Novelty / contrastive adjuster.

- novelty_penalty: fixed penalty for chunks that near-duplicate something the
  user saved recently (max cosine to the k latest saves above a threshold).
- detect_collapse: separation between positive and negative centroids; below
  the configured floor the embedding signal is DEGRADED for the run.
"""

import logging
from typing import Optional, Sequence

from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.scoring import CollapseReport, ModelHealth, NoveltyResult
from ..utils.vectors import cosine_similarity

logger = logging.getLogger(__name__)


def novelty_penalty(
    chunk_embedding: Sequence[float],
    recent_saved: Sequence[Sequence[float]],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> NoveltyResult:
    """
    Return an adjustment <= 0 on the 0-1 scale.

    Compares against the config.recent_saved_k most recent saves (newest last).
    Redundant when max cosine similarity is strictly above redundancy_threshold.
    """
    window = list(recent_saved)[-config.recent_saved_k:] if config.recent_saved_k > 0 else []
    if not window:
        return NoveltyResult()
    max_sim = max(cosine_similarity(chunk_embedding, saved) for saved in window)
    redundant = max_sim > config.redundancy_threshold
    return NoveltyResult(
        adjustment=-config.redundancy_penalty if redundant else 0.0,
        max_similarity=max_sim,
        compared=len(window),
        redundant=redundant,
    )


def detect_collapse(
    positive_centroid: Optional[Sequence[float]],
    negative_centroid: Optional[Sequence[float]],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> CollapseReport:
    """separation = 1 - cos(pos, neg); DEGRADED when below config.collapse_separation_floor."""
    if positive_centroid is None or negative_centroid is None:
        return CollapseReport()
    separation = 1.0 - cosine_similarity(positive_centroid, negative_centroid)
    if separation < config.collapse_separation_floor:
        logger.warning(
            "[novelty] SIGNAL_COLLAPSE separation=%.3f floor=%.3f",
            separation, config.collapse_separation_floor,
        )
        return CollapseReport(separation=separation, status=ModelHealth.DEGRADED)
    return CollapseReport(separation=separation, status=ModelHealth.HEALTHY)
