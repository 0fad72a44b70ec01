"""
Embedding Preference Model: per-user taste as centroids in embedding space.

UNTRAINED (fewer than cold_start_threshold saves): uniform random exploration
scores from an injected, seedable random source. TRAINED: similarity to the
positive centroid, contrasted against the negative centroid when there is
enough skip volume and the two centroids have not collapsed together.
"""

import logging
import random
from typing import Optional, Sequence

from ..errors import EmptyInputError, InputError
from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.profile import PreferenceMode, SeparationReport, UserPreferenceProfile
from ..models.scoring import CollapseReport, EmbeddingScore, ModelHealth
from ..utils.vectors import cosine_similarity, similarity
from .novelty import detect_collapse

logger = logging.getLogger(__name__)


class EmbeddingPreferenceModel:
    """Scores chunk embeddings against one user's preference profile."""

    def __init__(
        self,
        profile: UserPreferenceProfile,
        config: RelevanceConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
    ):
        self.profile = profile
        self.config = config
        self.rng = rng if rng is not None else random.Random()
        self.mode = profile.mode(config.cold_start_threshold)
        self.collapse: CollapseReport = (
            detect_collapse(profile.positive_centroid, profile.negative_centroid, config)
            if self.has_contrast_volume
            else CollapseReport()
        )

    @property
    def has_contrast_volume(self) -> bool:
        """Negative centroid exists and enough skips back it."""
        return (
            self.profile.negative_centroid is not None
            and self.profile.skipped_vector_count >= self.config.contrastive_min_skipped
        )

    @property
    def uses_contrast(self) -> bool:
        return self.has_contrast_volume and self.collapse.status == ModelHealth.HEALTHY

    @property
    def baseline_method(self) -> str:
        if self.mode == PreferenceMode.UNTRAINED:
            return "random"
        if self.uses_contrast:
            return "contrastive"
        if self.has_contrast_volume:
            return "contrastive-fallback"
        return "positive-only"

    def score(self, embedding: Optional[Sequence[float]]) -> EmbeddingScore:
        """
        Score one embedding on the 0-1 scale.

        Raises:
            InputError: TRAINED mode with a missing or mismatched embedding.
        """
        if self.mode == PreferenceMode.UNTRAINED:
            return EmbeddingScore(score=self.rng.random(), method="random")
        if not embedding:
            raise InputError("Chunk has no embedding")
        positive = self.profile.positive_centroid
        if self.uses_contrast:
            pos_sim = cosine_similarity(embedding, positive)
            neg_sim = cosine_similarity(embedding, self.profile.negative_centroid)
            contrastive = (pos_sim - neg_sim + 2.0) / 4.0
            return EmbeddingScore(score=max(0.0, min(1.0, contrastive)), method="contrastive")
        return EmbeddingScore(score=similarity(embedding, positive), method=self.baseline_method)


def separation_quality(
    positive_centroid: Sequence[float],
    held_out_positives: Sequence[Sequence[float]],
    random_sample: Sequence[Sequence[float]],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> SeparationReport:
    """
    mean(sim to positive over held-out positives) - mean(sim to positive over a random sample).

    Below config.separation_floor the embedding model is uninformative.

    Raises:
        EmptyInputError: no held-out positives or no random sample.
    """
    if not held_out_positives or not random_sample:
        raise EmptyInputError("Separation check needs held-out positives and a random sample")
    pos_mean = sum(similarity(v, positive_centroid) for v in held_out_positives) / len(held_out_positives)
    rand_mean = sum(similarity(v, positive_centroid) for v in random_sample) / len(random_sample)
    separation = pos_mean - rand_mean
    informative = separation > config.separation_floor
    if not informative:
        logger.warning(
            "[preference] SEPARATION_BELOW_FLOOR separation=%.4f floor=%.4f held_out=%s sample=%s",
            separation, config.separation_floor, len(held_out_positives), len(random_sample),
        )
    return SeparationReport(
        positive_mean=pos_mean,
        random_mean=rand_mean,
        separation=separation,
        held_out=len(held_out_positives),
        sample_size=len(random_sample),
        informative=informative,
    )
