"""
Continuous learning: derive a UserPreferenceProfile from the feedback log.

recompute_user_profile is the batch path (full log in, profile out) and is a
pure function of its inputs, so repeated calls give identical profiles.
apply_feedback_event is the incremental path; folding events one at a time in
timestamp order yields the same centroids and counts as the batch path.
"""

import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.feedback import FeedbackAction, UserFeedbackEvent
from ..models.profile import SeparationReport, UserPreferenceProfile
from ..utils.vectors import centroid, running_mean
from .preference_model import separation_quality

logger = logging.getLogger(__name__)

Embedding = Sequence[float]


def effective_events(events: Sequence[UserFeedbackEvent], user_id: str) -> List[UserFeedbackEvent]:
    """The user's events in timestamp order, first event per chunk only."""
    ordered = sorted((e for e in events if e.user_id == user_id), key=lambda e: e.timestamp)
    seen = set()
    result = []
    for event in ordered:
        if event.chunk_id in seen:
            continue
        seen.add(event.chunk_id)
        result.append(event)
    return result


def _split_holdout(saved: List[Embedding], every: int) -> Tuple[List[Embedding], List[Embedding]]:
    """Every `every`-th saved embedding is held out; returns (training, held_out)."""
    if every <= 1:
        return saved, []
    training, held_out = [], []
    for i, vec in enumerate(saved):
        (held_out if i % every == every - 1 else training).append(vec)
    return training, held_out


def evaluate_separation(
    user_id: str,
    saved: List[Embedding],
    excluded_ids: set,
    sample_pool: Mapping[str, Optional[Embedding]],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> Optional[SeparationReport]:
    """
    Separation-quality check for one user, or None when there is not enough data.

    The random sample is drawn from sample_pool (minus the user's own saves)
    with a generator seeded by user_id, so the report is reproducible.
    """
    training, held_out = _split_holdout(saved, config.holdout_every)
    if not training or not held_out:
        return None
    positive = centroid(training)
    candidates = sorted(
        (cid, vec) for cid, vec in sample_pool.items()
        if cid not in excluded_ids and vec and len(vec) == len(positive)
    )
    if not candidates:
        return None
    rng = random.Random(user_id)
    size = min(config.separation_sample_size, len(candidates))
    sample = [vec for _, vec in rng.sample(candidates, size)]
    return separation_quality(positive, held_out, sample, config)


def recompute_user_profile(
    user_id: str,
    events: Sequence[UserFeedbackEvent],
    embeddings: Mapping[str, Optional[Embedding]],
    config: RelevanceConfig = DEFAULT_CONFIG,
    sample_pool: Optional[Mapping[str, Optional[Embedding]]] = None,
) -> UserPreferenceProfile:
    """
    Rebuild a profile from the full event log.

    Args:
        events: feedback events (other users' events are ignored)
        embeddings: chunk_id -> embedding (None or missing when not yet embedded)
        sample_pool: chunk_id -> embedding used for the separation check

    Raises:
        InputError: saved or skipped embeddings have mismatched dimensions
    """
    ordered = effective_events(events, user_id)
    saved_ids = [e.chunk_id for e in ordered if e.action == FeedbackAction.SAVED]
    skipped_ids = [e.chunk_id for e in ordered if e.action == FeedbackAction.SKIPPED]
    saved = [embeddings[c] for c in saved_ids if embeddings.get(c)]
    skipped = [embeddings[c] for c in skipped_ids if embeddings.get(c)]

    separation = None
    if sample_pool is not None:
        separation = evaluate_separation(user_id, saved, set(saved_ids), sample_pool, config)

    k = config.recent_saved_k
    return UserPreferenceProfile(
        user_id=user_id,
        positive_centroid=centroid(saved) if saved else None,
        negative_centroid=centroid(skipped) if skipped else None,
        total_saved=len(saved_ids),
        total_skipped=len(skipped_ids),
        saved_vector_count=len(saved),
        skipped_vector_count=len(skipped),
        recent_saved_embeddings=[list(v) for v in saved[-k:]] if k > 0 else [],
        separation=separation,
        last_updated=ordered[-1].timestamp if ordered else None,
    )


def apply_feedback_event(
    profile: UserPreferenceProfile,
    event: UserFeedbackEvent,
    embedding: Optional[Embedding],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> UserPreferenceProfile:
    """Fold one event into a profile and return the updated copy. The input profile is not modified."""
    update: Dict[str, object] = {}
    if event.action == FeedbackAction.SAVED:
        update["total_saved"] = profile.total_saved + 1
        if embedding:
            update["positive_centroid"] = running_mean(
                profile.positive_centroid, profile.saved_vector_count, embedding
            )
            update["saved_vector_count"] = profile.saved_vector_count + 1
            recent = profile.recent_saved_embeddings + [list(embedding)]
            k = config.recent_saved_k
            update["recent_saved_embeddings"] = recent[-k:] if k > 0 else []
    else:
        update["total_skipped"] = profile.total_skipped + 1
        if embedding:
            update["negative_centroid"] = running_mean(
                profile.negative_centroid, profile.skipped_vector_count, embedding
            )
            update["skipped_vector_count"] = profile.skipped_vector_count + 1
    if profile.last_updated is None or event.timestamp > profile.last_updated:
        update["last_updated"] = event.timestamp
    return profile.model_copy(update=update)
