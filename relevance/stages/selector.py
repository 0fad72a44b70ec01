"""
Candidate selector: which scored chunks become Signals for a user.

TRAINED users get pure top-K. UNTRAINED users get stratified sampling across
score buckets so early feedback covers both confident and unconfident picks.
The selector only ever sees a fully scored, immutable snapshot.
"""

import logging
from typing import AbstractSet, Dict, List, Optional, Sequence

from ..models.chunk import ContentChunk
from ..models.config import RelevanceConfig, ScoreBucket, DEFAULT_CONFIG
from ..models.profile import PreferenceMode
from ..models.scoring import ScoredChunk

logger = logging.getLogger(__name__)


def is_eligible(chunk: ContentChunk, config: RelevanceConfig = DEFAULT_CONFIG) -> bool:
    """Word count within [min_word_count, max_word_count]."""
    return config.min_word_count <= chunk.word_count <= config.max_word_count


def _by_score(scored: Sequence[ScoredChunk]) -> List[ScoredChunk]:
    # Stable sort keeps input order among equal scores.
    return sorted(scored, key=lambda s: s.score, reverse=True)


def _bucket_for(score: float, buckets: Sequence[ScoreBucket]) -> Optional[str]:
    for bucket in buckets:
        if bucket.lower <= score < bucket.upper:
            return bucket.name
    return None


def bucket_counts(scored: Sequence[ScoredChunk], buckets: Sequence[ScoreBucket]) -> Dict[str, int]:
    """Number of chunks per score bucket."""
    counts = {b.name: 0 for b in buckets}
    for s in scored:
        name = _bucket_for(s.score, buckets)
        if name is not None:
            counts[name] += 1
    return counts


def stratified_sample(
    scored: Sequence[ScoredChunk],
    target: int,
    buckets: Sequence[ScoreBucket],
) -> List[ScoredChunk]:
    """
    Take floor(target * share) of the best chunks from each bucket, then fill
    any shortfall (empty or thin buckets) with the highest remaining scores.

    Returns the selection sorted by score descending.
    """
    ranked = _by_score(scored)
    if len(ranked) <= target:
        return ranked

    selected: List[ScoredChunk] = []
    selected_ids = set()
    for bucket in buckets:
        quota = int(target * bucket.share)
        members = [s for s in ranked if bucket.lower <= s.score < bucket.upper]
        for s in members[:quota]:
            selected.append(s)
            selected_ids.add(s.chunk_id)

    if len(selected) < target:
        for s in ranked:
            if len(selected) >= target:
                break
            if s.chunk_id not in selected_ids:
                selected.append(s)
                selected_ids.add(s.chunk_id)

    return _by_score(selected[:target])


def select_candidates(
    scored: Sequence[ScoredChunk],
    mode: PreferenceMode,
    config: RelevanceConfig = DEFAULT_CONFIG,
    already_signaled: AbstractSet[str] = frozenset(),
    budget: Optional[int] = None,
) -> List[ScoredChunk]:
    """
    Choose at most `budget` (default config.daily_signal_budget) chunks.

    Ineligible word counts and chunks already signaled to the user are
    dropped before ranking. Duplicate chunk ids keep their first occurrence.
    """
    target = config.daily_signal_budget if budget is None else budget
    if target <= 0:
        return []

    pool: List[ScoredChunk] = []
    seen = set(already_signaled)
    for s in scored:
        if s.chunk_id in seen or not is_eligible(s.chunk, config):
            continue
        seen.add(s.chunk_id)
        pool.append(s)

    if mode == PreferenceMode.TRAINED:
        selected = _by_score(pool)[:target]
    else:
        selected = stratified_sample(pool, target, config.selection_buckets)
        counts = bucket_counts(selected, config.selection_buckets)
        logger.info(
            "[selector] STRATIFIED_SELECTION selected=%s pool=%s buckets=%s",
            len(selected), len(pool), counts,
        )

    if selected:
        logger.debug(
            "[selector] SCORE_RANGE min=%.2f max=%.2f", selected[-1].score, selected[0].score
        )
    return selected
