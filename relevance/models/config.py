"""
Scoring configuration: gate, cold start, novelty, blending, LLM band and selection.

RelevanceConfig defaults are defined here. Callers may pass a dict
(e.g. from a JSON config file); from_dict() merges it with these defaults.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, model_validator


class ScoreBucket(BaseModel):
    """One stratum for cold-start sampling: [lower, upper) on the 0-1 scale and its share of the budget."""

    name: str
    lower: float
    upper: float
    share: float


DEFAULT_SELECTION_BUCKETS: List[ScoreBucket] = [
    ScoreBucket(name="very_low", lower=0.0, upper=0.3, share=0.10),
    ScoreBucket(name="low", lower=0.3, upper=0.5, share=0.15),
    ScoreBucket(name="mid", lower=0.5, upper=0.65, share=0.25),
    ScoreBucket(name="high", lower=0.65, upper=0.8, share=0.35),
    ScoreBucket(name="very_high", lower=0.8, upper=1.0001, share=0.15),
]


class RelevanceConfig(BaseModel):
    """Configuration for the relevance scoring cascade."""

    # -------------------------------------------------------------------------
    # Heuristic Gate
    # -------------------------------------------------------------------------

    # Chunks with fewer words always fail the gate.
    gate_min_words: int = 30
    # A chunk that is not hard-blocked still fails when its score (0-100) is below this.
    gate_fail_below: float = 25.0

    # -------------------------------------------------------------------------
    # Cold start / exploration
    # -------------------------------------------------------------------------

    # Saves needed before the user's preference model is TRAINED.
    cold_start_threshold: int = 10
    # Share of the random exploration score mixed into the gate score while UNTRAINED.
    exploration_jitter: float = 0.15

    # -------------------------------------------------------------------------
    # Embedding Preference Model / Novelty
    # -------------------------------------------------------------------------

    # Skip volume needed before the negative centroid is used for contrastive scoring.
    contrastive_min_skipped: int = 5
    # Max cosine to any of the recent_saved_k latest saves above which a chunk is redundant.
    redundancy_threshold: float = 0.75
    # Fixed penalty (0-1 scale) for redundant chunks.
    redundancy_penalty: float = 0.20
    recent_saved_k: int = 10
    # DEGRADED when 1 - cos(positive, negative) falls below this (cos > 0.85).
    collapse_separation_floor: float = 0.15
    # Separation-quality detectability floor (held-out positives vs random sample).
    separation_floor: float = 0.05
    # Every Nth saved event is held out for the separation check.
    holdout_every: int = 5
    separation_sample_size: int = 50

    # -------------------------------------------------------------------------
    # Blending weights (must sum to 1.0)
    # final = weight_heuristic * heuristic + weight_embedding * embedding + weight_llm * llm
    # -------------------------------------------------------------------------

    weight_heuristic: float = 0.4
    weight_embedding: float = 0.3
    weight_llm: float = 0.3
    # Factor applied to weight_embedding in DEGRADED runs before renormalising.
    degraded_embedding_scale: float = 0.25

    # -------------------------------------------------------------------------
    # LLM Judge
    # -------------------------------------------------------------------------

    # Borderline band on the 0-100 scale (inclusive). Only these chunks reach the judge.
    borderline_band_low: float = 40.0
    borderline_band_high: float = 70.0
    # Skip the judge when heuristic and embedding land on the same side of the band.
    agreement_guard: bool = True
    llm_pass_cutoff: float = 50.0
    # Consecutive judge failures within one run before the judge is skipped for the rest of it.
    judge_failure_limit: int = 3

    # -------------------------------------------------------------------------
    # Run / Candidate Selector
    # -------------------------------------------------------------------------

    daily_signal_budget: int = 30
    min_word_count: int = 30
    max_word_count: int = 300
    # Concurrent per-chunk scoring units (provider rate limits).
    scoring_concurrency: int = 10
    selection_buckets: List[ScoreBucket] = DEFAULT_SELECTION_BUCKETS
    # Pending signals older than this are expired.
    signal_retention_days: int = 90

    @model_validator(mode="after")
    def weights_sum_to_one(self):
        total = self.weight_heuristic + self.weight_embedding + self.weight_llm
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Blending weights must sum to 1.0, got {total}")
        return self

    @model_validator(mode="after")
    def band_is_ordered(self):
        if not 0 <= self.borderline_band_low <= self.borderline_band_high <= 100:
            raise ValueError(
                f"Borderline band must satisfy 0 <= low <= high <= 100, "
                f"got {self.borderline_band_low}-{self.borderline_band_high}"
            )
        if self.min_word_count > self.max_word_count:
            raise ValueError("min_word_count must not exceed max_word_count")
        return self

    @model_validator(mode="after")
    def bucket_shares_sum_to_one(self):
        total = sum(b.share for b in self.selection_buckets)
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Selection bucket shares must sum to 1.0, got {total}")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RelevanceConfig":
        """Create config from dictionary (e.g., loaded from JSON). Accepts flat keys or nested sections."""
        flat = {k: v for k, v in config_dict.items() if not isinstance(v, dict)}
        if "cold_start" in config_dict:
            cs = config_dict["cold_start"]
            if "threshold" in cs:
                flat["cold_start_threshold"] = cs["threshold"]
            if "jitter" in cs:
                flat["exploration_jitter"] = cs["jitter"]
        if "borderline_band" in config_dict:
            band = config_dict["borderline_band"]
            if "low" in band:
                flat["borderline_band_low"] = band["low"]
            if "high" in band:
                flat["borderline_band_high"] = band["high"]
        if "novelty" in config_dict:
            nv = config_dict["novelty"]
            if "threshold" in nv:
                flat["redundancy_threshold"] = nv["threshold"]
            if "penalty" in nv:
                flat["redundancy_penalty"] = nv["penalty"]
            if "recent_k" in nv:
                flat["recent_saved_k"] = nv["recent_k"]
        if "weights" in config_dict:
            w = config_dict["weights"]
            for short, key in (("heuristic", "weight_heuristic"), ("embedding", "weight_embedding"), ("llm", "weight_llm")):
                if short in w:
                    flat[key] = w[short]
        if "selection" in config_dict:
            sel = config_dict["selection"]
            if "budget" in sel:
                flat["daily_signal_budget"] = sel["budget"]
            if "min_words" in sel:
                flat["min_word_count"] = sel["min_words"]
            if "max_words" in sel:
                flat["max_word_count"] = sel["max_words"]
        if "judge" in config_dict:
            jg = config_dict["judge"]
            if "pass_cutoff" in jg:
                flat["llm_pass_cutoff"] = jg["pass_cutoff"]
            if "failure_limit" in jg:
                flat["judge_failure_limit"] = jg["failure_limit"]
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RelevanceConfig()


def resolve_config(config: Optional["RelevanceConfig"]) -> "RelevanceConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
