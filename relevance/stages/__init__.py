"""Scoring cascade stages: gate, preference model, novelty, orchestration, selection, learning."""

from .heuristic_gate import evaluate_gate
from .learning import apply_feedback_event, recompute_user_profile
from .novelty import detect_collapse, novelty_penalty
from .orchestrator import RunContext, ScoringOrchestrator, effective_weights
from .preference_model import EmbeddingPreferenceModel, separation_quality
from .selector import is_eligible, select_candidates, stratified_sample

__all__ = [
    "EmbeddingPreferenceModel",
    "RunContext",
    "ScoringOrchestrator",
    "apply_feedback_event",
    "detect_collapse",
    "effective_weights",
    "evaluate_gate",
    "is_eligible",
    "novelty_penalty",
    "recompute_user_profile",
    "select_candidates",
    "separation_quality",
    "stratified_sample",
]
