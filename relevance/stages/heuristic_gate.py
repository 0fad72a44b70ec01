"""
Heuristic Gate: cheap lexical first pass over chunk text.

Rejects non-substantive chunks (ads, calls-to-action, intros/outros, very short
chunks) and assigns a coarse 0-100 quality estimate to the rest. The gate
optimizes for recall: a chunk with no strong signal either way scores neutral
(inside the default borderline band) and passes.

Rules:
- too_short: fewer than gate_min_words words -> fail.
- cta_url_directive: explicit URL together with a directive verb -> hard block.
- cta_promo: promotional call-to-action phrase -> hard block.
- intro_outro: greeting/thanks/sign-off phrases near a chunk boundary -> penalty.
- sponsor_language: sponsorship wording without a CTA -> penalty.
- framework / insight / specificity markers -> additive bonus, total capped at 100.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.scoring import GateResult
from ..utils.text import boundary_windows, count_words

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50.0
INTRO_OUTRO_PENALTY = 35.0
SPONSOR_PENALTY = 20.0

# Bonus scale per bucket (each bucket is clamped to 0-1 first).
FRAMEWORK_WEIGHT = 30.0
INSIGHT_WEIGHT = 20.0
SPECIFICITY_WEIGHT = 15.0

# -----------------------------------------------------------------------------
# Blocking / penalty patterns
# -----------------------------------------------------------------------------

URL_PATTERN = re.compile(
    r"(https?://\S+|\bwww\.\S+|\b[a-z0-9-]+\.(com|io|net|org|co|fm|ai|app|ly)(/[\w\-./?=&%]*)?\b)",
    re.IGNORECASE,
)
DIRECTIVE_PATTERN = re.compile(
    r"\b(sign up|signup|visit|subscribe|check out|go to|head (over )?to|download|learn more|"
    r"join|register|use (the )?code|click|get started|try it)\b",
    re.IGNORECASE,
)
PROMO_PATTERN = re.compile(
    r"\b(subscribe to (our|my|the) (newsletter|channel|podcast|list|show)|use (promo )?code \w+|"
    r"sign up (today|now|for free)|free trial|limited[- ]time offer|plans starting at|"
    r"\$\d+\s*(/|per )\s*month|member fdic|terms and conditions apply)\b",
    re.IGNORECASE,
)
SPONSOR_PATTERN = re.compile(
    r"\b(sponsor(ed)?( by)?|brought to you by|today's sponsor|partner(ing|ed)? with|save your spot|rsvp)\b",
    re.IGNORECASE,
)
INTRO_OUTRO_PATTERN = re.compile(
    r"\b(thanks? (you )?for (having|coming on|joining|listening|watching|tuning in)|"
    r"glad to be here|great to (be here|have you)|welcome (back )?to (the|our|my) (show|podcast|episode|channel)|"
    r"in (this|today's) episode|let's (dive|jump) (right )?in|enjoy the episode|"
    r"that's (all|it) for (today|this (week|episode))|see you next (time|week)|"
    r"like and subscribe|hit the bell|show notes|link in the description)\b",
    re.IGNORECASE,
)

# -----------------------------------------------------------------------------
# Substance patterns
# -----------------------------------------------------------------------------

EXPLICIT_NAMING = re.compile(
    r"\b(we call (this|that|it)|this is called|known as|referred to as|term for|name for|i call (this|it))\b",
    re.IGNORECASE,
)
QUOTED_LABEL = re.compile(r"[\"“][A-Z][a-z]+(\s[A-Za-z][a-z]+){0,4}[\"”]")
FRAMEWORK_VOCAB = re.compile(
    r"\b(framework|model|pattern|principle|law|rule|playbook|system|theory|concept|paradigm|heuristic)s?\b",
    re.IGNORECASE,
)
CONTRAST = re.compile(
    r"\b\w+\s+(vs\.?|versus|compared to|rather than|instead of|as opposed to)\s+\w+",
    re.IGNORECASE,
)
ANALOGY = re.compile(
    r"\b(it'?s like|similar to|think of it as|imagine|as if|metaphor|analogy)\b",
    re.IGNORECASE,
)
DEFINITION = re.compile(r"\b\w+\s+(is when|means|refers to|describes)\b", re.IGNORECASE)

CONTRARIAN = re.compile(
    r"\b(but actually|but really|however|contrary to|opposite|paradox|irony|counterintuitive|"
    r"counter-intuitive|surprising|unexpected|myth|misconception)\b",
    re.IGNORECASE,
)
CAUSAL = re.compile(
    r"\b(because|therefore|thus|hence|leads to|causes|results in|driven by|stems from|which means)\b",
    re.IGNORECASE,
)
CONDITIONAL = re.compile(r"\b(if .+ then|unless|when .+ then|given that)\b", re.IGNORECASE)
CHALLENGE = re.compile(
    r"\b(problem is|issue is|mistake|wrong|misunderstand|overlook|ignore)\b",
    re.IGNORECASE,
)

NUMBERS = re.compile(r"\d+([.,]\d+)?(%|x|X|\s*(percent|million|billion|thousand|times))?")
PROPER_NOUNS = re.compile(r"(?<![.!?]\s)\b[A-Z][a-z]+(\s[A-Z][a-z]+)?\b")
EXAMPLE = re.compile(r"\b(for example|for instance|such as|like when|case in point|consider)\b", re.IGNORECASE)
PROCESS = re.compile(r"\b(first|second|third|next|finally|step|stage|phase)\b", re.IGNORECASE)
TACTIC = re.compile(
    r"\b(you (can|should|need to|must|have to)|start by|begin with|the way to)\b",
    re.IGNORECASE,
)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _framework_bucket(text: str) -> Tuple[float, List[str]]:
    """Named-concept phrasing, labels, framework vocabulary, X vs Y, analogies, definitions."""
    score = 0.0
    reasons: List[str] = []
    if EXPLICIT_NAMING.search(text):
        score += 0.6
        reasons.append("named_concept")
    if QUOTED_LABEL.search(text):
        score += 0.4
        reasons.append("concept_label")
    vocab = FRAMEWORK_VOCAB.findall(text)
    if len(vocab) >= 2:
        score += 0.5
        reasons.append("framework_vocabulary")
    elif vocab:
        score += 0.2
        reasons.append("framework_vocabulary")
    if CONTRAST.search(text):
        score += 0.4
        reasons.append("contrast")
    if ANALOGY.search(text):
        score += 0.3
        reasons.append("analogy")
    if DEFINITION.search(text):
        score += 0.3
        reasons.append("definition")
    return _clamp(score), reasons


def _insight_bucket(text: str) -> Tuple[float, List[str]]:
    """Contrarian language, causal connectives, conditionals, challenge framing."""
    score = 0.0
    reasons: List[str] = []
    contrarian = len(CONTRARIAN.findall(text))
    if contrarian >= 2:
        score += 0.6
        reasons.append("contrarian")
    elif contrarian == 1:
        score += 0.3
        reasons.append("contrarian")
    causal = len(CAUSAL.findall(text))
    if causal >= 3:
        score += 0.5
        reasons.append("causal")
    elif causal >= 1:
        score += 0.3
        reasons.append("causal")
    if CONDITIONAL.search(text):
        score += 0.3
        reasons.append("conditional")
    if CHALLENGE.search(text):
        score += 0.3
        reasons.append("challenge")
    return _clamp(score), reasons


def _specificity_bucket(text: str) -> Tuple[float, List[str]]:
    """Concrete numbers, proper nouns, examples, step-by-step process, tactics."""
    score = 0.0
    reasons: List[str] = []
    numbers = len(NUMBERS.findall(text))
    if numbers >= 3:
        score += 0.5
        reasons.append("numbers")
    elif numbers >= 1:
        score += 0.25
        reasons.append("numbers")
    proper = len(PROPER_NOUNS.findall(text))
    if proper >= 3:
        score += 0.4
        reasons.append("proper_nouns")
    elif proper >= 1:
        score += 0.2
        reasons.append("proper_nouns")
    if EXAMPLE.search(text):
        score += 0.3
        reasons.append("example")
    if PROCESS.search(text):
        score += 0.3
        reasons.append("process")
    if TACTIC.search(text):
        score += 0.3
        reasons.append("tactic")
    return _clamp(score), reasons


def _has_intro_outro(text: str) -> bool:
    head, tail = boundary_windows(text)
    return bool(INTRO_OUTRO_PATTERN.search(head) or INTRO_OUTRO_PATTERN.search(tail))


def evaluate_gate(
    text: Optional[str],
    config: RelevanceConfig = DEFAULT_CONFIG,
) -> GateResult:
    """
    Run every gate rule over text and return {score 0-100, passed, reasons}.

    Never raises: None or empty text is simply too short.
    """
    trimmed = (text or "").strip()
    word_count = count_words(trimmed)
    reasons: List[str] = []

    # --- 1. Length floor ---
    too_short = word_count < config.gate_min_words
    if too_short:
        reasons.append("too_short")

    # --- 2. Hard blocks: CTA / ads ---
    hard_blocked = False
    if URL_PATTERN.search(trimmed) and DIRECTIVE_PATTERN.search(trimmed):
        hard_blocked = True
        reasons.append("cta_url_directive")
    if PROMO_PATTERN.search(trimmed):
        hard_blocked = True
        reasons.append("cta_promo")

    # --- 3. Penalties ---
    penalty = 0.0
    if _has_intro_outro(trimmed):
        penalty += INTRO_OUTRO_PENALTY
        reasons.append("intro_outro")
    if SPONSOR_PATTERN.search(trimmed):
        penalty += SPONSOR_PENALTY
        reasons.append("sponsor_language")

    # --- 4. Substance bonuses ---
    framework, framework_reasons = _framework_bucket(trimmed)
    insight, insight_reasons = _insight_bucket(trimmed)
    specificity, specificity_reasons = _specificity_bucket(trimmed)
    reasons.extend(framework_reasons + insight_reasons + specificity_reasons)
    bonus = (
        FRAMEWORK_WEIGHT * framework
        + INSIGHT_WEIGHT * insight
        + SPECIFICITY_WEIGHT * specificity
    )
    if bonus == 0 and penalty == 0 and not (too_short or hard_blocked):
        reasons.append("neutral")

    # --- 5. Score and decision ---
    if too_short or hard_blocked:
        score = 0.0
        passed = False
    else:
        score = _clamp(NEUTRAL_SCORE + bonus - penalty, 0.0, 100.0)
        passed = score >= config.gate_fail_below

    if hard_blocked:
        logger.debug("[gate] CHUNK_HARD_BLOCKED rules=%s", reasons)

    return GateResult(
        score=round(score, 2),
        passed=passed,
        hard_blocked=hard_blocked,
        reasons=list(dict.fromkeys(reasons)),
        word_count=word_count,
        framework_score=framework,
        insight_score=insight,
        specificity_score=specificity,
    )
