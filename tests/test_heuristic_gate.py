"""
Heuristic Gate tests.

Covers the hard rules (length floor, CTA blocks), the intro/outro and sponsor
penalties, the substance bonuses, and the neutral default for ambiguous text.
"""

import pytest

from relevance.models import RelevanceConfig
from relevance.stages.heuristic_gate import NEUTRAL_SCORE, evaluate_gate

from tests.conftest import BLAND, SUBSTANTIVE


class TestHardRules:
    """Chunks the gate must always reject."""

    def test_newsletter_cta_fails(self):
        result = evaluate_gate("Subscribe to our newsletter to get weekly insights delivered to your inbox.")
        assert result.passed is False
        assert "cta_promo" in result.reasons

    def test_thanks_for_having_me_fails(self):
        result = evaluate_gate("Thanks for having me on the show. Glad to be here.")
        assert result.passed is False
        assert "intro_outro" in result.reasons

    @pytest.mark.parametrize("n_words", [0, 1, 10, 29])
    def test_under_thirty_words_fails(self, n_words):
        text = " ".join(SUBSTANTIVE.split()[:n_words])
        result = evaluate_gate(text)
        assert result.passed is False
        assert "too_short" in result.reasons
        assert result.score == 0

    def test_none_text_never_raises(self):
        result = evaluate_gate(None)
        assert result.passed is False
        assert result.word_count == 0

    @pytest.mark.parametrize("cta", [
        "Visit https://example.com/offer to learn more.",
        "Sign up at acme.io today.",
        "Head over to www.example.org and subscribe.",
    ])
    def test_url_plus_directive_blocks_regardless_of_content(self, cta):
        result = evaluate_gate(SUBSTANTIVE + " " + cta)
        assert result.hard_blocked is True
        assert result.passed is False
        assert "cta_url_directive" in result.reasons
        assert result.score == 0

    def test_url_without_directive_is_not_blocked(self):
        result = evaluate_gate(SUBSTANTIVE + " The paper is archived at example.com/paper.")
        assert result.hard_blocked is False
        assert result.passed is True


class TestScoring:
    """Coarse quality estimate for chunks that are not blocked."""

    def test_ambiguous_chunk_is_neutral_and_passes(self):
        result = evaluate_gate(BLAND)
        assert result.passed is True
        assert result.score == NEUTRAL_SCORE
        assert result.reasons == ["neutral"]

    def test_substantive_chunk_scores_above_neutral(self):
        result = evaluate_gate(SUBSTANTIVE)
        assert result.passed is True
        assert result.score > NEUTRAL_SCORE
        assert "named_concept" in result.reasons
        assert "causal" in result.reasons
        assert result.framework_score > 0
        assert result.specificity_score > 0

    def test_score_capped_at_100(self):
        dense = " ".join([SUBSTANTIVE] * 4) + (
            " However, contrary to the myth, this is counterintuitive: if you ignore it then costs rise, "
            "which means you should start by measuring 40% of cases, step by step."
        )
        result = evaluate_gate(dense, RelevanceConfig(max_word_count=1000))
        assert 0 <= result.score <= 100

    def test_intro_outro_only_counts_near_boundaries(self):
        middle = BLAND + " thanks for listening " + BLAND
        edge = "Thanks for listening everyone. " + BLAND
        assert "intro_outro" not in evaluate_gate(middle).reasons
        assert "intro_outro" in evaluate_gate(edge).reasons

    def test_intro_outro_penalty_lowers_score(self):
        edge = "Thanks for listening everyone. " + BLAND
        assert evaluate_gate(edge).score < evaluate_gate(BLAND).score

    def test_sponsor_language_is_a_soft_penalty(self):
        result = evaluate_gate(BLAND + " this segment is brought to you by our friends downtown")
        assert "sponsor_language" in result.reasons
        assert result.hard_blocked is False
        assert result.score < NEUTRAL_SCORE

    def test_reasons_are_unique(self):
        result = evaluate_gate(SUBSTANTIVE)
        assert len(result.reasons) == len(set(result.reasons))

    def test_fail_threshold_is_configurable(self):
        strict = RelevanceConfig(gate_fail_below=60)
        assert evaluate_gate(BLAND, strict).passed is False
