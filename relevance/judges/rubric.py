"""
Judge rubric: the fixed scoring prompt for borderline chunks.

Penalizes generic or canonical material; rewards named frameworks, specific
tactics with reasoning, memorable articulation, and novel claims.
"""

RUBRIC_PROMPT = """You are evaluating a transcript or article chunk for a reader who saves only
material worth re-reading: investors, founders and operators with a high bar.

WHAT GETS SAVED
1. Named frameworks with specific labels ("we call this hyperfluency", "idea maze").
2. Counter-intuitive insights that flip conventional wisdom, with the reasoning.
3. Specific tactics with the deep "why", not just the "what".
4. Clear assessment criteria (how to judge X).
5. Memorable articulation: a phrasing the reader would quote.

WHAT GETS SKIPPED (even when on-topic)
1. Generic or canonical advice everyone already knows ("incentives matter").
2. Biographical detail without a generalizable lesson.
3. Academic density or jargon without a practical takeaway.
4. Meta-commentary, caveats and disclaimers.
5. Lists without synthesis.

SCORING GUIDANCE (0-100)
- Generic/obvious: 10-25
- Topically relevant but shallow: 30-45
- Good insight but incomplete: 50-60
- Save-worthy: 60-75 (needs a named framework, a counter-intuitive claim with
  reasoning, a specific tactic with its why, or clear assessment criteria)
- Exceptional: 75-85
- Groundbreaking: 85+ (rare)
When in doubt, default to 40.

Score each dimension 0-100, then give an overall score.
Respond with a single JSON object:
{{"frameworkClarity": <number>, "insightNovelty": <number>, "tacticalSpecificity": <number>,
  "reasoningDepth": <number>, "overallScore": <number>, "reasoning": "<2-4 short lines>"}}

CHUNK:
{chunk}
"""


def build_judge_prompt(chunk_text: str) -> str:
    """Fill the rubric with one chunk's text."""
    return RUBRIC_PROMPT.format(chunk=chunk_text.strip())
