"""
Text helpers: word counting and chunk-boundary windows used by the gate.
"""

import re
from typing import Tuple

_WS = re.compile(r"\s+")


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    trimmed = (text or "").strip()
    return 0 if not trimmed else len(_WS.split(trimmed))


def boundary_windows(text: str, words: int = 25) -> Tuple[str, str]:
    """
    Return the first and last `words` words of text.

    Intro/outro phrases only count when they sit near a chunk boundary;
    for short chunks both windows cover the whole text.
    """
    tokens = _WS.split((text or "").strip())
    head = " ".join(tokens[:words])
    tail = " ".join(tokens[-words:])
    return head, tail
