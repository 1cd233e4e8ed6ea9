from __future__ import annotations

import re
from typing import FrozenSet, List

_WORD_RE = re.compile(r"[a-z0-9]+")

MIN_TOKEN_LEN = 2

STOP_WORDS: FrozenSet[str] = frozenset(
    """
    a about above after again all am an and any are as at be because been before being
    below between both but by can could did do does doing down during each few for from
    further had has have having he her here hers him his how if in into is it its itself
    just me more most my no nor not now of off on once only or other our ours out over own
    same she should so some such than that the their theirs them then there these they
    this those through to too under until up very was we were what when where which while
    who whom why will with would you your yours
    tell please give know
    """.split()
)


def tokenize(text: str) -> List[str]:
    """Lower-case, split on non-alphanumerics, drop short tokens and stop words."""
    return [
        t
        for t in _WORD_RE.findall((text or "").strip().lower())
        if len(t) >= MIN_TOKEN_LEN and t not in STOP_WORDS
    ]


def token_set(text: str) -> FrozenSet[str]:
    return frozenset(tokenize(text))


def normalize_query(text: str) -> str:
    """Canonical query form: distinct tokens, sorted. Also the response-cache key."""
    return " ".join(sorted(token_set(text)))
