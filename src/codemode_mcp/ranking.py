"""
Keyword relevance scoring for discovered tools.

Items may be mappings or objects; only ``name`` and ``description`` are read.
"""

from typing import Any, List, Optional, Sequence

EXACT_NAME_SCORE = 100
EXACT_DESCRIPTION_SCORE = 50
WORD_NAME_SCORE = 20
WORD_DESCRIPTION_SCORE = 10
SHORT_NAME_BONUS = 5
SHORT_NAME_LENGTH = 30
MIN_WORD_LENGTH = 3


def _field(item: Any, key: str) -> str:
    if isinstance(item, dict):
        value = item.get(key)
    else:
        value = getattr(item, key, None)
    return (value or "").lower()


def score_item(item: Any, query: str) -> int:
    """Relevance of one item for ``query``; 0 means unrelated."""
    query_lower = query.strip().lower()
    if not query_lower:
        return 0
    words = [w for w in query_lower.split() if len(w) >= MIN_WORD_LENGTH]

    name = _field(item, "name")
    description = _field(item, "description")

    score = 0
    if query_lower in name:
        score += EXACT_NAME_SCORE
    if query_lower in description:
        score += EXACT_DESCRIPTION_SCORE

    for word in words:
        if word in name:
            score += WORD_NAME_SCORE
        if word in description:
            score += WORD_DESCRIPTION_SCORE

    if score > 0 and len(name) < SHORT_NAME_LENGTH:
        score += SHORT_NAME_BONUS
    return score


def score(items: Sequence[Any], query: str) -> List[Any]:
    """
    Order ``items`` by relevance to ``query``, most relevant first.

    Items scoring 0 are dropped. Equal scores keep their input order. A blank
    query matches nothing and returns an empty list rather than every item.
    """
    scored = [(score_item(item, query), item) for item in items]
    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda pair: -pair[0])
    return [item for _, item in ranked]


def rank_tools(items: Sequence[Any], query: str, limit: Optional[int] = None) -> List[Any]:
    """Convenience wrapper around :func:`score` with an optional limit."""
    ranked = score(items, query)
    return ranked if limit is None else ranked[:limit]
