"""
Keyword classifier: scores an instruction against ordered keyword sets.
Registration order is priority order; ties go to the earlier category.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple

KeywordEntry = Tuple[str, Sequence[str]]


class KeywordClassifier:
    """Pick the category whose keywords occur most often as substrings."""

    def __init__(self, entries: Sequence[KeywordEntry]):
        self._entries: List[Tuple[str, Tuple[str, ...]]] = [
            (category, tuple(kw.lower() for kw in keywords))
            for category, keywords in entries
        ]

    def scores(self, text: str) -> Dict[str, int]:
        lower = text.lower()
        return {
            category: sum(1 for kw in keywords if kw in lower)
            for category, keywords in self._entries
        }

    def classify(self, text: str) -> Optional[str]:
        lower = text.lower()
        best: Optional[str] = None
        best_score = 0
        for category, keywords in self._entries:
            score = sum(1 for kw in keywords if kw in lower)
            if score > best_score:
                best, best_score = category, score
        return best


__all__ = ["KeywordClassifier", "KeywordEntry"]
