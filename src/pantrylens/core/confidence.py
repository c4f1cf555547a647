"""Scoring weights and confidence helpers for ingredient matching."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from pantrylens.core.models import Category


@dataclass(frozen=True)
class ScoringWeights:
    """
    Every tunable constant of the ingredient scorer.

    Injected into the matcher and the aggregator so the rules can be swept
    without touching the matching code.
    """

    base: float = 0.5
    whole_word_bonus: float = 0.3
    no_price_bonus: float = 0.2
    non_food_penalty: float = 0.1
    """Subtracted once per non-food word occurrence on the line."""

    category_bonus: float = 0.1
    bonus_categories: frozenset[Category] = frozenset(
        {Category.VEGETABLE, Category.FRUIT, Category.PROTEIN, Category.DAIRY}
    )
    threshold: float = 0.3
    """Matches scoring at or below this are discarded."""

    explicit_list_confidence: float = 0.4
    """Confidence of an explicit ingredient-list item not found in the lexicon."""

    long_text_length: int = 100
    long_text_min_matches: int = 3
    long_text_bonus: float = 0.1
    many_matches: int = 10
    many_matches_bonus: float = 0.1

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScoringWeights:
        """Build weights from a config mapping, ignoring unknown keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "bonus_categories":
                kwargs[key] = frozenset(Category(str(v).lower()) for v in value or [])
            elif key in {"long_text_length", "long_text_min_matches", "many_matches"}:
                kwargs[key] = int(value)
            else:
                kwargs[key] = float(value)
        return cls(**kwargs)


def clamp_confidence(score: float) -> float:
    return max(0.0, min(1.0, score))


def combine_confidences(scores: list[float], method: str = "average") -> float:
    """
    Combine multiple confidence scores.

    Args:
        scores: List of confidence scores (0–1)
        method: Combination method ('average', 'min', 'max')

    Returns:
        Combined confidence score (0–1)
    """
    if not scores:
        return 0.0

    if method == "average":
        return sum(scores) / len(scores)
    elif method == "min":
        return min(scores)
    elif method == "max":
        return max(scores)
    else:
        raise ValueError(f"Unknown confidence combination method: {method}")
