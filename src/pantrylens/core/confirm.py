"""Confirmation merge: validate user-edited ingredients and combine duplicates."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, Optional

from pantrylens.core.models import IngredientItem, ItemSource, ReceiptAnalysis
from pantrylens.errors import ValidationError

DEFAULT_UNIT = "ea"

CANONICAL_UNITS = ("ea", "pack", "lb", "oz", "g", "kg", "ml", "L", "gallon")

UNIT_SYNONYMS = {
    "each": "ea",
    "piece": "ea",
    "pieces": "ea",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    "ounce": "oz",
    "ounces": "oz",
    "gram": "g",
    "grams": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "milliliter": "ml",
    "milliliters": "ml",
    "liter": "L",
    "liters": "L",
    "l": "L",
    "gallons": "gallon",
    "gal": "gallon",
    "packs": "pack",
    "pkg": "pack",
}


def normalize_unit(unit: Optional[str]) -> str:
    """Map a unit spelling to its canonical form; anything unrecognized is ``ea``."""
    text = (unit or "").strip()
    if not text:
        return DEFAULT_UNIT
    if text in CANONICAL_UNITS:
        return text
    lowered = text.lower()
    if lowered in UNIT_SYNONYMS:
        return UNIT_SYNONYMS[lowered]
    if lowered in CANONICAL_UNITS:
        return lowered
    return DEFAULT_UNIT


def project_candidates(analysis: ReceiptAnalysis, threshold: float = 0.7) -> list[IngredientItem]:
    """
    Turn analysis matches into editable items.

    Matches at or above the threshold start selected; the rest are offered
    unselected so the user can opt in.
    """
    return [
        IngredientItem(
            id=f"detected-{index}",
            name=match.name,
            quantity=1.0,
            unit=DEFAULT_UNIT,
            selected=match.confidence >= threshold,
            source=ItemSource.DETECTED,
            confidence=match.confidence,
        )
        for index, match in enumerate(analysis.ingredients)
    ]


def manual_item(
    index: int, name: str = "", quantity: float = 1.0, unit: str = DEFAULT_UNIT
) -> IngredientItem:
    return IngredientItem(
        id=f"manual-{index}",
        name=name,
        quantity=quantity,
        unit=unit,
        selected=True,
        source=ItemSource.MANUAL,
    )


def validate(items: list[IngredientItem]) -> None:
    """
    Check selected items, collecting every violation before raising.

    Item numbers are 1-based positions among the selected items.
    """
    if not items:
        raise ValidationError(["Please select at least one ingredient to save"])

    violations: list[str] = []
    for number, item in enumerate(items, start=1):
        if not (item.name or "").strip():
            violations.append(f"Item {number}: Name is required")
        if not item.quantity > 0:
            violations.append(f"Item {number}: Quantity must be greater than 0")
    if violations:
        raise ValidationError(violations)


def merge_items(items: Iterable[IngredientItem]) -> list[IngredientItem]:
    """
    Merge items sharing (lowercased trimmed name, normalized unit).

    The first item of a group keeps its id, name and source. Quantities are
    summed with fsum so the total does not depend on input order.
    """
    groups: dict[tuple[str, str], list[IngredientItem]] = {}
    for item in items:
        unit = normalize_unit(item.unit)
        key = (item.name.strip().lower(), unit)
        groups.setdefault(key, []).append(replace(item, name=item.name.strip(), unit=unit))

    merged: list[IngredientItem] = []
    for group in groups.values():
        first = group[0]
        confidences = [i.confidence for i in group if i.confidence is not None]
        merged.append(
            replace(
                first,
                quantity=math.fsum(i.quantity for i in group),
                confidence=max(confidences) if confidences else None,
            )
        )
    return merged


def reconcile(
    candidate_items: list[IngredientItem],
    manual_additions: list[IngredientItem] | None = None,
) -> list[IngredientItem]:
    """
    Validate and merge the user's confirmed ingredients.

    Raises:
        ValidationError: If nothing is selected or a selected item has an
            empty name or a non-positive quantity
    """
    combined = list(candidate_items) + list(manual_additions or [])
    selected = [item for item in combined if item.selected]
    validate(selected)
    return merge_items(selected)
