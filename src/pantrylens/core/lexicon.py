"""Ingredient lexicon and receipt vocabularies loaded from packaged YAML."""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

import yaml
from rapidfuzz import fuzz, process

from pantrylens.core.models import Category, LexiconEntry


def _normalize_text(value: str) -> str:
    return " ".join(value.lower().strip().split())


def _load_yaml(path: Path | None, resource_name: str) -> dict[str, Any]:
    if path:
        file_path = path / resource_name
        if not file_path.exists():
            return {}
        with file_path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    try:
        resource = resources.files("pantrylens.templates").joinpath(resource_name)
        with resource.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except FileNotFoundError:
        return {}


def _ordered_unique(values: list[Any]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if not isinstance(value, str):
            continue
        term = _normalize_text(value)
        if term:
            seen.setdefault(term, None)
    return tuple(seen)


class Lexicon:
    """
    Immutable category -> ordered term set mapping.

    Built once and shared; nothing on this object mutates after __init__,
    so concurrent pipeline runs can read it without locking.
    """

    def __init__(
        self,
        terms_by_category: Mapping[Category, tuple[str, ...]],
        non_food_words: tuple[str, ...] = (),
        store_vocabulary: tuple[str, ...] = (),
    ) -> None:
        self._terms = MappingProxyType(dict(terms_by_category))
        self._entries = tuple(
            LexiconEntry(term=term, category=category)
            for category, terms in self._terms.items()
            for term in terms
        )
        self._first_category: dict[str, Category] = {}
        for entry in self._entries:
            self._first_category.setdefault(entry.term, entry.category)
        self._term_list = list(self._first_category)
        self.non_food_words = frozenset(non_food_words)
        self.store_vocabulary = tuple(store_vocabulary)

    @classmethod
    def from_templates(cls, templates_path: str | Path | None = None) -> Lexicon:
        """
        Load the lexicon and vocabularies from YAML.

        Args:
            templates_path: Directory holding lexicon.yaml, non_food_words.yaml
                and store_vocabulary.yaml. Defaults to the packaged copies.
        """
        base = Path(templates_path) if templates_path else None
        lexicon_data = _load_yaml(base, "lexicon.yaml").get("lexicon", {}) or {}
        terms: dict[Category, tuple[str, ...]] = {}
        for key, values in lexicon_data.items():
            category = _parse_category(str(key))
            if category is None or category == Category.UNKNOWN:
                continue
            terms[category] = _ordered_unique(list(values or []))

        non_food = _load_yaml(base, "non_food_words.yaml").get("non_food_words", []) or []
        stores = _load_yaml(base, "store_vocabulary.yaml").get("store_vocabulary", []) or []
        return cls(terms, _ordered_unique(non_food), _ordered_unique(stores))

    @property
    def categories(self) -> Mapping[Category, tuple[str, ...]]:
        return self._terms

    def entries(self) -> Iterator[LexiconEntry]:
        """Iterate every (term, category) pair in category, then term, order."""
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and _normalize_text(term) in self._first_category

    def category_of(self, term: str) -> Optional[Category]:
        """Category of an exact (case-insensitive) lexicon term, else None."""
        return self._first_category.get(_normalize_text(term))

    def longest_contained_term(self, text: str) -> Optional[LexiconEntry]:
        """Longest lexicon term that appears as a whole word inside text."""
        padded = f" {_normalize_text(text)} "
        best: Optional[LexiconEntry] = None
        for term, category in self._first_category.items():
            if f" {term} " in padded and (best is None or len(term) > len(best.term)):
                best = LexiconEntry(term=term, category=category)
        return best

    def fuzzy_lookup(self, text: str, score_cutoff: float = 90) -> Optional[LexiconEntry]:
        """
        Closest lexicon term to text, tolerating OCR misspellings.

        Returns None when nothing scores at least score_cutoff (0-100).
        """
        query = _normalize_text(text)
        if not query or not self._term_list:
            return None
        best = process.extractOne(
            query, self._term_list, scorer=fuzz.ratio, score_cutoff=score_cutoff
        )
        if best is None:
            return None
        term = best[0]
        return LexiconEntry(term=term, category=self._first_category[term])


def _parse_category(value: str) -> Category | None:
    value = value.lower().strip()
    for category in Category:
        if category.value == value:
            return category
    return None


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    """Process-wide lexicon built from the packaged templates, loaded once."""
    return Lexicon.from_templates()
