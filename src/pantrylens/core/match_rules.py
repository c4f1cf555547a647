"""Lexicon matching and heuristic scoring of ingredient candidates."""

from __future__ import annotations

import re
from typing import Iterator

from pantrylens.core.classify_rules import RuleBasedLineClassifier
from pantrylens.core.confidence import ScoringWeights, clamp_confidence
from pantrylens.core.lexicon import Lexicon, default_lexicon
from pantrylens.core.models import Category, IngredientMatch, LexiconEntry, LineTag

PRICE_PATTERN = re.compile(r"\$?\d+\.\d{2}|\$\d+")

INGREDIENT_LIST_HEADER = re.compile(r"\bingredients?\s*:", re.IGNORECASE)
LIST_SEPARATORS = re.compile(r"[,;•·\n]")
LEADING_BULLET = re.compile(r"^[-*•·–]+\s*")
LEADING_ORDINAL = re.compile(r"^\d+[.)]?\s*")
PARENTHETICAL = re.compile(r"\([^)]*\)")

LINE_ITEM_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("item_prefix", re.compile(r"\bitem\s*:\s*([^\n]+)", re.IGNORECASE)),
    ("product_prefix", re.compile(r"\bproduct\s*:\s*([^\n]+)", re.IGNORECASE)),
    ("price_anchored", re.compile(r"([A-Za-z][A-Za-z ]*[A-Za-z])[ \t]+\$\d+(?:\.\d{2})?")),
)

# Rounding keeps threshold comparisons stable (0.5 - 0.1 - 0.1 is not 0.3 in binary).
_PRECISION = 4


def _line_around(text: str, start: int, end: int) -> str:
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)
    return text[line_start:line_end].strip()


def _clean_list_item(raw: str) -> str:
    item = LEADING_BULLET.sub("", raw.strip())
    item = LEADING_ORDINAL.sub("", item)
    item = PARENTHETICAL.sub("", item)
    return " ".join(item.split()).strip(" .:")


def _clean_line_item(raw: str) -> str:
    item = PRICE_PATTERN.sub("", raw)
    return " ".join(item.split()).strip(" -:.,")


class LexiconIngredientMatcher:
    """
    Scores lexicon terms found in receipt text.

    Three entry points feed the aggregator:
    - match_line: per content line, substring hits against the lexicon
    - match_ingredient_list: explicit "Ingredients:" lists anywhere in the text
    - match_line_items: priced line items and "item:"/"product:" lines
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        weights: ScoringWeights | None = None,
        classifier: RuleBasedLineClassifier | None = None,
        suppress_contained_terms: bool = False,
    ) -> None:
        self.lexicon = lexicon or default_lexicon()
        self.weights = weights or ScoringWeights()
        self.classifier = classifier or RuleBasedLineClassifier(self.lexicon)
        self.suppress_contained_terms = suppress_contained_terms
        self._non_food_patterns = tuple(
            (word, re.compile(rf"(?<![a-z0-9]){re.escape(word)}(?![a-z0-9])"))
            for word in sorted(self.lexicon.non_food_words)
        )

    def score(self, term: str, line: str, category: Category) -> tuple[float, list[str]]:
        """
        Heuristic confidence of a lexicon term found in a line.

        Returns:
            (confidence clamped to 0-1, reason codes)
        """
        weights = self.weights
        lowered = line.lower()
        term = term.lower()
        confidence = weights.base
        reasons = [f"lexicon_term:{term}"]

        if re.search(rf"(?<!\S){re.escape(term)}(?!\S)", lowered):
            confidence += weights.whole_word_bonus
            reasons.append("whole_word")

        if not PRICE_PATTERN.search(line):
            confidence += weights.no_price_bonus
            reasons.append("no_price")

        for word, pattern in self._non_food_patterns:
            occurrences = len(pattern.findall(lowered))
            if occurrences:
                confidence -= weights.non_food_penalty * occurrences
                reasons.append(f"non_food_word:{word}")

        if category in weights.bonus_categories:
            confidence += weights.category_bonus
            reasons.append(f"category_bonus:{category.value}")

        return round(clamp_confidence(confidence), _PRECISION), reasons

    def accepts(self, confidence: float) -> bool:
        return confidence > self.weights.threshold

    def match_line(self, line: str) -> list[IngredientMatch]:
        """Emit one match per lexicon term contained in the line."""
        context = line.strip()
        lowered = context.lower()
        matches: list[IngredientMatch] = []
        for entry in self.lexicon.entries():
            if entry.term not in lowered:
                continue
            confidence, reasons = self.score(entry.term, context, entry.category)
            if not self.accepts(confidence):
                continue
            matches.append(
                IngredientMatch(
                    name=entry.term,
                    confidence=confidence,
                    context=context,
                    category=entry.category,
                    reasons=tuple(reasons),
                )
            )
        if self.suppress_contained_terms:
            matches = _drop_contained(matches)
        return matches

    def match_ingredient_list(self, raw_text: str) -> list[IngredientMatch]:
        """
        Accept items of explicit "Ingredients:" lists.

        Items on the header line are the whole list; a bare header takes the
        following lines up to a blank or noise line. Items found in the
        lexicon keep their heuristic score, others get the lower-trust
        explicit-list confidence.
        """
        matches: list[IngredientMatch] = []
        for source_line, raw_item in self._iter_list_items(raw_text):
            item = _clean_list_item(raw_item)
            if len(item) <= 2:
                continue
            matches.append(self._score_list_item(item, source_line))
        return matches

    def match_line_items(self, raw_text: str) -> list[IngredientMatch]:
        """Promote captured line-item names that contain a lexicon term."""
        matches: list[IngredientMatch] = []
        for kind, pattern in LINE_ITEM_PATTERNS:
            for found in pattern.finditer(raw_text):
                name = _clean_line_item(found.group(1))
                if len(name) <= 2:
                    continue
                source_line = _line_around(raw_text, found.start(), found.end())
                match = self._score_line_item(name, source_line, kind)
                if match is not None:
                    matches.append(match)
        return matches

    def _iter_list_items(self, raw_text: str) -> Iterator[tuple[str, str]]:
        lines = raw_text.splitlines()
        for index, line in enumerate(lines):
            header = INGREDIENT_LIST_HEADER.search(line)
            if not header:
                continue
            rest = line[header.end() :]
            if rest.strip():
                for raw_item in LIST_SEPARATORS.split(rest):
                    yield line.strip(), raw_item
                continue
            for following in lines[index + 1 :]:
                stripped = following.strip()
                if not stripped or INGREDIENT_LIST_HEADER.search(stripped):
                    break
                if self.classifier.classify(stripped).tag == LineTag.NOISE:
                    break
                for raw_item in LIST_SEPARATORS.split(stripped):
                    yield stripped, raw_item

    def _score_list_item(self, item: str, source_line: str) -> IngredientMatch:
        weights = self.weights
        category = self.lexicon.category_of(item)
        if category is not None:
            confidence, reasons = self.score(item, source_line, category)
            reasons.append("explicit_list")
            if not self.accepts(confidence):
                confidence = weights.explicit_list_confidence
                reasons.append("explicit_list_floor")
            return IngredientMatch(
                name=item,
                confidence=confidence,
                context=source_line,
                category=category,
                reasons=tuple(reasons),
            )

        reasons = ["explicit_list", "lexicon_miss"]
        entry: LexiconEntry | None = self.lexicon.longest_contained_term(item)
        if entry is not None:
            reasons.append(f"contains_term:{entry.term}")
        else:
            entry = self.lexicon.fuzzy_lookup(item)
            if entry is not None:
                reasons.append(f"fuzzy_term:{entry.term}")
        return IngredientMatch(
            name=item,
            confidence=weights.explicit_list_confidence,
            context=source_line,
            category=entry.category if entry else Category.UNKNOWN,
            reasons=tuple(reasons),
        )

    def _score_line_item(self, name: str, source_line: str, kind: str) -> IngredientMatch | None:
        lowered = name.lower()
        best: tuple[float, LexiconEntry, list[str]] | None = None
        for entry in self.lexicon.entries():
            if entry.term not in lowered:
                continue
            confidence, reasons = self.score(entry.term, source_line, entry.category)
            if best is None or confidence > best[0]:
                best = (confidence, entry, reasons)
        if best is None or not self.accepts(best[0]):
            return None
        confidence, entry, reasons = best
        reasons.append(f"line_item:{kind}")
        return IngredientMatch(
            name=name,
            confidence=confidence,
            context=source_line,
            category=entry.category,
            reasons=tuple(reasons),
        )


def _drop_contained(matches: list[IngredientMatch]) -> list[IngredientMatch]:
    names = [m.name.lower() for m in matches]
    kept: list[IngredientMatch] = []
    for match, name in zip(matches, names):
        if any(name != other and name in other for other in names):
            continue
        kept.append(match)
    return kept
