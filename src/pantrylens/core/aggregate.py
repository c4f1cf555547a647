"""Whole-receipt synthesis: prices, dates, store info and deduplicated matches."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from dateutil import parser as date_parser

from pantrylens.core.classify_rules import RuleBasedLineClassifier
from pantrylens.core.confidence import ScoringWeights, clamp_confidence, combine_confidences
from pantrylens.core.interfaces import IngredientMatcher, LineClassifier
from pantrylens.core.lexicon import Lexicon, default_lexicon
from pantrylens.core.match_rules import PRICE_PATTERN, LexiconIngredientMatcher
from pantrylens.core.models import IngredientMatch, LineTag, ReceiptAnalysis

logger = logging.getLogger(__name__)

NUMERIC_DATE_PATTERN = re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2}")
TEXT_DATE_PATTERN = re.compile(r"[A-Za-z]+ \d{1,2},? \d{4}")
DATE_PATTERN = re.compile(f"{NUMERIC_DATE_PATTERN.pattern}|{TEXT_DATE_PATTERN.pattern}")


def extract_prices(text: str) -> list[str]:
    return PRICE_PATTERN.findall(text)


def extract_dates(text: str) -> list[str]:
    """
    Find date-like tokens in the text.

    Numeric forms are kept as found. The "<word> D, YYYY" form only counts
    when the word is something dateutil understands, so "Items 12 2024"
    is not taken for a date.
    """
    dates: list[str] = []
    for candidate in DATE_PATTERN.findall(text):
        if TEXT_DATE_PATTERN.fullmatch(candidate) and not _is_parseable_date(candidate):
            continue
        dates.append(candidate)
    return dates


def _is_parseable_date(value: str) -> bool:
    try:
        date_parser.parse(value)
    except (ValueError, OverflowError):
        return False
    return True


def total_amount(prices: Iterable[str]) -> str | None:
    """Largest price formatted as $<amount>, or None without prices."""
    amounts = [float(p.replace("$", "")) for p in prices]
    if not amounts:
        return None
    return f"${max(amounts):.2f}"


def _is_verbatim(match: IngredientMatch) -> bool:
    return any(r == "explicit_list" or r.startswith("line_item:") for r in match.reasons)


def deduplicate_matches(matches: Iterable[IngredientMatch]) -> list[IngredientMatch]:
    """
    Keep the highest-confidence match per case-insensitive name.

    On a confidence tie a name taken verbatim from the receipt (explicit
    list or line item) beats a bare lexicon term, otherwise the first
    occurrence wins. Output follows first-seen order, so applying this
    twice changes nothing.
    """
    best: dict[str, IngredientMatch] = {}
    for match in matches:
        key = match.name.lower()
        current = best.get(key)
        if (
            current is None
            or match.confidence > current.confidence
            or (
                match.confidence == current.confidence
                and _is_verbatim(match)
                and not _is_verbatim(current)
            )
        ):
            best[key] = match
    return list(best.values())


class ReceiptAggregator:
    """Turn raw receipt text into one ReceiptAnalysis."""

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        weights: ScoringWeights | None = None,
        classifier: LineClassifier | None = None,
        matcher: IngredientMatcher | None = None,
    ) -> None:
        self.lexicon = lexicon or default_lexicon()
        self.weights = weights or ScoringWeights()
        self.classifier: LineClassifier = classifier or RuleBasedLineClassifier(self.lexicon)
        self.matcher: IngredientMatcher = matcher or LexiconIngredientMatcher(
            self.lexicon, self.weights
        )

    def analyze(self, raw_text: str) -> ReceiptAnalysis:
        prices = extract_prices(raw_text)
        dates = extract_dates(raw_text)

        store_info: list[str] = []
        positions: dict[str, int] = {}
        for index, line in enumerate(raw_text.splitlines()):
            positions.setdefault(line.strip(), index)

        candidates: list[IngredientMatch] = []
        candidates.extend(self.matcher.match_ingredient_list(raw_text))
        candidates.extend(self.matcher.match_line_items(raw_text))

        for line in (raw.strip() for raw in raw_text.splitlines()):
            if not line:
                continue
            classification = self.classifier.classify(line)
            if classification.tag == LineTag.STORE_INFO:
                store_info.append(line)
            elif classification.tag == LineTag.CONTENT:
                candidates.extend(self.matcher.match_line(line))

        unique = deduplicate_matches(candidates)
        # Equal confidences keep the order their lines appear on the receipt.
        ingredients = sorted(
            unique, key=lambda m: (-m.confidence, positions.get(m.context, len(positions)))
        )
        confidence = self.overall_confidence(ingredients, raw_text)

        logger.debug(
            "Analyzed receipt: %d candidates, %d ingredients, %d prices, confidence %.2f",
            len(candidates),
            len(ingredients),
            len(prices),
            confidence,
        )
        return ReceiptAnalysis(
            ingredients=tuple(ingredients),
            store_info=tuple(store_info),
            prices=tuple(prices),
            dates=tuple(dates),
            total_amount=total_amount(prices),
            confidence=confidence,
        )

    def overall_confidence(self, ingredients: list[IngredientMatch], raw_text: str) -> float:
        if not ingredients:
            return 0.0
        weights = self.weights
        confidence = combine_confidences([m.confidence for m in ingredients], method="average")
        count = len(ingredients)
        if len(raw_text) > weights.long_text_length and count > weights.long_text_min_matches:
            confidence += weights.long_text_bonus
        if count > weights.many_matches:
            confidence += weights.many_matches_bonus
        return round(clamp_confidence(confidence), 4)
