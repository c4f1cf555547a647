"""Tests for lexicon matching and confidence scoring."""

from pantrylens.core.confidence import ScoringWeights
from pantrylens.core.match_rules import LexiconIngredientMatcher
from pantrylens.core.models import Category


def _by_name(matches):
    return {m.name: m for m in matches}


def test_whole_word_price_free_bonus_term_scores_one() -> None:
    matcher = LexiconIngredientMatcher()
    confidence, reasons = matcher.score("spinach", "spinach", Category.VEGETABLE)
    assert confidence == 1.0
    assert reasons == [
        "lexicon_term:spinach",
        "whole_word",
        "no_price",
        "category_bonus:vegetable",
    ]


def test_priced_produce_line() -> None:
    matcher = LexiconIngredientMatcher()
    matches = _by_name(matcher.match_line("Organic Spinach - 1 bag - $2.99"))
    spinach = matches["spinach"]
    assert spinach.category == Category.VEGETABLE
    assert spinach.confidence >= 0.8
    assert "no_price" not in spinach.reasons


def test_non_food_words_penalize_per_occurrence() -> None:
    matcher = LexiconIngredientMatcher()
    confidence, reasons = matcher.score(
        "tomato", "tomato paid with visa card", Category.VEGETABLE
    )
    assert confidence == 0.9
    assert "non_food_word:visa" in reasons
    assert "non_food_word:card" in reasons


def test_score_at_threshold_is_rejected() -> None:
    matcher = LexiconIngredientMatcher()
    line = "rumcake tax total $5.00"
    confidence, _ = matcher.score("rum", line, Category.BEVERAGE)
    assert confidence == 0.3
    assert matcher.match_line(line) == []


def test_weights_are_injectable() -> None:
    weights = ScoringWeights(threshold=0.95)
    matcher = LexiconIngredientMatcher(weights=weights)
    assert matcher.match_line("basil $2.99") == []
    assert [m.name for m in matcher.match_line("basil")] == ["basil"]


def test_overlapping_terms_are_all_emitted_by_default() -> None:
    matcher = LexiconIngredientMatcher()
    names = {m.name for m in matcher.match_line("Extra Virgin Olive Oil")}
    assert {"olive oil", "extra virgin olive oil"} <= names


def test_contained_terms_can_be_suppressed() -> None:
    matcher = LexiconIngredientMatcher(suppress_contained_terms=True)
    names = [m.name for m in matcher.match_line("Extra Virgin Olive Oil")]
    assert names == ["extra virgin olive oil"]


def test_inline_ingredient_list_keeps_verbatim_names() -> None:
    matcher = LexiconIngredientMatcher()
    matches = matcher.match_ingredient_list("Ingredients: Flour, Sugar, Salt")
    assert [m.name for m in matches] == ["Flour", "Sugar", "Salt"]
    assert all(m.confidence > 0.3 for m in matches)
    assert all("explicit_list" in m.reasons for m in matches)


def test_ingredient_list_block_stops_at_blank_line() -> None:
    matcher = LexiconIngredientMatcher()
    text = "Ingredients:\n- Fresh Tomatoes\n- Mystery Spice Blend\n\n- Bananas"
    matches = _by_name(matcher.match_ingredient_list(text))
    assert set(matches) == {"Fresh Tomatoes", "Mystery Spice Blend"}
    tomatoes = matches["Fresh Tomatoes"]
    assert tomatoes.confidence == 0.4
    assert tomatoes.category == Category.VEGETABLE
    assert matches["Mystery Spice Blend"].category == Category.UNKNOWN


def test_priced_line_item_keeps_full_name() -> None:
    matcher = LexiconIngredientMatcher()
    matches = matcher.match_line_items("Mozzarella Cheese $6.99")
    assert [m.name for m in matches] == ["Mozzarella Cheese"]
    assert matches[0].category == Category.DAIRY
    assert "line_item:price_anchored" in matches[0].reasons
