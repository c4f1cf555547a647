"""Tests for the packaged lexicon and vocabularies."""

from pathlib import Path

from pantrylens.core.lexicon import Lexicon, default_lexicon
from pantrylens.core.models import Category


def test_default_lexicon_is_loaded_once() -> None:
    assert default_lexicon() is default_lexicon()


def test_lexicon_lookup_is_case_insensitive() -> None:
    lexicon = default_lexicon()
    assert "Spinach" in lexicon
    assert lexicon.category_of("  SPINACH ") == Category.VEGETABLE
    assert lexicon.category_of("mystery box") is None


def test_vocabularies_are_loaded() -> None:
    lexicon = default_lexicon()
    assert "visa" in lexicon.non_food_words
    assert "walmart" in lexicon.store_vocabulary
    # Descriptive words stay neutral so produce lines keep their score.
    assert "organic" not in lexicon.non_food_words


def test_longest_contained_term_prefers_specific_term() -> None:
    entry = default_lexicon().longest_contained_term("Organic Baby Spinach")
    assert entry is not None
    assert entry.term == "baby spinach"
    assert entry.category == Category.VEGETABLE


def test_fuzzy_lookup_tolerates_ocr_typos() -> None:
    lexicon = default_lexicon()
    entry = lexicon.fuzzy_lookup("spinnach")
    assert entry is not None
    assert entry.term == "spinach"
    assert lexicon.fuzzy_lookup("zzzzqqq") is None


def test_custom_templates_directory(tmp_path: Path) -> None:
    (tmp_path / "lexicon.yaml").write_text(
        "lexicon:\n  fruit:\n    - Apple\n    - apple\n    - kiwi\n  snacks:\n    - chips\n",
        encoding="utf-8",
    )
    lexicon = Lexicon.from_templates(tmp_path)
    assert [e.term for e in lexicon.entries()] == ["apple", "kiwi"]
    assert lexicon.non_food_words == frozenset()
    assert lexicon.store_vocabulary == ()
