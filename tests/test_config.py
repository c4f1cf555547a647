"""Tests for configuration loading."""

from pathlib import Path

import pytest

from pantrylens.config import DEFAULT_VISION_URL, PipelineConfig, load_config
from pantrylens.core.models import Category, OcrMethod
from pantrylens.errors import ConfigurationError


def test_defaults_without_file() -> None:
    config = load_config(None, environ={})
    assert config == PipelineConfig()
    assert config.ocr_method == OcrMethod.CLOUD_VISION
    assert config.cloud_vision.api_url == DEFAULT_VISION_URL
    assert config.cloud_vision.timeout == 30.0
    assert config.local_engine.language == "eng"
    assert config.local_engine.page_seg_mode == "6"
    assert config.confirmation_threshold == 0.7


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "absent.yaml", environ={}) == PipelineConfig()


def test_yaml_file_is_applied(tmp_path: Path) -> None:
    path = tmp_path / "pantrylens.yaml"
    path.write_text(
        "ocr:\n"
        "  method: local-engine\n"
        "  local_engine:\n"
        "    language: deu\n"
        "    page_seg_mode: 4\n"
        "scoring:\n"
        "  threshold: 0.5\n"
        "  bonus_categories: [spice]\n"
        "confirmation:\n"
        "  threshold: 0.9\n"
        "suppress_contained_terms: true\n",
        encoding="utf-8",
    )
    config = load_config(path, environ={})
    assert config.ocr_method == OcrMethod.LOCAL_ENGINE
    assert config.local_engine.language == "deu"
    assert config.local_engine.page_seg_mode == "4"
    assert config.scoring.threshold == 0.5
    assert config.scoring.bonus_categories == frozenset({Category.SPICE})
    assert config.scoring.base == 0.5
    assert config.confirmation_threshold == 0.9
    assert config.suppress_contained_terms


def test_environment_overrides() -> None:
    env = {
        "EXPO_PUBLIC_GOOGLE_VISION_API_KEY": " env-key-0123456789abcdef ",
        "PANTRYLENS_OCR_METHOD": "fixed-sample",
    }
    config = load_config(None, environ=env)
    assert config.cloud_vision.api_key == "env-key-0123456789abcdef"
    assert config.ocr_method == OcrMethod.FIXED_SAMPLE


def test_file_key_wins_over_environment(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("ocr:\n  cloud_vision:\n    api_key: file-key\n", encoding="utf-8")
    config = load_config(path, environ={"GOOGLE_VISION_API_KEY": "env-key"})
    assert config.cloud_vision.api_key == "file-key"


def test_api_key_not_in_repr() -> None:
    config = load_config(None, environ={"GOOGLE_VISION_API_KEY": "secret-key-0123456789"})
    assert "secret-key" not in repr(config)


def test_unknown_method_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("ocr:\n  method: carrier-pigeon\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path, environ={})


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("ocr: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path, environ={})
