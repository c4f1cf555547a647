"""Tests for the Tesseract backend, with pytesseract mocked out."""

import pytest
from PIL import Image

from pantrylens.adapters.local_engine import TesseractBackend
from pantrylens.adapters.local_engine import adapter as local_adapter
from pantrylens.core.models import OcrMethod

TESSERACT_DATA = {
    "text": ["", "MILK", "2.99", "", "EGGS", "3.49"],
    "block_num": [1, 1, 1, 1, 1, 1],
    "par_num": [1, 1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 2, 2, 2],
    "conf": ["-1", "90", "80", "-1", "70", "50"],
}


def test_words_grouped_into_line_blocks(monkeypatch) -> None:
    calls = {}

    def fake_image_to_data(image, lang, config, output_type):
        calls.update(lang=lang, config=config)
        return TESSERACT_DATA

    monkeypatch.setattr(local_adapter.pytesseract, "image_to_data", fake_image_to_data)
    backend = TesseractBackend(char_whitelist="ABC123")
    result = backend.recognize(Image.new("RGB", (20, 20), "white"))

    assert backend.method() == OcrMethod.LOCAL_ENGINE
    assert result.lines() == ["MILK 2.99", "EGGS 3.49"]
    assert result.blocks[0].confidence == pytest.approx(0.85)
    assert result.confidence == pytest.approx(0.725)
    assert calls["lang"] == "eng"
    assert calls["config"] == "--psm 6 -c tessedit_char_whitelist=ABC123"


def test_image_path_is_opened(monkeypatch, tmp_path) -> None:
    path = tmp_path / "receipt.png"
    Image.new("L", (10, 10)).save(path)
    seen = []

    def fake_image_to_data(image, lang, config, output_type):
        seen.append(image.size)
        return {"text": [], "block_num": [], "par_num": [], "line_num": [], "conf": []}

    monkeypatch.setattr(local_adapter.pytesseract, "image_to_data", fake_image_to_data)
    result = TesseractBackend().recognize(path)
    assert seen == [(10, 10)]
    assert result.text == ""
    assert result.confidence is None


def test_unsupported_handle_raises() -> None:
    with pytest.raises(TypeError):
        TesseractBackend().recognize(12345)
