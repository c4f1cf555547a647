"""Canned receipt texts: the fixed fallback sample and the deterministic CI stub."""

from __future__ import annotations

from importlib import resources
from typing import Any

from pantrylens.core.models import OcrMethod, OcrResult


def _read_fixture(name: str) -> str:
    resource = resources.files("pantrylens.adapters.sample").joinpath("fixtures").joinpath(name)
    return resource.read_text(encoding="utf-8")


class FixedSampleBackend:
    """Returns a fixed sample receipt; the target of every fallback hop."""

    fixture_name = "fixed_sample.txt"

    def __init__(self) -> None:
        self._text = _read_fixture(self.fixture_name)

    def method(self) -> OcrMethod:
        return OcrMethod.FIXED_SAMPLE

    def recognize(self, image: Any) -> OcrResult:
        return OcrResult(text=self._text)


class DeterministicStubBackend(FixedSampleBackend):
    """
    Test/CI backend that bypasses OCR entirely.

    The canonical text carries an explicit ingredient list, so it exercises
    the list extraction path rather than priced line items.
    """

    fixture_name = "deterministic_stub.txt"

    def method(self) -> OcrMethod:
        return OcrMethod.DETERMINISTIC_STUB
