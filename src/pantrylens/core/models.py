"""Core data models for receipt analysis and ingredient confirmation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pantrylens.errors import ConfigurationError


class Category(str, Enum):
    """Lexicon category of a food term."""

    PROTEIN = "protein"
    DAIRY = "dairy"
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    GRAIN = "grain"
    SPICE = "spice"
    CONDIMENT = "condiment"
    BEVERAGE = "beverage"
    UNKNOWN = "unknown"


class LineTag(str, Enum):
    """Classification of a single receipt line."""

    CONTENT = "content"
    STORE_INFO = "store_info"
    NOISE = "noise"


class ItemSource(str, Enum):
    """Where a confirmation item came from."""

    DETECTED = "detected"
    MANUAL = "manual"


class OcrMethod(str, Enum):
    """OCR acquisition methods that can be configured."""

    CLOUD_VISION = "cloud-vision"
    LOCAL_ENGINE = "local-engine"
    DETERMINISTIC_STUB = "deterministic-stub"
    FIXED_SAMPLE = "fixed-sample"

    @classmethod
    def parse(cls, value: str | OcrMethod) -> OcrMethod:
        """
        Parse a configured method string.

        Raises:
            ConfigurationError: If the value names no known method
        """
        if isinstance(value, OcrMethod):
            return value
        normalized = str(value or "").strip().lower()
        for method in cls:
            if method.value == normalized:
                return method
        choices = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Unknown OCR method: {value!r} (expected one of: {choices})")


class AcquisitionState(str, Enum):
    """States of the OCR acquisition state machine."""

    TRYING_PRIMARY = "trying_primary"
    TRYING_FALLBACK = "trying_fallback"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class LexiconEntry:
    term: str
    category: Category


@dataclass(frozen=True)
class LineClassification:
    """Output of the line classifier."""

    line: str
    tag: LineTag
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class IngredientMatch:
    """
    A scored candidate ingredient.

    Produced by the matcher, one per (term, line) hit or per item of an
    explicit ingredient list.
    """

    name: str
    confidence: float
    """Confidence score 0-1."""

    context: str
    """Source line (or list item) the match was found in."""

    category: Category
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReceiptAnalysis:
    """Immutable result of analyzing one receipt's text."""

    ingredients: tuple[IngredientMatch, ...] = ()
    """Deduplicated matches, sorted by confidence descending."""

    store_info: tuple[str, ...] = ()
    prices: tuple[str, ...] = ()
    dates: tuple[str, ...] = ()
    total_amount: Optional[str] = None
    """Largest extracted price formatted as ``$<amount>``."""

    confidence: float = 0.0
    """Overall confidence 0-1; exactly 0 when no ingredients survive."""


@dataclass(frozen=True)
class OcrFrame:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class OcrBlock:
    text: str
    confidence: Optional[float] = None
    frame: Optional[OcrFrame] = None


@dataclass(frozen=True)
class OcrResult:
    """Raw output of an OCR backend."""

    text: str = ""
    confidence: Optional[float] = None
    blocks: Optional[tuple[OcrBlock, ...]] = None

    def lines(self) -> list[str]:
        """
        Reconstruct receipt lines.

        Structured blocks win over the flat text: one line per block, in
        backend order. Otherwise the flat text is split on newlines.
        """
        if self.blocks:
            return [block.text for block in self.blocks if block.text]
        return re.split(r"\r?\n", self.text or "")


@dataclass(frozen=True)
class AcquisitionResult:
    """Text and base confidence produced by the acquisition policy."""

    raw_text: str
    base_confidence: float
    method: OcrMethod
    """Method that actually produced the text."""

    requested_method: OcrMethod
    fallback_used: bool = False
    transitions: tuple[AcquisitionState, ...] = ()
    """Every state the acquisition state machine passed through."""


@dataclass
class IngredientItem:
    """
    Editable ingredient row shown to the user before saving.

    Mutable: the user changes names, quantities, units and selection.
    """

    id: str
    name: str
    quantity: float = 1.0
    unit: str = "ea"
    selected: bool = True
    source: ItemSource = ItemSource.DETECTED
    confidence: Optional[float] = None


@dataclass
class PipelineResult:
    acquisition: AcquisitionResult
    analysis: ReceiptAnalysis
    combined_confidence: float = 0.0
    """max(base OCR confidence, analysis confidence)."""

    reasons: list[str] = field(default_factory=list)
