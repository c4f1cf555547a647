"""Protocol definitions for PantryLens backends and stages."""

from typing import Any, Protocol, runtime_checkable

from pantrylens.core.models import (
    IngredientItem,
    IngredientMatch,
    LineClassification,
    OcrMethod,
    OcrResult,
)


@runtime_checkable
class OcrBackend(Protocol):
    """
    OcrBackend protocol: turns an opaque image handle into raw text.

    Each backend is responsible for:
    - Identifying the acquisition method it implements
    - Reading the image handle it is given (path, bytes or image object)
    - Returning flat text and, when available, per-line blocks
    """

    def method(self) -> OcrMethod:
        """Return the acquisition method this backend implements."""
        ...

    def recognize(self, image: Any) -> OcrResult:
        """
        Recognize text in an image.

        Args:
            image: Opaque image handle from the capture collaborator

        Returns:
            OcrResult with text, optional confidence and optional blocks

        Raises:
            AcquisitionError: If the backend is unreachable or its response
                is malformed
        """
        ...


@runtime_checkable
class LineClassifier(Protocol):
    """LineClassifier protocol: tag one receipt line as content, store info or noise."""

    def classify(self, line: str) -> LineClassification:
        """
        Classify a single line of receipt text.

        Args:
            line: One line of OCR output

        Returns:
            LineClassification with tag and reasons
        """
        ...


@runtime_checkable
class IngredientMatcher(Protocol):
    """IngredientMatcher protocol: emit scored ingredient candidates from text."""

    def match_line(self, line: str) -> list[IngredientMatch]:
        """Scored matches for one content line."""
        ...

    def match_ingredient_list(self, raw_text: str) -> list[IngredientMatch]:
        """Matches from explicit "Ingredients:" lists in the whole text."""
        ...

    def match_line_items(self, raw_text: str) -> list[IngredientMatch]:
        """Matches from priced or labelled line items in the whole text."""
        ...


@runtime_checkable
class IngredientStore(Protocol):
    """IngredientStore protocol: persist the confirmed ingredient set."""

    def save(self, items: list[IngredientItem]) -> None:
        """
        Store reconciled ingredients.

        Args:
            items: Validated, merged, unit-normalized items
        """
        ...
