"""OCR backend registry."""

from typing import Optional

from pantrylens.core.interfaces import OcrBackend
from pantrylens.core.models import OcrMethod


class OcrBackendRegistry:
    """
    Registry for OCR backends.

    Backends are registered by the acquisition method they implement and
    looked up by the acquisition policy.
    """

    def __init__(self) -> None:
        self._backends: dict[OcrMethod, OcrBackend] = {}

    def register(self, backend: OcrBackend) -> None:
        """
        Register a backend under its method.

        Raises:
            ValueError: If a backend for the same method is already registered
        """
        method = backend.method()
        if method in self._backends:
            raise ValueError(f"OCR backend for method='{method.value}' is already registered")
        self._backends[method] = backend

    def get(self, method: OcrMethod) -> Optional[OcrBackend]:
        return self._backends.get(method)

    def list_all(self) -> dict[OcrMethod, OcrBackend]:
        return dict(self._backends)
