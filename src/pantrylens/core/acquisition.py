"""OCR acquisition policy: pick a backend, fall back once, report confidence."""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any, Optional

from pantrylens.core.interfaces import OcrBackend
from pantrylens.core.models import AcquisitionResult, AcquisitionState, OcrMethod, OcrResult
from pantrylens.core.registry import OcrBackendRegistry
from pantrylens.errors import AcquisitionCancelled, AcquisitionError, ConfigurationError

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = MappingProxyType(
    {
        OcrMethod.CLOUD_VISION: 0.9,
        OcrMethod.LOCAL_ENGINE: 0.7,
        OcrMethod.FIXED_SAMPLE: 0.6,
        OcrMethod.DETERMINISTIC_STUB: 0.85,
    }
)

FALLBACK_METHOD = OcrMethod.FIXED_SAMPLE


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and an acquisition."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AcquisitionCancelled("OCR acquisition was cancelled")


class OcrAcquisitionPolicy:
    """
    State machine turning an image into raw receipt text.

    trying_primary runs the configured backend. A local-engine failure or
    missing cloud credentials move to trying_fallback, which only ever runs
    the fixed-sample backend, so at most one hop happens. A cloud vision
    failure ends in failed and raises AcquisitionError; recovering from it
    is the pipeline's decision.
    """

    def __init__(self, registry: OcrBackendRegistry, method: OcrMethod | str) -> None:
        self.registry = registry
        self.method = OcrMethod.parse(method)

    def acquire(
        self, image: Any, cancel_token: Optional[CancellationToken] = None
    ) -> AcquisitionResult:
        transitions: list[AcquisitionState] = []
        state = AcquisitionState.TRYING_PRIMARY
        result: Optional[AcquisitionResult] = None

        while True:
            transitions.append(state)
            if state == AcquisitionState.TRYING_PRIMARY:
                _check(cancel_token)
                state, result = self._try_primary(image, cancel_token, transitions)
            elif state == AcquisitionState.TRYING_FALLBACK:
                _check(cancel_token)
                result = self._run(FALLBACK_METHOD, image, cancel_token, fallback_used=True)
                state = AcquisitionState.DONE
            elif state == AcquisitionState.DONE and result is not None:
                return _with_transitions(result, self.method, transitions)
            else:
                raise AcquisitionError(
                    f"OCR acquisition via {self.method.value} failed",
                    transitions=tuple(transitions),
                )

    def acquire_fallback(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> AcquisitionResult:
        """Run the fixed-sample backend directly, as the single recovery hop."""
        _check(cancel_token)
        result = self._run(FALLBACK_METHOD, None, cancel_token, fallback_used=True)
        return _with_transitions(
            result,
            self.method,
            [AcquisitionState.TRYING_FALLBACK, AcquisitionState.DONE],
        )

    def _try_primary(
        self,
        image: Any,
        cancel_token: Optional[CancellationToken],
        transitions: list[AcquisitionState],
    ) -> tuple[AcquisitionState, Optional[AcquisitionResult]]:
        method = self.method
        backend = self._backend(method)

        if method == OcrMethod.CLOUD_VISION and not _has_credentials(backend):
            logger.warning("Cloud vision API key missing or malformed, using fixed sample")
            return AcquisitionState.TRYING_FALLBACK, None

        if method == OcrMethod.LOCAL_ENGINE:
            try:
                return AcquisitionState.DONE, self._run(method, image, cancel_token)
            except AcquisitionCancelled:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.warning("Local OCR engine failed, using fixed sample: %s", exc)
                return AcquisitionState.TRYING_FALLBACK, None

        if method == OcrMethod.CLOUD_VISION:
            try:
                return AcquisitionState.DONE, self._run(method, image, cancel_token)
            except AcquisitionCancelled:
                raise
            except AcquisitionError as exc:
                logger.warning("Cloud vision request failed: %s", exc)
                return AcquisitionState.FAILED, None

        return AcquisitionState.DONE, self._run(method, image, cancel_token)

    def _run(
        self,
        method: OcrMethod,
        image: Any,
        cancel_token: Optional[CancellationToken],
        fallback_used: bool = False,
    ) -> AcquisitionResult:
        ocr: OcrResult = self._backend(method).recognize(image)
        # A result arriving after cancellation is discarded.
        _check(cancel_token)
        raw_text = "\n".join(ocr.lines())
        logger.debug("Acquired %d characters via %s", len(raw_text), method.value)
        return AcquisitionResult(
            raw_text=raw_text,
            base_confidence=BASE_CONFIDENCE[method],
            method=method,
            requested_method=self.method,
            fallback_used=fallback_used,
        )

    def _backend(self, method: OcrMethod) -> OcrBackend:
        backend = self.registry.get(method)
        if backend is None:
            raise ConfigurationError(f"No OCR backend registered for method={method.value!r}")
        return backend


def _check(cancel_token: Optional[CancellationToken]) -> None:
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()


def _has_credentials(backend: OcrBackend) -> bool:
    check = getattr(backend, "has_valid_credentials", None)
    return bool(check()) if callable(check) else True


def _with_transitions(
    result: AcquisitionResult,
    requested: OcrMethod,
    transitions: list[AcquisitionState],
) -> AcquisitionResult:
    return AcquisitionResult(
        raw_text=result.raw_text,
        base_confidence=result.base_confidence,
        method=result.method,
        requested_method=requested,
        fallback_used=result.fallback_used,
        transitions=tuple(transitions),
    )
