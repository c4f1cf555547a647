"""Tests for the OCR acquisition state machine."""

import logging

import pytest

from pantrylens.adapters.sample import DeterministicStubBackend, FixedSampleBackend
from pantrylens.core.acquisition import CancellationToken, OcrAcquisitionPolicy
from pantrylens.core.models import AcquisitionState, OcrBlock, OcrMethod, OcrResult
from pantrylens.core.registry import OcrBackendRegistry
from pantrylens.errors import AcquisitionCancelled, AcquisitionError, ConfigurationError


class FakeBackend:
    def __init__(self, method, result=None, error=None, credentials=True, on_call=None):
        self._method = method
        self.result = result or OcrResult(text="fake receipt")
        self.error = error
        self.credentials = credentials
        self.on_call = on_call
        self.calls = 0

    def method(self):
        return self._method

    def has_valid_credentials(self):
        return self.credentials

    def recognize(self, image):
        self.calls += 1
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return self.result


def _registry(*backends) -> OcrBackendRegistry:
    registry = OcrBackendRegistry()
    registry.register(FixedSampleBackend())
    for backend in backends:
        registry.register(backend)
    return registry


def test_cloud_success_uses_primary() -> None:
    cloud = FakeBackend(OcrMethod.CLOUD_VISION)
    result = OcrAcquisitionPolicy(_registry(cloud), "cloud-vision").acquire(b"img")
    assert result.raw_text == "fake receipt"
    assert result.base_confidence == 0.9
    assert result.method == OcrMethod.CLOUD_VISION
    assert not result.fallback_used
    assert result.transitions == (AcquisitionState.TRYING_PRIMARY, AcquisitionState.DONE)


def test_missing_credentials_skip_network_call(caplog) -> None:
    cloud = FakeBackend(OcrMethod.CLOUD_VISION, credentials=False)
    with caplog.at_level(logging.WARNING, logger="pantrylens.core.acquisition"):
        result = OcrAcquisitionPolicy(_registry(cloud), OcrMethod.CLOUD_VISION).acquire(b"img")
    assert [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING] == [
        "Cloud vision API key missing or malformed, using fixed sample"
    ]
    assert cloud.calls == 0
    assert result.method == OcrMethod.FIXED_SAMPLE
    assert result.requested_method == OcrMethod.CLOUD_VISION
    assert result.base_confidence == 0.6
    assert result.fallback_used
    assert result.transitions == (
        AcquisitionState.TRYING_PRIMARY,
        AcquisitionState.TRYING_FALLBACK,
        AcquisitionState.DONE,
    )


def test_cloud_failure_ends_in_failed_state() -> None:
    cloud = FakeBackend(OcrMethod.CLOUD_VISION, error=AcquisitionError("HTTP 503"))
    policy = OcrAcquisitionPolicy(_registry(cloud), OcrMethod.CLOUD_VISION)
    with pytest.raises(AcquisitionError) as excinfo:
        policy.acquire(b"img")
    assert excinfo.value.transitions == (
        AcquisitionState.TRYING_PRIMARY,
        AcquisitionState.FAILED,
    )
    assert cloud.calls == 1


def test_local_engine_failure_falls_back_once(caplog) -> None:
    local = FakeBackend(OcrMethod.LOCAL_ENGINE, error=RuntimeError("tesseract not installed"))
    with caplog.at_level(logging.WARNING, logger="pantrylens.core.acquisition"):
        result = OcrAcquisitionPolicy(_registry(local), OcrMethod.LOCAL_ENGINE).acquire(b"img")
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].getMessage().startswith("Local OCR engine failed")
    assert "tesseract not installed" in warnings[0].getMessage()
    assert local.calls == 1
    assert result.method == OcrMethod.FIXED_SAMPLE
    assert result.base_confidence == 0.6
    assert "Thank you for shopping" in result.raw_text


def test_local_engine_success_confidence() -> None:
    local = FakeBackend(OcrMethod.LOCAL_ENGINE)
    result = OcrAcquisitionPolicy(_registry(local), OcrMethod.LOCAL_ENGINE).acquire(b"img")
    assert result.base_confidence == 0.7


def test_deterministic_stub_confidence() -> None:
    registry = _registry(DeterministicStubBackend())
    result = OcrAcquisitionPolicy(registry, OcrMethod.DETERMINISTIC_STUB).acquire(None)
    assert result.base_confidence == 0.85
    assert result.raw_text.splitlines()[3] == "Ingredients:"


def test_blocks_take_priority_over_flat_text() -> None:
    ocr = OcrResult(
        text="flat text ignored",
        blocks=(OcrBlock(text="Milk 2.99"), OcrBlock(text="Eggs 3.49")),
    )
    local = FakeBackend(OcrMethod.LOCAL_ENGINE, result=ocr)
    result = OcrAcquisitionPolicy(_registry(local), OcrMethod.LOCAL_ENGINE).acquire(b"img")
    assert result.raw_text == "Milk 2.99\nEggs 3.49"


def test_cancelled_before_start_calls_nothing() -> None:
    cloud = FakeBackend(OcrMethod.CLOUD_VISION)
    token = CancellationToken()
    token.cancel()
    with pytest.raises(AcquisitionCancelled):
        OcrAcquisitionPolicy(_registry(cloud), OcrMethod.CLOUD_VISION).acquire(b"img", token)
    assert cloud.calls == 0


def test_late_result_after_cancel_is_discarded() -> None:
    token = CancellationToken()
    local = FakeBackend(OcrMethod.LOCAL_ENGINE, on_call=token.cancel)
    policy = OcrAcquisitionPolicy(_registry(local), OcrMethod.LOCAL_ENGINE)
    with pytest.raises(AcquisitionCancelled):
        policy.acquire(b"img", token)
    assert token.cancelled


def test_unregistered_method_is_configuration_error() -> None:
    policy = OcrAcquisitionPolicy(_registry(), OcrMethod.LOCAL_ENGINE)
    with pytest.raises(ConfigurationError):
        policy.acquire(b"img")


def test_unknown_method_string_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        OcrAcquisitionPolicy(_registry(), "magic-ocr")
