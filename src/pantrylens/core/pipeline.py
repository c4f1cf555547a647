"""Pipeline orchestration: wires acquisition, analysis and confirmation together."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pantrylens.adapters.cloud_vision import CloudVisionBackend
from pantrylens.adapters.local_engine import TesseractBackend
from pantrylens.adapters.sample import DeterministicStubBackend, FixedSampleBackend
from pantrylens.config import PipelineConfig
from pantrylens.core.acquisition import CancellationToken, OcrAcquisitionPolicy
from pantrylens.core.aggregate import ReceiptAggregator
from pantrylens.core.confirm import project_candidates
from pantrylens.core.confirm import reconcile as reconcile_items
from pantrylens.core.interfaces import IngredientStore
from pantrylens.core.lexicon import Lexicon, default_lexicon
from pantrylens.core.match_rules import LexiconIngredientMatcher
from pantrylens.core.models import (
    AcquisitionResult,
    AcquisitionState,
    IngredientItem,
    PipelineResult,
    ReceiptAnalysis,
)
from pantrylens.core.registry import OcrBackendRegistry
from pantrylens.errors import AcquisitionCancelled, AcquisitionError

logger = logging.getLogger(__name__)


def build_registry(config: PipelineConfig) -> OcrBackendRegistry:
    """Register one backend per OCR method, configured from config."""
    registry = OcrBackendRegistry()
    vision = config.cloud_vision
    registry.register(
        CloudVisionBackend(api_key=vision.api_key, api_url=vision.api_url, timeout=vision.timeout)
    )
    local = config.local_engine
    registry.register(
        TesseractBackend(
            language=local.language,
            page_seg_mode=local.page_seg_mode,
            char_whitelist=local.char_whitelist,
        )
    )
    registry.register(FixedSampleBackend())
    registry.register(DeterministicStubBackend())
    return registry


def build_aggregator(config: PipelineConfig) -> ReceiptAggregator:
    lexicon = (
        Lexicon.from_templates(config.templates_path) if config.templates_path else default_lexicon()
    )
    matcher = LexiconIngredientMatcher(
        lexicon,
        config.scoring,
        suppress_contained_terms=config.suppress_contained_terms,
    )
    return ReceiptAggregator(lexicon, config.scoring, matcher=matcher)


class PipelineRunner:
    """
    Orchestrates the processing pipeline: acquire -> classify -> match -> aggregate.

    Confirmation is a separate step driven by the user's edits. All stages
    are injected, so implementations can be swapped at runtime.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        aggregator: Optional[ReceiptAggregator] = None,
        registry: Optional[OcrBackendRegistry] = None,
        store: Optional[IngredientStore] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.aggregator = aggregator or build_aggregator(self.config)
        self.registry = registry or build_registry(self.config)
        self.store = store
        self.policy = OcrAcquisitionPolicy(self.registry, self.config.ocr_method)

    def analyze(
        self, image: Any, cancel_token: Optional[CancellationToken] = None
    ) -> PipelineResult:
        """
        Acquire text from an image and analyze it.

        A failed acquisition is recovered with exactly one hop to the fixed
        sample; cancellation is never recovered.
        """
        try:
            acquisition = self.policy.acquire(image, cancel_token)
        except AcquisitionCancelled:
            raise
        except AcquisitionError as exc:
            logger.warning("OCR acquisition failed, analyzing fixed sample instead: %s", exc)
            fallback = self.policy.acquire_fallback(cancel_token)
            acquisition = AcquisitionResult(
                raw_text=fallback.raw_text,
                base_confidence=fallback.base_confidence,
                method=fallback.method,
                requested_method=fallback.requested_method,
                fallback_used=True,
                transitions=tuple(exc.transitions) + fallback.transitions,
            )

        result = self._build_result(acquisition)
        logger.info(
            "Analyzed receipt via %s: %d ingredients, confidence %.2f",
            acquisition.method.value,
            len(result.analysis.ingredients),
            result.combined_confidence,
        )
        return result

    def analyze_text(self, raw_text: str) -> ReceiptAnalysis:
        """Analyze already-recognized receipt text."""
        return self.aggregator.analyze(raw_text)

    def candidates(self, analysis: ReceiptAnalysis) -> list[IngredientItem]:
        return project_candidates(analysis, self.config.confirmation_threshold)

    def confirm(
        self,
        candidate_items: list[IngredientItem],
        manual_additions: list[IngredientItem] | None = None,
    ) -> list[IngredientItem]:
        """Reconcile the user's edits and hand them to the store, if one is wired."""
        items = reconcile_items(candidate_items, manual_additions)
        if self.store is not None:
            self.store.save(items)
            logger.info("Saved %d confirmed ingredients", len(items))
        return items

    def _build_result(self, acquisition: AcquisitionResult) -> PipelineResult:
        analysis = self.aggregator.analyze(acquisition.raw_text)
        reasons = [f"ocr_method:{acquisition.method.value}"]
        if acquisition.fallback_used:
            reasons.append(f"fallback_from:{acquisition.requested_method.value}")
        if AcquisitionState.FAILED in acquisition.transitions:
            reasons.append("primary_failed")
        return PipelineResult(
            acquisition=acquisition,
            analysis=analysis,
            combined_confidence=max(acquisition.base_confidence, analysis.confidence),
            reasons=reasons,
        )


def analyze(image: Any, config: Optional[PipelineConfig] = None) -> ReceiptAnalysis:
    """Stable entrypoint: image in, receipt analysis out."""
    return PipelineRunner(config).analyze(image).analysis


def reconcile(
    candidate_items: list[IngredientItem],
    manual_additions: list[IngredientItem] | None = None,
) -> list[IngredientItem]:
    """Stable entrypoint for the confirmation merge."""
    return reconcile_items(candidate_items, manual_additions)
