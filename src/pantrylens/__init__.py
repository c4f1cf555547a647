"""PantryLens: receipt OCR to a scored, confirmable ingredient list."""

__version__ = "0.1.0"

# Core exports
from pantrylens.core.models import (
    Category,
    IngredientMatch,
    ReceiptAnalysis,
    IngredientItem,
    OcrMethod,
    OcrResult,
    AcquisitionResult,
    PipelineResult,
)
from pantrylens.core.interfaces import (
    OcrBackend,
    LineClassifier,
    IngredientMatcher,
    IngredientStore,
)
from pantrylens.core.acquisition import CancellationToken, OcrAcquisitionPolicy
from pantrylens.core.aggregate import ReceiptAggregator
from pantrylens.core.classify_rules import RuleBasedLineClassifier
from pantrylens.core.match_rules import LexiconIngredientMatcher
from pantrylens.core.pipeline import PipelineRunner, analyze, reconcile
from pantrylens.core.registry import OcrBackendRegistry
from pantrylens.config import PipelineConfig, load_config

__all__ = [
    "Category",
    "IngredientMatch",
    "ReceiptAnalysis",
    "IngredientItem",
    "OcrMethod",
    "OcrResult",
    "AcquisitionResult",
    "PipelineResult",
    "OcrBackend",
    "LineClassifier",
    "IngredientMatcher",
    "IngredientStore",
    "CancellationToken",
    "OcrAcquisitionPolicy",
    "ReceiptAggregator",
    "RuleBasedLineClassifier",
    "LexiconIngredientMatcher",
    "PipelineRunner",
    "analyze",
    "reconcile",
    "OcrBackendRegistry",
    "PipelineConfig",
    "load_config",
]
