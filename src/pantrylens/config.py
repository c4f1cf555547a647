"""Pipeline configuration loaded from YAML with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from pantrylens.core.confidence import ScoringWeights
from pantrylens.core.models import OcrMethod
from pantrylens.errors import ConfigurationError

API_KEY_ENV_VARS = ("GOOGLE_VISION_API_KEY", "EXPO_PUBLIC_GOOGLE_VISION_API_KEY")
METHOD_ENV_VAR = "PANTRYLENS_OCR_METHOD"

DEFAULT_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


@dataclass(frozen=True)
class CloudVisionConfig:
    api_key: str = field(default="", repr=False)
    api_url: str = DEFAULT_VISION_URL
    timeout: float = 30.0


@dataclass(frozen=True)
class LocalEngineConfig:
    language: str = "eng"
    page_seg_mode: str = "6"
    char_whitelist: Optional[str] = None


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything the pipeline needs to run.

    Defaults work without a config file; the cloud vision method then falls
    back to the fixed sample unless an API key is set in the environment.
    """

    ocr_method: OcrMethod = OcrMethod.CLOUD_VISION
    cloud_vision: CloudVisionConfig = field(default_factory=CloudVisionConfig)
    local_engine: LocalEngineConfig = field(default_factory=LocalEngineConfig)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    confirmation_threshold: float = 0.7
    suppress_contained_terms: bool = False
    templates_path: Optional[Path] = None


def load_config(
    path: str | Path | None = None, environ: Optional[Mapping[str, str]] = None
) -> PipelineConfig:
    """
    Build a PipelineConfig from an optional YAML file and the environment.

    A missing file yields the defaults. The API key comes from the file,
    or else from GOOGLE_VISION_API_KEY / EXPO_PUBLIC_GOOGLE_VISION_API_KEY;
    PANTRYLENS_OCR_METHOD overrides the configured method.

    Raises:
        ConfigurationError: On an unreadable file or an unknown OCR method
    """
    env = os.environ if environ is None else environ
    data = _read_yaml(Path(path)) if path else {}

    ocr = _section(data, "ocr")
    vision = _section(ocr, "cloud_vision")
    local = _section(ocr, "local_engine")
    confirmation = _section(data, "confirmation")

    method_value = env.get(METHOD_ENV_VAR) or ocr.get("method") or OcrMethod.CLOUD_VISION.value
    api_key = str(vision.get("api_key") or "").strip()
    if not api_key:
        api_key = next((env[name].strip() for name in API_KEY_ENV_VARS if env.get(name)), "")

    try:
        cloud_vision = CloudVisionConfig(
            api_key=api_key,
            api_url=str(vision.get("api_url") or DEFAULT_VISION_URL),
            timeout=float(vision.get("timeout", 30.0)),
        )
        local_engine = LocalEngineConfig(
            language=str(local.get("language", "eng")),
            page_seg_mode=str(local.get("page_seg_mode", "6")),
            char_whitelist=local.get("char_whitelist"),
        )
        scoring = ScoringWeights.from_dict(_section(data, "scoring"))
        threshold = float(confirmation.get("threshold", 0.7))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

    templates = data.get("templates_path")
    return PipelineConfig(
        ocr_method=OcrMethod.parse(method_value),
        cloud_vision=cloud_vision,
        local_engine=local_engine,
        scoring=scoring,
        confirmation_threshold=threshold,
        suppress_contained_terms=bool(data.get("suppress_contained_terms", False)),
        templates_path=Path(templates) if templates else None,
    )


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {path} is not valid YAML") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}
