"""CLI helpers for PantryLens."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

from pantrylens.config import load_config
from pantrylens.core.models import IngredientItem, ItemSource, OcrMethod
from pantrylens.core.pipeline import PipelineRunner, reconcile
from pantrylens.errors import ConfigurationError, ValidationError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="pantrylens")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_cmd = subparsers.add_parser("analyze", help="OCR a receipt image and analyze it")
    analyze_cmd.add_argument("image")
    analyze_cmd.add_argument("--method", choices=[m.value for m in OcrMethod])
    analyze_cmd.add_argument("--config")
    analyze_cmd.add_argument("--out")

    text_cmd = subparsers.add_parser("analyze-text", help="Analyze already-recognized text")
    text_cmd.add_argument("file")
    text_cmd.add_argument("--config")
    text_cmd.add_argument("--out")

    reconcile_cmd = subparsers.add_parser("reconcile", help="Validate and merge edited items")
    reconcile_cmd.add_argument("file")
    reconcile_cmd.add_argument("--out", required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "analyze":
        try:
            config = load_config(args.config)
            if args.method:
                config = replace(config, ocr_method=OcrMethod.parse(args.method))
        except ConfigurationError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        runner = PipelineRunner(config)
        result = runner.analyze(Path(args.image))
        record = dataclass_to_dict(result)
        record["candidates"] = dataclass_to_dict(runner.candidates(result.analysis))
        _write_json(args.out, record)
        return 0

    if args.command == "analyze-text":
        try:
            config = load_config(args.config)
        except ConfigurationError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        raw_text = Path(args.file).read_text(encoding="utf-8")
        analysis = PipelineRunner(config).analyze_text(raw_text)
        _write_json(args.out, dataclass_to_dict(analysis))
        return 0

    if args.command == "reconcile":
        items = [parse_ingredient_item(obj) for obj in _read_json_list(args.file)]
        try:
            merged = reconcile(items, [])
        except ValidationError as exc:
            for violation in exc.violations:
                print(violation, file=sys.stderr)
            return 2
        _write_json(args.out, dataclass_to_dict(merged))
        return 0

    return 1


def _read_json_list(path: str) -> list[dict[str, Any]]:
    with Path(path).open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("items", [])
    return [obj for obj in data if isinstance(obj, dict)]


def _write_json(path: str | Path | None, record: Any) -> None:
    payload = json.dumps(record, ensure_ascii=False, indent=2)
    if path is None:
        print(payload)
        return
    with Path(path).open("w", encoding="utf-8") as handle:
        handle.write(payload + "\n")


def dataclass_to_dict(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        data = asdict(obj)
        return {key: dataclass_to_dict(value) for key, value in data.items()}
    if isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(value) for value in obj]
    if isinstance(obj, dict):
        return {key: dataclass_to_dict(value) for key, value in obj.items()}
    return obj


def parse_ingredient_item(data: dict[str, Any]) -> IngredientItem:
    confidence = data.get("confidence")
    return IngredientItem(
        id=str(data.get("id", "")),
        name=str(data.get("name", "")),
        quantity=float(data.get("quantity", 1.0)),
        unit=str(data.get("unit") or "ea"),
        selected=bool(data.get("selected", True)),
        source=ItemSource(data.get("source", ItemSource.DETECTED.value)),
        confidence=float(confidence) if confidence is not None else None,
    )


if __name__ == "__main__":
    raise SystemExit(main())
