"""Local Tesseract OCR backend."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Optional

import pytesseract
from PIL import Image

from pantrylens.core.models import OcrBlock, OcrMethod, OcrResult

logger = logging.getLogger(__name__)


def _open_image(image: Any) -> Image.Image:
    if isinstance(image, Image.Image):
        return image
    if isinstance(image, (bytes, bytearray)):
        return Image.open(io.BytesIO(image))
    if isinstance(image, (str, Path)):
        return Image.open(Path(image))
    raise TypeError(f"Unsupported image handle for local OCR: {type(image).__name__}")


class TesseractBackend:
    """
    Offline OCR through pytesseract.

    Word confidences from image_to_data are grouped into one block per
    detected text line, so the pipeline sees the engine's own line breaks.
    Failures propagate; the acquisition policy turns them into a fallback.
    """

    def __init__(
        self,
        language: str = "eng",
        page_seg_mode: str = "6",
        char_whitelist: Optional[str] = None,
    ) -> None:
        self.language = language
        self.page_seg_mode = page_seg_mode
        self.char_whitelist = char_whitelist

    def method(self) -> OcrMethod:
        return OcrMethod.LOCAL_ENGINE

    def tesseract_config(self) -> str:
        config = f"--psm {self.page_seg_mode}"
        if self.char_whitelist:
            config += f" -c tessedit_char_whitelist={self.char_whitelist}"
        return config

    def recognize(self, image: Any) -> OcrResult:
        pil_image = _open_image(image)
        data = pytesseract.image_to_data(
            pil_image,
            lang=self.language,
            config=self.tesseract_config(),
            output_type=pytesseract.Output.DICT,
        )
        blocks = _group_lines(data)
        text = "\n".join(block.text for block in blocks)
        confidences = [b.confidence for b in blocks if b.confidence is not None]
        confidence = sum(confidences) / len(confidences) if confidences else None
        logger.debug("Tesseract recognized %d lines", len(blocks))
        return OcrResult(text=text, confidence=confidence, blocks=tuple(blocks))


def _group_lines(data: dict[str, list[Any]]) -> list[OcrBlock]:
    lines: dict[tuple[int, int, int], list[tuple[str, float]]] = {}
    for index, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (
            int(data["block_num"][index]),
            int(data["par_num"][index]),
            int(data["line_num"][index]),
        )
        lines.setdefault(key, []).append((word, float(data["conf"][index])))

    blocks: list[OcrBlock] = []
    for words in lines.values():
        scores = [conf / 100 for _, conf in words if conf >= 0]
        blocks.append(
            OcrBlock(
                text=" ".join(w for w, _ in words),
                confidence=sum(scores) / len(scores) if scores else None,
            )
        )
    return blocks
