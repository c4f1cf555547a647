"""Rules deciding whether a receipt line is noise, store info or content."""

from __future__ import annotations

import re

from pantrylens.core.lexicon import Lexicon, default_lexicon
from pantrylens.core.models import LineClassification, LineTag

NOISE_PREFIXES = (
    "total",
    "subtotal",
    "tax",
    "discount",
    "coupon",
    "sale",
    "receipt",
    "invoice",
    "thank you",
    "visit us",
    "store hours",
    "phone",
    "website",
    "email",
    "qty",
    "item",
    "sku",
    "upc",
    "barcode",
)

NOISE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (prefix, re.compile(rf"^{re.escape(prefix)}", re.IGNORECASE)) for prefix in NOISE_PREFIXES
) + (
    ("date", re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}")),
    ("time", re.compile(r"^\d{1,2}:\d{2}")),
)


class RuleBasedLineClassifier:
    """
    Deterministic line classifier.

    Noise patterns are checked first; store vocabulary only applies to lines
    that are not noise. Everything else is candidate content.
    """

    def __init__(self, lexicon: Lexicon | None = None) -> None:
        self.lexicon = lexicon or default_lexicon()
        self.store_vocabulary = tuple(t.lower() for t in self.lexicon.store_vocabulary)

    def classify(self, line: str) -> LineClassification:
        text = line.strip()

        for name, pattern in NOISE_PATTERNS:
            if pattern.match(text):
                return LineClassification(
                    line=line, tag=LineTag.NOISE, reasons=(f"noise_pattern:{name}",)
                )

        lowered = text.lower()
        for keyword in self.store_vocabulary:
            if keyword and keyword in lowered:
                return LineClassification(
                    line=line, tag=LineTag.STORE_INFO, reasons=(f"store_keyword:{keyword}",)
                )

        return LineClassification(line=line, tag=LineTag.CONTENT, reasons=("no_rule_match",))
