"""Google Cloud Vision text detection backend."""

from __future__ import annotations

import base64
import http.client
import json
import logging
import re
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

from pantrylens.core.models import OcrMethod, OcrResult
from pantrylens.errors import AcquisitionError

logger = logging.getLogger(__name__)

API_URL = "https://vision.googleapis.com/v1/images:annotate"

PLACEHOLDER_KEYS = {"YOUR_GOOGLE_VISION_API_KEY", "YOUR_GOOGLE_VISION_API_KEY_HERE"}
API_KEY_PATTERN = re.compile(r"[A-Za-z0-9_\-]{20,}")


def is_valid_api_key(api_key: str | None) -> bool:
    """True when the key is present, not a placeholder and well-formed."""
    if not api_key or api_key in PLACEHOLDER_KEYS:
        return False
    return bool(API_KEY_PATTERN.fullmatch(api_key))


def _image_bytes(image: Any) -> bytes:
    if isinstance(image, (bytes, bytearray)):
        return bytes(image)
    if isinstance(image, (str, Path)):
        return Path(image).read_bytes()
    if hasattr(image, "read"):
        return image.read()
    raise AcquisitionError(f"Unsupported image handle for cloud vision: {type(image).__name__}")


class CloudVisionBackend:
    """
    Backend calling the Vision API images:annotate endpoint.

    One request per image, TEXT_DETECTION only. Any transport or payload
    problem surfaces as AcquisitionError; retrying is the caller's job.
    """

    def __init__(self, api_key: str = "", api_url: str = API_URL, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def method(self) -> OcrMethod:
        return OcrMethod.CLOUD_VISION

    def has_valid_credentials(self) -> bool:
        return is_valid_api_key(self._api_key)

    def recognize(self, image: Any) -> OcrResult:
        if not self.has_valid_credentials():
            raise AcquisitionError("Cloud vision API key is missing or malformed")

        try:
            content = base64.b64encode(_image_bytes(image)).decode("ascii")
        except OSError as exc:
            raise AcquisitionError(f"Failed to read image: {exc}") from exc

        payload = {
            "requests": [
                {
                    "image": {"content": content},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }
        body = json.dumps(payload).encode("utf-8")
        url = f"{self.api_url}?{urllib.parse.urlencode({'key': self._api_key})}"
        req = urllib.request.Request(url, data=body, headers={"Content-Type": "application/json"})

        logger.debug("Calling cloud vision, image payload %d bytes", len(content))
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise AcquisitionError(f"Vision API error: {exc.code}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise AcquisitionError(f"Vision API unreachable: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise AcquisitionError("Vision API returned a non-UTF-8 body") from exc

        return parse_response(raw)


def parse_response(raw: str) -> OcrResult:
    """
    Extract text from an images:annotate response body.

    A well-formed response without detected text is an empty result. A body
    that is not JSON, lacks the responses list, or carries fields of the
    wrong type is malformed.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AcquisitionError("Vision API returned malformed JSON") from exc

    responses = data.get("responses") if isinstance(data, dict) else None
    if not isinstance(responses, list) or not responses:
        raise AcquisitionError("Vision API response has no responses list")

    first = responses[0]
    if not isinstance(first, dict):
        raise AcquisitionError("Vision API response is malformed")
    if "error" in first:
        error = first["error"]
        if not isinstance(error, dict):
            raise AcquisitionError("Vision API response is malformed")
        raise AcquisitionError(f"Vision API error: {error.get('message', 'unknown error')}")

    annotation = first.get("fullTextAnnotation") or {}
    if not isinstance(annotation, dict):
        raise AcquisitionError("Vision API response is malformed")
    text = annotation.get("text", "")
    if not isinstance(text, str):
        raise AcquisitionError("Vision API response is malformed")
    if not text:
        logger.info("Cloud vision found no text in image")
        return OcrResult(text="")

    return OcrResult(text=text)
