"""Image encoding and weight extraction from model replies."""

from __future__ import annotations

import base64
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from scaletrack.errors import ImageAnalysisError

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")

NO_WEIGHT_REPLY = "No weight detected"

_NUMBER_PATTERN = re.compile(r"\b\d+(\.\d+)?\b")


@dataclass
class ScaleReading:
    """A weight read off a scale photo, with the model's raw reply."""

    weight: float
    raw_response: str


def encode_image(path: Path) -> tuple[str, str]:
    """
    Read an image file as base64.

    Returns:
        (base64 data, mime type)

    Raises:
        ImageAnalysisError: If the file is missing, empty or not a supported image
    """
    if not path.is_file():
        raise ImageAnalysisError(f"No image file at {path}")

    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ImageAnalysisError(
            f"Unsupported image type for {path.name}; "
            f"expected one of {', '.join(SUPPORTED_MIME_TYPES)}"
        )

    data = path.read_bytes()
    if not data:
        raise ImageAnalysisError(f"Image file {path} is empty")

    return base64.b64encode(data).decode("ascii"), mime_type


def extract_weight(text: Optional[str]) -> Optional[float]:
    """
    Pull the first number out of a model reply.

    Returns None if there is no number or it is zero.

    Example:
        >>> extract_weight("The scale shows 82.4 kg")
        82.4
        >>> extract_weight("No weight detected") is None
        True
    """
    if not text:
        return None
    match = _NUMBER_PATTERN.search(text)
    if match is None:
        return None
    value = float(match.group(0))
    return value or None


def reading_from_reply(reply: Optional[str]) -> ScaleReading:
    """
    Turn a raw model reply into a ScaleReading.

    Raises:
        ImageAnalysisError: If the reply has no usable number
    """
    text = (reply or "").strip() or NO_WEIGHT_REPLY
    weight = extract_weight(text)
    if weight is None:
        raise ImageAnalysisError("No weight detected in the image")
    return ScaleReading(weight=weight, raw_response=text)
