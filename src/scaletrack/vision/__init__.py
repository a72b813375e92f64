"""Read weights off bathroom-scale photos with a vision model."""

from scaletrack.vision.images import ScaleReading, encode_image, extract_weight
from scaletrack.vision.readers import OllamaScaleReader, OpenAIScaleReader, get_reader

__all__ = [
    "OllamaScaleReader",
    "OpenAIScaleReader",
    "ScaleReading",
    "encode_image",
    "extract_weight",
    "get_reader",
]
