"""Scale photo readers backed by OpenAI or a local Ollama server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Protocol

import httpx
from openai import OpenAI, OpenAIError

from scaletrack.config.settings import Settings
from scaletrack.errors import ConfigurationError, ImageAnalysisError
from scaletrack.vision.images import (
    NO_WEIGHT_REPLY,
    ScaleReading,
    encode_image,
    reading_from_reply,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that reads weights from bathroom scale displays. "
    "Extract ONLY the weight value as a number (with decimal point if present). "
    "Return ONLY the number, nothing else. "
    f"If you can't find a weight, reply with '{NO_WEIGHT_REPLY}'."
)

USER_PROMPT = (
    "What is the weight shown on this scale display? Please extract just the number."
)


class ScaleReader(Protocol):  # pragma: no cover - typing helper
    def read_weight(self, image_path: Path) -> ScaleReading: ...


class OpenAIScaleReader:
    """Reads scale photos with an OpenAI vision-capable chat model."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout_s: int = 60):
        if not api_key:
            raise ConfigurationError("An OpenAI API key is required")
        self.model = model
        self._client = OpenAI(api_key=api_key, timeout=timeout_s)

    def read_weight(self, image_path: Path) -> ScaleReading:
        """
        Ask the model for the number on the scale.

        Raises:
            ImageAnalysisError: If the request fails or no weight is found
        """
        image_b64, mime_type = encode_image(image_path)
        data_url = f"data:{mime_type};base64,{image_b64}"

        logger.debug("Sending %s to OpenAI model %s", image_path.name, self.model)
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=300,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": USER_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    },
                ],
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ImageAnalysisError("Error processing image") from e

        reply = response.choices[0].message.content if response.choices else None
        return reading_from_reply(reply)


class OllamaScaleReader:
    """Reads scale photos with a multimodal model on a local Ollama server."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llava:7b",
        timeout_s: int = 60,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._client = httpx.Client(timeout=timeout_s)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self._client.close()

    def read_weight(self, image_path: Path) -> ScaleReading:
        """
        Ask the local model for the number on the scale.

        Raises:
            ImageAnalysisError: On HTTP failure, an unexpected response body,
                or when no weight is found
        """
        image_b64, _ = encode_image(image_path)
        url = f"{self.base_url}/api/generate"
        payload = {
            "model": self.model,
            "prompt": f"{SYSTEM_PROMPT}\n\n{USER_PROMPT}",
            "stream": False,
            "images": [image_b64],
        }

        logger.debug(f"Sending generation request to {url} with model {self.model}")
        try:
            response = self._client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling ollama: {e}")
            raise ImageAnalysisError("Failed to analyze image with Ollama") from e
        except ValueError as e:
            raise ImageAnalysisError("Ollama returned a non-JSON response") from e

        if not isinstance(data, dict) or "response" not in data:
            raise ImageAnalysisError(f"Unexpected response format: {data}")

        return reading_from_reply(data["response"])


def get_reader(settings: Settings, api_key: Optional[str] = None) -> ScaleReader:
    """
    Build the reader selected by vision.provider.

    For OpenAI, the key is `api_key` (typically the user's stored key), else
    the OPENAI_API_KEY environment variable.

    Raises:
        ConfigurationError: If OpenAI is selected and no key is available
    """
    vision = settings.vision
    if vision.provider == "ollama":
        return OllamaScaleReader(
            base_url=vision.ollama_url,
            model=vision.ollama_model,
            timeout_s=vision.timeout_s,
        )

    key = api_key or os.getenv("OPENAI_API_KEY")
    if not key:
        raise ConfigurationError(
            "OpenAI API key not found. Add it with: "
            "scaletrack settings set --openai-key <key>"
        )
    return OpenAIScaleReader(
        api_key=key, model=vision.openai_model, timeout_s=vision.timeout_s
    )
