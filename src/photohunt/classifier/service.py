"""
Image classifier with pluggable providers.

Providers:
- Gemini: Generative Language REST API over httpx (production)
- Fallback: random verdicts for local booth rehearsals

Network, quota, timeout and unparsable-response failures raise
ClassifierUnavailableError so callers can tell them apart from a negative
verdict.
"""

from __future__ import annotations

import base64
import binascii
import json
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from photohunt.classifier.templates import render_prompt
from photohunt.config import get_settings
from photohunt.exceptions import ClassifierUnavailableError, ValidationError
from photohunt.game.scoring import clamp_confidence

logger = structlog.get_logger()

_DATA_URL = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ClassifierVerdict:
    passed: bool
    confidence: int
    is_screen_capture: bool
    explanation: str


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    mime_type: str


def decode_image(image_data: str, max_bytes: int | None = None) -> DecodedImage:
    """Decode a data URL or bare base64 string into raw bytes.

    Raises ValidationError for empty, malformed or oversized payloads.
    """
    if not image_data or not image_data.strip():
        raise ValidationError("Image data is required")

    mime_type = DEFAULT_MIME_TYPE
    payload = image_data.strip()
    match = _DATA_URL.match(payload)
    if match:
        mime_type = match.group(1).lower()
        payload = payload[match.end():]

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image data is not valid base64") from e

    if not data:
        raise ValidationError("Image data is empty")
    limit = max_bytes if max_bytes is not None else get_settings().max_image_bytes
    if len(data) > limit:
        msg = f"Image is too large ({len(data) // 1024}KB, limit {limit // 1024}KB)"
        raise ValidationError(msg)
    return DecodedImage(data=data, mime_type=mime_type)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def parse_verdict(text: str) -> ClassifierVerdict:
    """Parse the model's JSON answer.

    A screen capture always overrides a positive match.
    """
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        raise ClassifierUnavailableError("Classifier returned no JSON verdict")
    try:
        parsed: dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ClassifierUnavailableError("Classifier returned malformed JSON") from e
    if not isinstance(parsed, dict):
        raise ClassifierUnavailableError("Classifier returned malformed JSON")

    is_screen = _flag(parsed.get("isScreen"))
    keyword_match = _flag(parsed.get("success"))
    try:
        confidence = clamp_confidence(float(parsed.get("confidence") or 0))
    except (TypeError, ValueError):
        confidence = 0
    return ClassifierVerdict(
        passed=keyword_match and not is_screen,
        confidence=confidence,
        is_screen_capture=is_screen,
        explanation=str(parsed.get("explanation") or "AI verification completed."),
    )


class BaseClassifier(ABC):
    """Abstract base class for image classifiers."""

    @abstractmethod
    async def classify(self, image: bytes, mime_type: str, target_word: str) -> ClassifierVerdict:
        """Judge whether the image shows target_word."""


class GeminiClassifier(BaseClassifier):
    """Gemini generateContent over the REST API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def classify(self, image: bytes, mime_type: str, target_word: str) -> ClassifierVerdict:
        if not self.api_key:
            logger.error("classifier_not_configured")
            raise ClassifierUnavailableError("AI verification service not configured")

        body = {
            "contents": [
                {
                    "parts": [
                        {"text": render_prompt(target_word)},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        logger.info("classifier_request", word=target_word, image_kb=len(image) // 1024)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    headers={"x-goog-api-key": self.api_key},
                    json=body,
                )
        except httpx.TimeoutException as e:
            logger.warning("classifier_timeout", timeout=self.timeout)
            raise ClassifierUnavailableError("AI verification timed out. Please try again.") from e
        except httpx.HTTPError as e:
            logger.warning("classifier_network_error", error=str(e))
            raise ClassifierUnavailableError(
                "AI verification service is temporarily unavailable. Please try again."
            ) from e

        if response.status_code == 429:
            logger.warning("classifier_quota_exceeded")
            raise ClassifierUnavailableError("AI verification quota exceeded. Please try again later.")
        if response.status_code >= 400:
            logger.warning("classifier_http_error", status=response.status_code, body=response.text[:500])
            raise ClassifierUnavailableError(
                "AI verification service is temporarily unavailable. Please try again."
            )

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("classifier_unexpected_response", body=response.text[:500])
            raise ClassifierUnavailableError("Error parsing AI response. Please try again.") from e

        return parse_verdict(text)


class FallbackClassifier(BaseClassifier):
    """Random verdicts (70% pass, confidence 70-100) for rehearsals without an API key."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def classify(self, image: bytes, mime_type: str, target_word: str) -> ClassifierVerdict:
        passed = self._rng.random() > 0.3
        confidence = self._rng.randint(70, 100)
        logger.info("fallback_classifier_used", word=target_word, passed=passed)
        return ClassifierVerdict(
            passed=passed,
            confidence=confidence,
            is_screen_capture=False,
            explanation="Fallback verification used (for testing purposes).",
        )


def _create_classifier() -> BaseClassifier:
    """Create the configured classifier provider."""
    settings = get_settings()
    provider = settings.classifier_provider.lower()

    if provider == "gemini":
        return GeminiClassifier(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.classifier_timeout_seconds,
        )
    if provider == "fallback":
        return FallbackClassifier()
    msg = f"Unknown classifier provider: {provider}"
    raise ValueError(msg)


_classifier: BaseClassifier | None = None


def get_classifier() -> BaseClassifier:
    """Get or create the classifier singleton (FastAPI dependency)."""
    global _classifier  # noqa: PLW0603
    if _classifier is None:
        _classifier = _create_classifier()
    return _classifier


def reset_classifier() -> None:
    """Reset the singleton (useful for testing)."""
    global _classifier  # noqa: PLW0603
    _classifier = None
