"""Gemini ``generateContent`` client used as the story text generator."""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass
from typing import Any, Final

import httpx

from story_spine.domain.errors import (
    GenerationAuthError,
    GenerationConfigError,
    GenerationNetworkError,
    GenerationQuotaError,
)
from story_spine.domain.ports import ImageInput

DEFAULT_MODEL: Final[str] = "gemini-2.5-pro"
DEFAULT_BASE_URL: Final[str] = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 60.0

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float, *, minimum: float, maximum: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


@dataclass(frozen=True)
class GeminiSettings:
    """Connection settings for the Gemini REST API."""

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> GeminiSettings:
        """Resolve settings from ``STORY_SPINE_GEMINI_*`` environment variables."""
        api_key = (
            os.environ.get("STORY_SPINE_GEMINI_API_KEY", "").strip()
            or os.environ.get("GEMINI_API_KEY", "").strip()
        )
        if not api_key:
            raise GenerationConfigError(
                "Set STORY_SPINE_GEMINI_API_KEY (or GEMINI_API_KEY) to enable text generation."
            )
        return cls(
            api_key=api_key,
            model=os.environ.get("STORY_SPINE_GEMINI_MODEL", "").strip() or DEFAULT_MODEL,
            base_url=(
                os.environ.get("STORY_SPINE_GEMINI_BASE_URL", "").strip() or DEFAULT_BASE_URL
            ).rstrip("/"),
            timeout_seconds=_float_env(
                "STORY_SPINE_GEMINI_TIMEOUT_SECONDS",
                DEFAULT_TIMEOUT_SECONDS,
                minimum=1.0,
                maximum=600.0,
            ),
        )


class GeminiTextGenerator:
    """Text generator backed by the Gemini REST API."""

    def __init__(self, settings: GeminiSettings, *, client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._client = client or httpx.Client(timeout=settings.timeout_seconds)

    @property
    def model(self) -> str:
        return self._settings.model

    def close(self) -> None:
        self._client.close()

    def generate(self, prompt: str, image: ImageInput | None = None) -> str:
        """Send one prompt (plus optional image) and return the reply text."""
        url = f"{self._settings.base_url}/models/{self._settings.model}:generateContent"
        try:
            response = self._client.post(
                url,
                json=build_request_payload(prompt, image),
                headers={"x-goog-api-key": self._settings.api_key},
            )
        except httpx.HTTPError as exc:
            logger.warning("gemini.request failed model=%s error=%s", self.model, exc)
            raise GenerationNetworkError(f"Gemini request failed: {exc}") from exc

        if response.status_code in {401, 403}:
            raise GenerationAuthError(
                f"Gemini rejected credentials (HTTP {response.status_code})."
            )
        if response.status_code == 429:
            raise GenerationQuotaError("Gemini quota exhausted or rate limited (HTTP 429).")
        if response.status_code >= 400:
            raise GenerationNetworkError(
                f"Gemini request failed with HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise GenerationNetworkError("Gemini returned a non-JSON body.") from exc

        text = extract_text(payload)
        logger.debug("gemini.response model=%s chars=%s", self.model, len(text))
        return text


def build_request_payload(prompt: str, image: ImageInput | None = None) -> dict[str, Any]:
    parts: list[dict[str, Any]] = [{"text": prompt}]
    if image is not None:
        parts.append(
            {
                "inline_data": {
                    "mime_type": image.mime_type,
                    "data": base64.b64encode(image.data).decode("ascii"),
                }
            }
        )
    return {"contents": [{"role": "user", "parts": parts}]}


def extract_text(payload: Any) -> str:
    """Concatenate text parts of the first candidate that has any."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list):
        return ""
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            continue
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            continue
        texts = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        joined = "".join(texts)
        if joined.strip():
            return joined
    return ""
