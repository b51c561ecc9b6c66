"""
Adapter: Gemini text completion.

Implements RecommendationModelPort over the Gemini ``generateContent``
REST endpoint. The API key travels in a header, never in the URL,
so it cannot leak into access logs.
"""

import logging
from typing import Any, Optional

import httpx

from hedge_signal.domain.signals.errors import (
    ModelResponseInvalidError,
    ModelUnavailableError,
)
from hedge_signal.domain.signals.ports import RecommendationModelPort

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-goog-api-key"


class GeminiModelAdapter(RecommendationModelPort):
    """Calls a Gemini model and returns the first candidate's text.

    Args:
        api_key: Gemini API key; an empty key leaves the adapter unconfigured.
        model: Model name, e.g. ``gemini-1.5-flash``.
        api_base: Base URL of the Generative Language API.
        temperature: Sampling temperature.
        max_output_tokens: Upper bound on reply length.
        timeout_seconds: HTTP timeout; the engine applies its own bound too.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        temperature: float = 0.3,
        max_output_tokens: int = 512,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = f"{api_base.rstrip('/')}/models/{model}:generateContent"
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "maxOutputTokens": self._max_output_tokens,
            },
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers={API_KEY_HEADER: self._api_key},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise ModelUnavailableError(
                f"{self._model} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ModelUnavailableError(
                f"{self._model} unreachable: {type(exc).__name__}"
            ) from exc
        except ValueError as exc:
            raise ModelResponseInvalidError("reply body is not JSON") from exc

        text = _candidate_text(body)
        if text is None:
            raise ModelResponseInvalidError("reply has no candidate text")
        logger.debug("Model %s replied with %d chars", self._model, len(text))
        return text


def _candidate_text(body: Any) -> Optional[str]:
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None
    texts = [part.get("text", "") for part in parts if isinstance(part, dict)]
    joined = "".join(texts)
    return joined or None
