"""Chat-completion transport for the OpenRouter model gateway."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Literal, Sequence, TypedDict, Union

import httpx

from app.core.config import Settings
from app.services.errors import EmptyResponseError, GatewayError, GatewayTimeoutError

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 2000


class TextPart(TypedDict):
    type: Literal["text"]
    text: str


class _ImageUrl(TypedDict):
    url: str


class ImagePart(TypedDict):
    type: Literal["image_url"]
    image_url: _ImageUrl


ContentPart = Union[TextPart, ImagePart]


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: Union[str, List[ContentPart]]


def text_part(text: str) -> TextPart:
    return {"type": "text", "text": text}


def image_part(url: str) -> ImagePart:
    return {"type": "image_url", "image_url": {"url": url}}


@asynccontextmanager
async def async_gateway_client(settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    """Yield an ``httpx.AsyncClient`` bound to the gateway and ensure cleanup."""

    client = httpx.AsyncClient(
        base_url=settings.openrouter_base_url,
        timeout=settings.request_timeout,
    )
    try:
        yield client
    finally:
        await client.aclose()


class OpenRouterClient:
    """Sends one chat completion per call and returns the raw assistant text.

    Stateless across calls: the credential travels with every ``send``.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http
        self._settings = settings

    async def send(
        self,
        *,
        model: str,
        messages: Sequence[ChatMessage],
        api_key: str,
        json_mode: bool = False,
        stage: str | None = None,
    ) -> str:
        payload: Dict[str, Any] = {"model": model, "messages": list(messages)}
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": self._settings.openrouter_http_referer,
            "X-Title": self._settings.openrouter_app_title,
        }

        logger.debug(
            "Submitting chat completion",
            extra={"model": model, "stage": stage, "message_count": len(payload["messages"])},
        )

        timeout = self._settings.request_timeout
        try:
            response = await asyncio.wait_for(
                self._http.post("/chat/completions", json=payload, headers=headers),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise GatewayTimeoutError(
                f"Model gateway did not answer within {timeout:g}s", stage=stage
            ) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(
                f"Model gateway request failed: {exc}", body=str(exc), stage=stage
            ) from exc

        if response.status_code >= 400:
            body = response.text[:ERROR_BODY_LIMIT]
            raise GatewayError(
                f"Model gateway error {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
                stage=stage,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise EmptyResponseError(
                "Model gateway returned a non-JSON body", stage=stage
            ) from exc

        _raise_embedded_error(data, stage=stage)

        content = _first_choice_content(data)
        if not content or not content.strip():
            raise EmptyResponseError("Empty response from model gateway", stage=stage)
        return content


def _raise_embedded_error(data: Any, *, stage: str | None) -> None:
    # The gateway can report upstream provider failures inside a 200 body.
    if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
        return
    error = data["error"]
    code = error.get("code")
    status_code = code if isinstance(code, int) else 502
    message = str(error.get("message") or "unknown provider error")
    raise GatewayError(
        f"Model gateway error {status_code}: {message}",
        status_code=status_code,
        body=message,
        stage=stage,
    )


def _first_choice_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [
            str(part.get("text"))
            for part in content
            if isinstance(part, dict) and part.get("text")
        ]
        return "".join(texts) or None
    return None


__all__ = [
    "ChatMessage",
    "ContentPart",
    "OpenRouterClient",
    "async_gateway_client",
    "image_part",
    "text_part",
]
