import json
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from typing import Any, Deque, Dict, List

import httpx
import pytest

from app.core.config import Settings
from app.services import pipeline


@pytest.fixture
def anyio_backend() -> str:
    """Force anyio-based tests to run with asyncio backend only."""

    return "asyncio"


def chat_body(content: Any) -> Dict[str, Any]:
    """Wrap assistant text the way the gateway returns it."""

    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class ScriptedGateway:
    """MockTransport handler answering per model from a scripted queue.

    Each scripted reply is assistant text (str or dict, dicts are JSON
    encoded), a prepared ``httpx.Response``, or an exception to raise.
    """

    def __init__(self) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []
        self._replies: Dict[str, Deque[Any]] = defaultdict(deque)

    def script(self, model: str, *replies: Any) -> "ScriptedGateway":
        self._replies[model].extend(replies)
        return self

    def calls_for(self, model: str) -> List[Dict[str, Any]]:
        return [body for body in self.requests if body["model"] == model]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        queue = self._replies[body["model"]]
        if not queue:
            raise AssertionError(f"unexpected call to {body['model']}")
        reply = queue.popleft()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return httpx.Response(200, json=chat_body(reply))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openrouter_api_key=None,
        vision_model="test/vision",
        prompt_model="test/writer",
        request_timeout=5.0,
    )


@pytest.fixture
def gateway(monkeypatch: pytest.MonkeyPatch) -> ScriptedGateway:
    """Route every pipeline gateway call through a scripted mock transport."""

    scripted = ScriptedGateway()

    @asynccontextmanager
    async def fake_client(settings: Settings):
        async with httpx.AsyncClient(
            base_url=settings.openrouter_base_url,
            transport=httpx.MockTransport(scripted.handler),
        ) as client:
            yield client

    monkeypatch.setattr(pipeline, "async_gateway_client", fake_client)
    return scripted
