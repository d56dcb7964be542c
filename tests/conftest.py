"""Shared pytest fixtures for Prompt Relay tests."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Generator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from promptrelay.core.config import RelayConfig
from promptrelay.core.inference import InferenceClient
from promptrelay.core.orchestrator import PromptOrchestrator

# A tiny byte string that starts like a PNG.  Nothing validates it.
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"

LAPIN_REPLY = (
    "Here is the analysis:\n"
    '{"subjects":["rabbit"],"setting":null,"activity":null,"clothing":null,'
    '"objects":null,"decor":null}'
)


class FakeWorkersAI:
    """Scriptable stand-in for the Workers AI run endpoint.

    Records every request and answers chat calls with ``chat_reply`` and
    image calls with ``image_payload``.  Setting ``status_code`` to anything
    other than 200 makes every call fail with that status.

    Attributes:
        requests: ``{"model", "json", "headers"}`` dicts, in call order.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.chat_reply = "A happy rabbit sitting in a meadow."
        self.image_payload = base64.b64encode(PNG_BYTES).decode("ascii")
        self.status_code = 200
        self.success = True

    def handler(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.split("/ai/run/", 1)[1]
        body = json.loads(request.content)
        self.requests.append({"model": model, "json": body, "headers": request.headers})

        if self.status_code != 200:
            return httpx.Response(
                self.status_code,
                json={"success": False, "errors": [{"code": 5000, "message": "upstream down"}]},
            )
        if not self.success:
            return httpx.Response(
                200,
                json={"success": False, "errors": [{"code": 3010, "message": "bad input"}]},
            )

        if "messages" in body:
            result: dict[str, Any] = {"response": self.chat_reply}
        else:
            result = {"image": self.image_payload}
        return httpx.Response(
            200,
            json={"success": True, "errors": [], "messages": [], "result": result},
        )

    @property
    def last_json(self) -> dict[str, Any]:
        return self.requests[-1]["json"]


@pytest.fixture
def test_config() -> RelayConfig:
    """Create a configuration that ignores the environment's .env file.

    Returns:
        RelayConfig instance for testing
    """
    return RelayConfig(
        account_id="test-account",
        api_token="test-token",
        _env_file=None,
    )


@pytest.fixture
def fake_backend() -> FakeWorkersAI:
    """Create a fresh scriptable inference backend."""
    return FakeWorkersAI()


@pytest.fixture
def inference_client(
    test_config: RelayConfig, fake_backend: FakeWorkersAI
) -> Generator[InferenceClient, None, None]:
    """Create an InferenceClient routed to the fake backend.

    Yields:
        InferenceClient instance

    Cleanup:
        The underlying HTTP client is closed after the test completes
    """
    client = InferenceClient(test_config, transport=httpx.MockTransport(fake_backend.handler))
    try:
        yield client
    finally:
        asyncio.run(client.aclose())


@pytest.fixture
def orchestrator(inference_client: InferenceClient, test_config: RelayConfig) -> PromptOrchestrator:
    """Create a PromptOrchestrator using the mocked client."""
    return PromptOrchestrator(inference_client, test_config)


@pytest.fixture
def test_client(orchestrator: PromptOrchestrator):
    """Create a FastAPI TestClient wired to the mocked orchestrator.

    The lifespan handler is not run, so no real network client is created;
    the orchestrator is placed on ``app.state`` directly.

    Yields:
        TestClient instance
    """
    from promptrelay.api.main import app

    app.state.orchestrator = orchestrator
    client = TestClient(app)
    try:
        yield client
    finally:
        del app.state.orchestrator


@pytest.fixture
def png_bytes() -> bytes:
    """The image bytes the fake backend returns, before base64 encoding."""
    return PNG_BYTES


@pytest.fixture
def lapin_reply() -> str:
    """Analysis reply for ``"un lapin"`` matching the documented example."""
    return LAPIN_REPLY
