"""
Test Fixtures

Shared test data for the Provider Relay test suite: credential constants,
canned upstream responses and the FakeProviders stand-in that serves every
upstream API through httpx.MockTransport.
"""

import asyncio
import json

import httpx

EDENAI_KEY = "eden-test-key"
GEMINI_KEY = "gemini-test-key"
OPENROUTER_KEY = "openrouter-test-key"
GITHUB_TOKEN = "github-test-token"


# =============================================================================
# PROVIDER RESPONSE FACTORIES
# =============================================================================


def edenai_ok(text: str = "Hello from EdenAI", sub: str = "openai") -> httpx.Response:
    return httpx.Response(
        200, json={sub: {"generated_text": text, "status": "success", "cost": 0.0001}}
    )


def edenai_in_band_fail(message: str = "Model overloaded", sub: str = "openai") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            sub: {
                "status": "fail",
                "error": {"type": "ProviderException", "message": message},
            }
        },
    )


def gemini_ok(text: str = "Hello from Gemini") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "candidates": [
                {
                    "content": {"parts": [{"text": text}], "role": "model"},
                    "finishReason": "STOP",
                }
            ]
        },
    )


def openrouter_ok(text: str = "Hello from OpenRouter", model: str = "openai/gpt-4o-mini") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "gen-123",
            "object": "chat.completion",
            "created": 1700000000,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": text},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12},
        },
    )


def error_response(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message, "code": status}})


class FakeProviders:
    """
    In-process stand-in for every upstream API.

    Each provider key maps to an httpx.Response, an exception to raise, or
    a callable taking the request. OpenRouter responses may be keyed per
    model. Every request is recorded in `calls` as (provider, model).
    """

    def __init__(self) -> None:
        self.responses: dict = {}
        self.calls: list[tuple[str, str | None]] = []
        self.requests: list[httpx.Request] = []

    def _classify(self, request: httpx.Request) -> tuple[str, str | None]:
        host = request.url.host
        if host == "api.edenai.run" and request.url.path.startswith("/v2/text/chat"):
            body = json.loads(request.content)
            return "edenai", body["providers"][0]
        if host == "api.edenai.run" and request.url.path.startswith("/v2/ocr"):
            return "ocr", None
        if host == "generativelanguage.googleapis.com":
            model = request.url.path.rsplit("/", 1)[-1].split(":")[0]
            return "gemini", model
        if host == "openrouter.ai":
            return "openrouter", json.loads(request.content)["model"]
        if host == "api.github.com":
            return "github", None
        raise AssertionError(f"Unexpected request to {request.url}")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        provider, model = self._classify(request)
        self.calls.append((provider, model))
        self.requests.append(request)

        configured = self.responses.get((provider, model), self.responses.get(provider))
        if configured is None:
            raise AssertionError(f"No fake response configured for {provider}/{model}")
        if isinstance(configured, Exception):
            raise configured
        if callable(configured):
            configured = configured(request)
            if asyncio.iscoroutine(configured):
                configured = await configured
        # Fresh copy so one configured response can serve several requests
        return httpx.Response(
            configured.status_code,
            headers=configured.headers,
            content=configured.content,
        )


async def hang(request: httpx.Request) -> httpx.Response:
    """A provider that never answers in time."""
    await asyncio.sleep(30)
    return httpx.Response(200, json={})
