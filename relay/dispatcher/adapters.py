"""
Provider Adapters - Provider-specific request building and result extraction.

This module handles the actual API calls to the text-generation providers
(EdenAI, Gemini, OpenRouter), hiding each provider's request and response
schema behind one contract:

    attempt(clients, prompt, model, credential) -> AttemptOutcome

Adapters never raise for provider problems. Non-2xx answers, empty output
and transport exceptions all come back as AttemptFailure so the dispatcher
can move on to the next candidate. Cancellation (from TimeoutGuard) is not
caught and propagates normally.

Key components:
- build_*_request(): pure request builders
- extract_*_text(): pure response readers
- attempt_*(): the adapters themselves
- ADAPTERS: lookup table keyed by ProviderId
"""

import json
import logging
import time
from typing import Any, Awaitable, Callable

import httpx
from openai import APIStatusError

from relay.dispatcher.clients import ProviderClients
from relay.dispatcher.outcomes import (
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    ReasonKind,
)
from relay.registry.providers import ProviderId

logger = logging.getLogger(__name__)

EDENAI_CHAT_URL = "https://api.edenai.run/v2/text/chat"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

OPENROUTER_TEMPERATURE = 0.7
OPENROUTER_MAX_TOKENS = 2000

Adapter = Callable[[ProviderClients, str, str | None, str], Awaitable[AttemptOutcome]]


# =============================================================================
# SHARED HELPERS
# =============================================================================


def _dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None at the first missing step."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[key] if isinstance(key, int) else current.get(key)
        if current is None:
            return None
    return current


def _error_message(body: Any) -> str | None:
    """
    Pull a human-readable message out of a provider error body.

    Handles the shapes the providers actually send:
    {"error": {"message": ...}}, {"error": "..."} and {"message": ...}.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if body.get("message"):
        return str(body["message"])
    return None


def _redact(message: str, credential: str | None) -> str:
    """Strip the credential from a message before it is recorded."""
    if credential and credential in message:
        return message.replace(credential, "***")
    return message


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


def _http_failure(
    provider_id: ProviderId,
    model: str | None,
    response: httpx.Response,
    credential: str,
    start_time: float,
) -> AttemptFailure:
    """Build an HTTP_ERROR failure, keeping the embedded message when it parses."""
    try:
        message = _error_message(response.json())
    except (json.JSONDecodeError, ValueError):
        message = None
    if message is None:
        message = response.text[:500] or response.reason_phrase or "HTTP error"

    return AttemptFailure(
        provider_id=provider_id.value,
        model=model,
        reason=ReasonKind.HTTP_ERROR,
        detail=_redact(message, credential),
        status_code=response.status_code,
        latency_ms=_elapsed_ms(start_time),
    )


def _transport_failure(
    provider_id: ProviderId,
    model: str | None,
    error: Exception,
    credential: str,
    start_time: float,
) -> AttemptFailure:
    message = str(error) or type(error).__name__
    return AttemptFailure(
        provider_id=provider_id.value,
        model=model,
        reason=ReasonKind.TRANSPORT_ERROR,
        detail=_redact(message, credential),
        latency_ms=_elapsed_ms(start_time),
    )


def _empty_failure(
    provider_id: ProviderId,
    model: str | None,
    detail: str,
    credential: str,
    start_time: float,
) -> AttemptFailure:
    return AttemptFailure(
        provider_id=provider_id.value,
        model=model,
        reason=ReasonKind.EMPTY_RESULT,
        detail=_redact(detail, credential),
        latency_ms=_elapsed_ms(start_time),
    )


def read_json(response: httpx.Response) -> Any:
    """Parsed JSON body, or None when the body is not JSON."""
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return None


# =============================================================================
# EDENAI
# =============================================================================


def build_edenai_request(prompt: str, model: str | None, credential: str) -> dict:
    """
    Build the EdenAI chat call: flat text plus a providers array.

    `model` is the EdenAI sub-provider (e.g. "openai").
    """
    return {
        "url": EDENAI_CHAT_URL,
        "headers": {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        },
        "json": {"providers": [model or "openai"], "text": prompt},
    }


def extract_edenai_text(data: Any, model: str | None) -> tuple[str | None, str | None]:
    """
    Read generated text from an EdenAI chat response.

    EdenAI answers 200 even when the sub-provider failed, marking it with
    `status: "fail"` inside the sub-provider block.

    Returns:
        (text, None) on success, (None, failure detail) otherwise.
    """
    sub = _dig(data, model or "openai")
    if not isinstance(sub, dict):
        return None, "No provider result in response"

    if sub.get("status") == "fail":
        return None, _error_message(sub) or "Provider failed"

    text = sub.get("generated_text")
    if not text or not str(text).strip():
        return None, "Provider returned no generated_text"
    return str(text), None


async def attempt_edenai(
    clients: ProviderClients, prompt: str, model: str | None, credential: str
) -> AttemptOutcome:
    """
    Attempt generation through EdenAI.

    Args:
        clients: Shared outbound clients.
        prompt: Validated, non-empty prompt.
        model: EdenAI sub-provider name.
        credential: EdenAI API key.

    Returns:
        AttemptSuccess or AttemptFailure.
    """
    provider_id = ProviderId.EDENAI
    start_time = time.perf_counter()
    request = build_edenai_request(prompt, model, credential)

    try:
        response = await clients.http.post(
            request["url"], headers=request["headers"], json=request["json"]
        )
    except Exception as e:
        logger.error(f"EdenAI request failed: {type(e).__name__}")
        return _transport_failure(provider_id, model, e, credential, start_time)

    if not response.is_success:
        return _http_failure(provider_id, model, response, credential, start_time)

    text, problem = extract_edenai_text(read_json(response), model)
    if text is None:
        return _empty_failure(provider_id, model, problem, credential, start_time)

    return AttemptSuccess(
        text=text,
        provider_id=provider_id.value,
        model=model,
        latency_ms=_elapsed_ms(start_time),
    )


# =============================================================================
# GEMINI
# =============================================================================


def build_gemini_request(prompt: str, model: str | None, credential: str) -> dict:
    """Build the Gemini generateContent call; the key travels as a query parameter."""
    return {
        "url": f"{GEMINI_BASE_URL}/{model or 'gemini-1.5-flash'}:generateContent",
        "params": {"key": credential},
        "headers": {"Content-Type": "application/json"},
        "json": {"contents": [{"parts": [{"text": prompt}]}]},
    }


def extract_gemini_text(data: Any) -> tuple[str | None, str | None]:
    """Read candidates[0].content.parts[0].text from a Gemini response."""
    text = _dig(data, "candidates", 0, "content", "parts", 0, "text")
    if text and str(text).strip():
        return str(text), None

    block_reason = _dig(data, "promptFeedback", "blockReason")
    if block_reason:
        return None, f"Prompt blocked: {block_reason}"

    finish_reason = _dig(data, "candidates", 0, "finishReason")
    if finish_reason:
        return None, f"No text returned (finishReason={finish_reason})"
    return None, "No text returned"


async def attempt_gemini(
    clients: ProviderClients, prompt: str, model: str | None, credential: str
) -> AttemptOutcome:
    """Attempt generation through Google Gemini."""
    provider_id = ProviderId.GEMINI
    start_time = time.perf_counter()
    request = build_gemini_request(prompt, model, credential)

    try:
        response = await clients.http.post(
            request["url"],
            params=request["params"],
            headers=request["headers"],
            json=request["json"],
        )
    except Exception as e:
        # httpx errors can carry the URL, which holds the key
        logger.error(f"Gemini request failed: {type(e).__name__}")
        return _transport_failure(provider_id, model, e, credential, start_time)

    if not response.is_success:
        return _http_failure(provider_id, model, response, credential, start_time)

    text, problem = extract_gemini_text(read_json(response))
    if text is None:
        return _empty_failure(provider_id, model, problem, credential, start_time)

    return AttemptSuccess(
        text=text,
        provider_id=provider_id.value,
        model=model,
        latency_ms=_elapsed_ms(start_time),
    )


# =============================================================================
# OPENROUTER
# =============================================================================


def build_openrouter_request(prompt: str, model: str | None) -> dict:
    """Build the OpenAI-style chat completion arguments."""
    return {
        "model": model or "openai/gpt-4o-mini",
        "messages": [{"role": "user", "content": prompt}],
        "temperature": OPENROUTER_TEMPERATURE,
        "max_tokens": OPENROUTER_MAX_TOKENS,
    }


def extract_openrouter_text(completion: Any) -> tuple[str | None, str | None]:
    """
    Read choices[0].message.content from a chat completion.

    OpenRouter may answer 200 with an `error` object instead of choices
    when the upstream model fails mid-request.
    """
    choices = getattr(completion, "choices", None) or []
    if choices:
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content and content.strip():
            return content, None

    embedded = getattr(completion, "error", None)
    if embedded:
        return None, _error_message({"error": embedded}) or "Provider failed"
    return None, "No message content returned"


async def attempt_openrouter(
    clients: ProviderClients, prompt: str, model: str | None, credential: str
) -> AttemptOutcome:
    """
    Attempt generation through OpenRouter.

    Uses the OpenAI SDK against OpenRouter's compatible endpoint, with
    temperature 0.7 and max_tokens 2000.
    """
    provider_id = ProviderId.OPENROUTER
    start_time = time.perf_counter()
    kwargs = build_openrouter_request(prompt, model)

    try:
        completion = await clients.openrouter(credential).chat.completions.create(**kwargs)
    except APIStatusError as e:
        message = _error_message(e.body) or _error_message({"error": e.body}) or e.message
        return AttemptFailure(
            provider_id=provider_id.value,
            model=kwargs["model"],
            reason=ReasonKind.HTTP_ERROR,
            detail=_redact(message, credential),
            status_code=e.status_code,
            latency_ms=_elapsed_ms(start_time),
        )
    except Exception as e:
        logger.error(f"OpenRouter request failed: {type(e).__name__}")
        return _transport_failure(provider_id, kwargs["model"], e, credential, start_time)

    text, problem = extract_openrouter_text(completion)
    if text is None:
        return _empty_failure(provider_id, kwargs["model"], problem, credential, start_time)

    return AttemptSuccess(
        text=text,
        provider_id=provider_id.value,
        model=kwargs["model"],
        latency_ms=_elapsed_ms(start_time),
    )


ADAPTERS: dict[ProviderId, Adapter] = {
    ProviderId.EDENAI: attempt_edenai,
    ProviderId.GEMINI: attempt_gemini,
    ProviderId.OPENROUTER: attempt_openrouter,
}
