"""
Outbound HTTP clients shared by adapters and pass-through routes.

Clients are created on first use and reused across requests for connection
pooling. They carry no per-request state: credentials are passed on every
call, never stored on the shared httpx client.
"""

import logging

import httpx
from openai import AsyncOpenAI

from relay.config import Settings, get_settings

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class ProviderClients:
    """
    Lazy-initialized outbound clients.

    - http: plain httpx.AsyncClient for EdenAI, Gemini, OCR and GitHub
    - openrouter(): AsyncOpenAI pointed at OpenRouter, one per API key,
      built on top of the same httpx client

    A custom transport can be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._openrouter: dict[str, AsyncOpenAI] = {}

    @property
    def http(self) -> httpx.AsyncClient:
        """
        Get the shared httpx client (lazy initialization).

        The client timeout mirrors the attempt deadline; TimeoutGuard still
        enforces the bound for the whole attempt.
        """
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.attempt_timeout_ms / 1000),
                transport=self._transport,
            )
            logger.debug("Initialized shared httpx client")
        return self._http

    def openrouter(self, api_key: str) -> AsyncOpenAI:
        """
        Get the OpenRouter client for an API key.

        Retries are disabled: the fallback chain moves on to the next
        candidate instead of retrying the same one.
        """
        client = self._openrouter.get(api_key)
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=OPENROUTER_BASE_URL,
                max_retries=0,
                default_headers={
                    "HTTP-Referer": self._settings.openrouter_referer,
                    "X-Title": self._settings.openrouter_title,
                },
                http_client=self.http,
            )
            self._openrouter[api_key] = client
            logger.debug("Initialized OpenRouter client")
        return client

    async def aclose(self) -> None:
        """Close the shared connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self._openrouter.clear()


# Global client instance (singleton pattern)
_clients: ProviderClients | None = None


def get_clients() -> ProviderClients:
    """
    Get the global provider clients instance.

    Uses lazy initialization to create clients only when first needed.

    Returns:
        The singleton ProviderClients instance.
    """
    global _clients
    if _clients is None:
        _clients = ProviderClients()
    return _clients


async def close_clients() -> None:
    """Close and forget the global clients (application shutdown)."""
    global _clients
    if _clients is not None:
        await _clients.aclose()
        _clients = None
