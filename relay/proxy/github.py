"""
GitHub REST API pass-through.

/github/<path>?<query> is forwarded to https://api.github.com/<path>?<query>
with the server-side token attached. The upstream status code and JSON body
are returned unchanged; an empty upstream body (204, 304) stays empty.
"""

import logging

from relay.config import Settings, get_settings, has_secret
from relay.dispatcher.clients import ProviderClients, get_clients
from relay.dispatcher.timeout import TimeoutGuard
from relay.errors import ProviderNotConfiguredError
from relay.proxy.response import ProxyResponse

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


def build_github_url(path: str, query: str = "") -> str:
    """Map a relay sub-path and raw query string onto the GitHub API."""
    url = f"{GITHUB_API_URL}/{path.lstrip('/')}"
    if query:
        url = f"{url}?{query}"
    return url


async def forward_github(
    method: str,
    path: str,
    query: str = "",
    body: bytes | None = None,
    settings: Settings | None = None,
    clients: ProviderClients | None = None,
) -> ProxyResponse:
    """
    Forward one request to the GitHub API.

    Raises:
        ProviderNotConfiguredError: If GITHUB_API_TOKEN is not set.
    """
    settings = settings or get_settings()
    clients = clients or get_clients()

    if not has_secret(settings.github_api_token):
        raise ProviderNotConfiguredError("GitHub API token not configured")

    headers = {
        "Accept": "application/vnd.github.v3+json",
        "Authorization": f"Bearer {settings.github_api_token.get_secret_value()}",
        "User-Agent": settings.github_user_agent,
    }
    if body:
        headers["Content-Type"] = "application/json"

    url = build_github_url(path, query)
    logger.info(f"GitHub proxy: {method} /{path.lstrip('/')}")

    try:
        response = await TimeoutGuard(settings.attempt_timeout_ms).run(
            clients.http.request(method, url, headers=headers, content=body or None)
        )
        data = response.json() if response.content else None
    except Exception as e:
        logger.error(f"GitHub proxy failed: {type(e).__name__}")
        return ProxyResponse(
            status_code=500,
            body={"error": "GitHub API request failed", "details": str(e)},
        )

    return ProxyResponse(status_code=response.status_code, body=data)
