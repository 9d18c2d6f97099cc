"""
Shared HTTP plumbing for the dispatchers.
Provides auth headers, a preconfigured async client and a single-shot send.
"""
from typing import Optional

import httpx

from wakecron.config import Settings
from wakecron.schemas import AuthMode, DispatchRequest


# === Auth Headers ===

TOKEN_HEADER = "X-Auth-Token"


def auth_headers(mode: AuthMode, token: str) -> dict[str, str]:
    """
    Build request headers for the given auth mode.

    token-header -> raw secret in X-Auth-Token, nothing else
    bearer       -> Authorization: Bearer <token> plus JSON content type
    """
    mode = AuthMode(mode)
    if mode is AuthMode.TOKEN_HEADER:
        return {TOKEN_HEADER: token}
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


# === HTTP Client ===

def build_http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Async HTTP client with a bounded timeout.

    Usage:
        async with build_http_client(settings) as client:
            response = await send(client, request)
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.HTTP_TIMEOUT_SECONDS,
            connect=settings.HTTP_CONNECT_TIMEOUT_SECONDS,
        ),
        follow_redirects=True,
        transport=transport,
    )


async def send(client: httpx.AsyncClient, request: DispatchRequest) -> httpx.Response:
    """Issue exactly one HTTP call. Transport errors propagate to the caller."""
    return await client.request(
        request.method,
        request.url,
        headers=request.headers,
        json=request.body,
    )
