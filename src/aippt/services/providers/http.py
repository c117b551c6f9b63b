# src/aippt/services/providers/http.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import ProviderFormatError, ProviderHTTPError

log = get_logger(__name__)


def strip_base(url: str) -> str:
    return (url or "").rstrip("/")


def make_client(
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None,
) -> httpx.AsyncClient:
    """One short-lived client per provider call; tests pass an httpx.MockTransport."""
    return httpx.AsyncClient(
        transport=transport,
        timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SEC,
    )


def _decode(r: httpx.Response, url: str) -> Any:
    try:
        return r.json()
    except ValueError:
        raise ProviderFormatError(detail=f"Response from {url} is not JSON", raw=r.text)


async def _send(client: httpx.AsyncClient, method: str, url: str, **kw) -> httpx.Response:
    try:
        r = await client.request(method, url, **kw)
    except httpx.HTTPError as e:
        log.error("provider unreachable url=%s err=%r", url, e)
        raise ProviderHTTPError(provider_status=0, body=str(e) or type(e).__name__, url=url) from e
    if not r.is_success:
        body = r.text
        log.error("provider error status=%s url=%s body=%s", r.status_code, url, body[:500])
        raise ProviderHTTPError(provider_status=r.status_code, body=body, url=url)
    return r


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    json: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    r = await _send(client, "POST", url, json=json, headers=headers)
    return _decode(r, url)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    r = await _send(client, "GET", url, headers=headers)
    return _decode(r, url)


def bearer(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
