"""Shared aiohttp request helper with error mapping."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp

from reservas.logging_config import get_logger
from reservas.services.exceptions import (
    AuthError,
    RateLimitError,
    ServiceTimeoutError,
    TransportError,
    UpstreamError,
)

logger: Any = get_logger(__name__)

# Upstream bodies can be long HTML error pages
MAX_LOGGED_BODY = 500


def decode_body(body: str) -> Any:
    """Decode a JSON body, falling back to the raw text."""
    if not body:
        return body
    try:
        return json.loads(body)
    except ValueError:
        return body


def _retry_after(headers: Any) -> float:
    value = headers.get("retry-after") if headers else None
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return 60.0


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    service: str,
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """Send a request and return the decoded response body.

    Args:
        session: Open client session (carries the timeout)
        method: HTTP method
        url: Absolute URL
        service: Service name used in error messages
        payload: Optional JSON body
        headers: Extra request headers

    Returns:
        Decoded JSON, or the body text when it is not JSON

    Raises:
        ServiceTimeoutError: When the request timed out
        TransportError: When the service is unreachable
        AuthError: On 401/403
        RateLimitError: On 429
        UpstreamError: On any other non-2xx status
    """
    try:
        async with session.request(method, url, json=payload, headers=headers) as resp:
            body = await resp.text()
            status = resp.status
            response_headers = resp.headers

    except asyncio.TimeoutError as e:
        logger.error(f"{service} request timed out: {method} {url}")
        raise ServiceTimeoutError(f"{service} request timed out") from e

    except aiohttp.ClientError as e:
        logger.error(f"{service} connection error: {e}")
        raise TransportError(f"Failed to connect to {service}: {e}") from e

    if status in (401, 403):
        logger.error(f"{service} rejected the credential ({status})")
        raise AuthError(f"{service} authentication failed", status=status, body=body)

    if status == 429:
        logger.warning(f"{service} rate limit hit")
        raise RateLimitError(
            f"{service} rate limit exceeded",
            body=body,
            retry_after=_retry_after(response_headers),
        )

    if status >= 400:
        logger.error(f"{service} error: {status} - {body[:MAX_LOGGED_BODY]}")
        raise UpstreamError(f"{service} error: {status}", status=status, body=body)

    return decode_body(body)
