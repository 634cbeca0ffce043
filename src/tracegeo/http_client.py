"""Shared HTTP client utilities for remote geo providers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from .constants import BROWSER_USER_AGENT, GEO_TIMEOUT

POOL_LIMITS = httpx.Limits(max_keepalive_connections=10, max_connections=20)


def build_timeout(timeout: float | None) -> httpx.Timeout:
    """Apply the caller's budget to every phase of the request."""

    return httpx.Timeout(timeout if timeout and timeout > 0 else GEO_TIMEOUT)


@asynccontextmanager
async def get_client(
    timeout: float | None = None, retries: int = 0
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured AsyncClient for a single provider call.

    Several geo APIs sit behind bot protection that rejects library user
    agents, so the client announces itself as a desktop browser.
    """
    transport = httpx.AsyncHTTPTransport(retries=retries)

    async with httpx.AsyncClient(
        timeout=build_timeout(timeout),
        limits=POOL_LIMITS,
        headers={
            "accept": "application/json, */*",
            "user-agent": BROWSER_USER_AGENT,
        },
        follow_redirects=True,
        transport=transport,
    ) as client:
        yield client
