"""Shared HTTP client management for connection pooling.

The client is created in the FastAPI lifespan and reused by every request
that talks to the GitHub contents API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from shortlink.app.core.config import Settings, settings


_shared_http_client: httpx.AsyncClient | None = None


def build_timeout(config: Settings = settings) -> httpx.Timeout:
    """Build the granular timeout used for store reads and writes."""
    return httpx.Timeout(
        connect=config.httpx_connect_timeout,
        read=config.httpx_read_timeout,
        write=config.httpx_write_timeout,
        pool=config.httpx_pool_timeout,
    )


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client instance.

    Raises:
        RuntimeError: If the HTTP client has not been initialized.
    """
    if _shared_http_client is None:
        raise RuntimeError(
            "HTTP client not initialized. Ensure lifespan context is active."
        )
    return _shared_http_client


@asynccontextmanager
async def init_http_client(
    config: Settings = settings,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Initialize and yield the shared HTTP client.

    This context manager should be used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client():
                yield
    """
    global _shared_http_client

    limits = httpx.Limits(
        max_connections=config.httpx_max_connections,
        max_keepalive_connections=config.httpx_max_keepalive_connections,
        keepalive_expiry=config.httpx_keepalive_expiry,
    )

    _shared_http_client = httpx.AsyncClient(timeout=build_timeout(config), limits=limits)

    try:
        yield _shared_http_client
    finally:
        if _shared_http_client is not None:
            await _shared_http_client.aclose()
            _shared_http_client = None
