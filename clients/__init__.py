"""
Async client for the external optimizer service.
"""

from typing import Optional

import httpx

from core.config import settings

from .optimizer_client import OPTIMIZABLE_FIELDS, OptimizerClient

_client: Optional[httpx.AsyncClient] = None


def get_client() -> httpx.AsyncClient:
    """Get the global async client instance."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            base_url=settings.OPTIMIZER_BASE_URL,
            timeout=settings.OPTIMIZER_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )
    return _client


async def close_client():
    """Close the global async client."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_optimizer_client() -> OptimizerClient:
    return OptimizerClient(base_url=settings.OPTIMIZER_BASE_URL, client=get_client())
