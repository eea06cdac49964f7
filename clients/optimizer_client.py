"""
Async client for the external listing optimizer service.

The optimizer (grading, AI suggestions) runs elsewhere; this client only
forwards requests to it and hands back its JSON.
"""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

OPTIMIZABLE_FIELDS = ("title", "tags", "short_description", "long_description")


class OptimizerClient:
    """Thin async wrapper over the optimizer's HTTP API."""

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_client:
            await self.client.aclose()

    async def _make_request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self.client.request(
                method, path, json=json_data, params=params
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Optimizer returned HTTP %s for %s %s",
                e.response.status_code,
                method,
                path,
            )
            raise
        except Exception as e:
            logger.error("Optimizer request %s %s failed: %s", method, path, e)
            raise

        if response.status_code == 204:
            return {"success": True}
        return response.json()

    async def health_check(self) -> Dict[str, Any]:
        return await self._make_request("GET", "/health")

    async def optimize(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Generate suggestions for every optimizable field."""
        return await self._make_request(
            "POST", "/optimize", json_data={"options": options}
        )

    async def optimize_field(self, field: str, options: Dict[str, Any]) -> Dict[str, Any]:
        if field not in OPTIMIZABLE_FIELDS:
            raise ValueError(
                f"Invalid field: {field}. Valid fields are: {', '.join(OPTIMIZABLE_FIELDS)}"
            )
        return await self._make_request(
            "POST", "/optimize", json_data={"options": options}, params={"field": field}
        )

    async def grade(
        self, asset: Dict[str, Any], vocabulary: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self._make_request(
            "POST", "/grade", json_data={"asset": asset, "vocabulary": vocabulary or {}}
        )
