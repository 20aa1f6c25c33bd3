"""Async HTTP client for the modelviz API.

Usage::

    async with ApiClient("http://localhost:8000") as api:
        node = await api.fetch_instance("Author", "1")
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from modelviz.errors import ModelVizError
from modelviz.inspector.models import ExpansionResult, InstanceNode

DEFAULT_TIMEOUT = 30.0


class ApiError(ModelVizError):
    """The API answered with a 4xx/5xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        prefix: str = "/api",
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._prefix = prefix.rstrip("/")
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_error:
            return
        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("error") if isinstance(body, dict) else None
        raise ApiError(message or f"HTTP {response.status_code}", response.status_code)

    async def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self._client.get(f"{self._prefix}{path}", params=params)
        self._raise_for_status(response)
        return response.json()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    async def list_models(self) -> list[str]:
        data = await self._get_json("/models")
        return data["models"]

    async def schema(self) -> dict[str, Any]:
        return await self._get_json("/schema")

    async def records(self, model: str, page: int = 1, per_page: int = 25) -> dict[str, Any]:
        return await self._get_json(
            f"/models/{_segment(model)}/records", params={"page": page, "per_page": per_page}
        )

    async def fetch_instance(self, model: str, record_id: str) -> InstanceNode:
        data = await self._get_json(f"/models/{_segment(model)}/{_segment(record_id)}")
        return InstanceNode.from_dict(data["node"])

    async def expand_relation(
        self,
        model: str,
        record_id: str,
        relation: str,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> ExpansionResult:
        params: dict[str, Any] = {"page": page}
        if per_page is not None:
            params["per_page"] = per_page
        data = await self._get_json(
            f"/models/{_segment(model)}/{_segment(record_id)}/relations/{_segment(relation)}",
            params=params,
        )
        return ExpansionResult.from_dict(data)

    async def ask(self, text: str) -> str:
        """Send *text* to the API's assistant passthrough and return its reply."""
        response = await self._client.post(f"{self._prefix}/llm", json={"input": text})
        self._raise_for_status(response)
        return response.json()["response"]
