"""
HTTP client for the remote Flowise API.
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from app.core.config import settings
from app.core.logging import timed_service_call
from app.utils.exceptions import FlowiseServiceError


CHATFLOW_FIELDS = (
    "id", "name", "flowData", "deployed", "isPublic", "type", "workspaceId",
    "createdDate", "updatedDate", "category", "chatbotConfig", "apiConfig",
)


def _chatflow_from_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: payload.get(key) for key in CHATFLOW_FIELDS}


class FlowiseClient:
    """
    Thin wrapper over the Flowise ``/api/v1/chatflows`` resource.

    Every call is awaited once; failures are raised as FlowiseServiceError
    without retrying.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.FLOWISE_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.FLOWISE_API_KEY
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.FLOWISE_TIMEOUT_SECONDS)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        async with timed_service_call("FlowiseClient", method, path=path):
            try:
                response = await self._get_client().request(method, url, headers=self._headers(), **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"Flowise request {method} {url} failed: {e}")
                raise FlowiseServiceError(f"{method} {path} failed", detail=str(e)) from e

            if response.is_error:
                logger.error(f"Flowise request {method} {url} returned {response.status_code}")
                raise FlowiseServiceError(
                    f"{response.status_code} {response.reason_phrase}",
                    status_code=response.status_code,
                    detail=response.text[:500] or None,
                )
        return response

    async def create_chatflow(self, chatflow: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/api/v1/chatflows", json=chatflow)
        created = _chatflow_from_payload(response.json())
        logger.info(f"Created Flowise chatflow {created.get('id')} ('{created.get('name')}')")
        return created

    async def get_chatflow(self, chatflow_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/api/v1/chatflows/{chatflow_id}")
        return _chatflow_from_payload(response.json())

    async def update_chatflow(self, chatflow_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("PUT", f"/api/v1/chatflows/{chatflow_id}", json=changes)
        return _chatflow_from_payload(response.json())

    async def delete_chatflow(self, chatflow_id: str) -> bool:
        await self._request("DELETE", f"/api/v1/chatflows/{chatflow_id}")
        logger.info(f"Deleted Flowise chatflow {chatflow_id}")
        return True

    async def list_chatflows(self, page: int = 1, limit: int = 10) -> List[Dict[str, Any]]:
        response = await self._request(
            "GET", "/api/v1/chatflows", params={"page": page, "limit": limit}
        )
        payload = response.json()
        # Newer Flowise versions wrap the list in {"data": [...]}
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        return [_chatflow_from_payload(item) for item in items]
