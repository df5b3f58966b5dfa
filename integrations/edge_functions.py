"""
Supabase Edge Functions client.

HTTP implementation of the record source and the sync service. The
functions own the platform credentials and API details; this client only
speaks their JSON contract:

    POST /fetch-products  {"platforms": [...], "filters": {...}}
        -> {"netsuite": [...], "shopify": [...]}
    POST /sync            SyncRequest (camelCase)
        -> {"itemsProcessed", "itemsSucceeded", "itemsFailed", "errors"}

Usage:
    async with EdgeFunctionsClient(base_url, token) as client:
        records = await client.fetch_records(Platform.SHOPIFY)
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from exceptions import MalformedSyncResponseError, SyncTransportError
from integrations.base import RecordSource, SyncService
from models.record import Platform, Record
from models.sync import SyncRequest

logger = structlog.get_logger(__name__)


# Product keys with a typed home on Record; the rest become extensions
_CORE_KEYS = {"id", "sku", "name", "price", "inventory", "platform", "status", "rawData"}


def record_from_product(item: dict[str, Any], platform: Platform) -> Record:
    """
    Normalize one fetch-products item into a Record.

    Args:
        item: Product as returned by the fetch-products function
        platform: Platform the item was fetched from

    Returns:
        Record with `sku` as natural key and `inventory` as quantity
    """
    if not isinstance(item, dict) or item.get("id") in (None, ""):
        raise MalformedSyncResponseError(
            "Product without an id in fetch-products response",
            details={"platform": platform.value}
        )

    try:
        return Record(
            id=str(item["id"]),
            natural_key=item.get("sku") or None,
            platform=platform,
            name=item.get("name"),
            price=item.get("price"),
            quantity=item.get("inventory"),
            status=item.get("status"),
            extensions={k: v for k, v in item.items() if k not in _CORE_KEYS},
            raw_payload=item.get("rawData", item),
        )
    except PydanticValidationError as e:
        raise MalformedSyncResponseError(
            "Product failed validation in fetch-products response",
            details={"platform": platform.value, "id": str(item["id"]), "errors": [err["msg"] for err in e.errors()]}
        ) from e


class EdgeFunctionsClient(RecordSource, SyncService):
    """
    Async client for the sync edge functions.

    Attributes:
        base_url: Functions base URL (…/functions/v1)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Functions base URL
            token: Bearer token sent with every call
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
        )
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def __aenter__(self) -> "EdgeFunctionsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ===================
    # TRANSPORT
    # ===================

    async def _post(self, function: str, payload: dict[str, Any]) -> Any:
        """
        POST to one function and return the decoded JSON body.

        Raises:
            SyncTransportError: Network failure or non-2xx response
            MalformedSyncResponseError: Body is not JSON
        """
        url = f"{self.base_url}/{function}"
        try:
            response = await self._client.post(url, json=payload, headers=self._headers)
        except httpx.RequestError as e:
            logger.error(
                "edge_function_request_failed",
                function=function,
                error=str(e),
                error_type=type(e).__name__
            )
            raise SyncTransportError(
                f"{function} request failed: {e}",
                details={"function": function}
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "edge_function_error_response",
                function=function,
                status=response.status_code,
                error=message
            )
            raise SyncTransportError(
                message,
                status=response.status_code,
                details={"function": function}
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedSyncResponseError(
                f"{function} returned a non-JSON body",
                details={"function": function}
            ) from e

    # ===================
    # RECORD SOURCE
    # ===================

    async def fetch_records(
        self,
        platform: Platform,
        filters: Optional[dict[str, Any]] = None
    ) -> list[Record]:
        logger.info("fetching_records", platform=platform.value, filters=filters or {})

        body = await self._post(
            "fetch-products",
            {"platforms": [platform.value], "filters": filters or {}}
        )
        if not isinstance(body, dict):
            raise MalformedSyncResponseError("fetch-products response is not an object")

        items = body.get(platform.value) or []
        if not isinstance(items, list):
            raise MalformedSyncResponseError(
                f"fetch-products returned a non-list for {platform.value}"
            )

        records = [record_from_product(item, platform) for item in items]
        logger.info("records_fetched", platform=platform.value, count=len(records))
        return records

    # ===================
    # SYNC SERVICE
    # ===================

    async def sync(self, request: SyncRequest) -> dict[str, Any]:
        logger.info(
            "sync_request_sent",
            direction=request.direction.value,
            mappings=len(request.mappings)
        )

        body = await self._post(
            "sync",
            request.model_dump(mode="json", by_alias=True, exclude_none=True)
        )
        if not isinstance(body, dict):
            raise MalformedSyncResponseError("sync response is not an object")
        return body


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from a failed function call."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"


_edge_functions_client: Optional[EdgeFunctionsClient] = None


def get_edge_functions_client() -> EdgeFunctionsClient:
    """Get or create the EdgeFunctionsClient from settings."""
    global _edge_functions_client
    if _edge_functions_client is None:
        _edge_functions_client = EdgeFunctionsClient(
            base_url=settings.functions_base_url,
            token=settings.supabase_key,
            timeout=settings.edge_functions_timeout_seconds,
        )
    return _edge_functions_client


async def close_edge_functions_client() -> None:
    """Close the shared client, if one was created."""
    global _edge_functions_client
    if _edge_functions_client is not None:
        await _edge_functions_client.close()
        _edge_functions_client = None
