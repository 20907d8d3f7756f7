"""Async client for the trendline REST API and its OHLC endpoint."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import API_BASE_URL, DEFAULT_SYMBOL
from .errors import RemoteSyncError, TrendlineValidationError
from .models import Candle, Trendline, TrendlinePoint
from .schemas import OHLCCandle, TrendlineCreate, TrendlineRecord, TrendlineUpdate

logger = logging.getLogger(__name__)


def trendline_to_create(trendline: Trendline, user_id: Optional[int] = None) -> TrendlineCreate:
    return TrendlineCreate(
        user_id=user_id,
        start_timestamp=trendline.start.timestamp,
        start_price=trendline.start.price,
        end_timestamp=trendline.end.timestamp,
        end_price=trendline.end.price,
        color=trendline.color,
    )


def record_to_trendline(record: TrendlineRecord) -> Trendline:
    return Trendline(
        id=str(record.id),
        start=TrendlinePoint(timestamp=record.start_timestamp, price=record.start_price),
        end=TrendlinePoint(timestamp=record.end_timestamp, price=record.end_price),
        color=record.color,
    )


class RemoteSyncClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RemoteSyncClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, operation: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteSyncError(operation, str(exc)) from exc
        if response.status_code == 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise TrendlineValidationError(operation, body.get("errors") if isinstance(body, dict) else None)
        return response

    @staticmethod
    def _check(operation: str, response: httpx.Response) -> None:
        if response.is_error:
            raise RemoteSyncError(operation, f"HTTP {response.status_code}")

    async def list_trendlines(self) -> List[TrendlineRecord]:
        operation = "fetch trendlines"
        response = await self._request(operation, "GET", "/api/trendlines")
        self._check(operation, response)
        return [TrendlineRecord.model_validate(item) for item in response.json()]

    async def create_trendline(self, data: TrendlineCreate) -> TrendlineRecord:
        operation = "create trendline"
        response = await self._request(operation, "POST", "/api/trendlines", json=data.model_dump(by_alias=True))
        self._check(operation, response)
        return TrendlineRecord.model_validate(response.json())

    async def update_trendline(self, trendline_id: int, updates: TrendlineUpdate) -> Optional[TrendlineRecord]:
        operation = "update trendline"
        response = await self._request(
            operation,
            "PATCH",
            f"/api/trendlines/{trendline_id}",
            json=updates.model_dump(by_alias=True, exclude_unset=True),
        )
        if response.status_code == 404:
            return None
        self._check(operation, response)
        return TrendlineRecord.model_validate(response.json())

    async def delete_trendline(self, trendline_id: int) -> bool:
        operation = "delete trendline"
        response = await self._request(operation, "DELETE", f"/api/trendlines/{trendline_id}")
        if response.status_code == 404:
            return False
        self._check(operation, response)
        return True

    async def fetch_ohlc(self, symbol: str = DEFAULT_SYMBOL) -> List[Candle]:
        """Candles for ``symbol``; any failure yields an empty list."""
        try:
            response = await self._client.get("/api/ohlc", params={"symbol": symbol})
            response.raise_for_status()
            payload: List[Dict[str, Any]] = response.json()
            return [Candle(**OHLCCandle.model_validate(item).model_dump()) for item in payload]
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error fetching OHLC data for %s", symbol)
            return []
