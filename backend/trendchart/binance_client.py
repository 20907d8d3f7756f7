from __future__ import annotations

from typing import Dict, List

import httpx

from .config import OHLC_INTERVAL, OHLC_LIMIT, resolve_symbol

_BINANCE_API = "https://api.binance.com"
_MAX_LIMIT = 1000


def parse_klines(payload: List[list]) -> List[dict]:
    candles: List[dict] = []
    for entry in payload:
        open_time_ms = int(entry[0])
        candles.append(
            {
                "timestamp": open_time_ms // 1000,
                "open": float(entry[1]),
                "high": float(entry[2]),
                "low": float(entry[3]),
                "close": float(entry[4]),
                "volume": float(entry[5]),
            }
        )
    return candles


async def fetch_klines(
    symbol: str,
    interval: str = OHLC_INTERVAL,
    limit: int = OHLC_LIMIT,
) -> List[dict]:
    params: Dict[str, object] = {
        "symbol": resolve_symbol(symbol),
        "interval": interval,
        "limit": min(limit, _MAX_LIMIT),
    }

    async with httpx.AsyncClient(base_url=_BINANCE_API, timeout=10.0) as client:
        response = await client.get("/api/v3/klines", params=params)
        response.raise_for_status()
        payload = response.json()

    return parse_klines(payload)
