"""OHLC data for the chart: Binance klines, or a synthetic series when Binance is unreachable."""
from __future__ import annotations

import logging
import random
import time
from typing import List, Optional

from . import binance_client
from .config import INTERVAL_SECONDS, OHLC_INTERVAL, OHLC_LIMIT, SYMBOLS, resolve_symbol

MOCK_BASE_PRICE = 43000.0
MOCK_VOLATILITY = 0.02

logger = logging.getLogger(__name__)


def generate_mock_ohlc(
    count: int = OHLC_LIMIT,
    base_price: float = MOCK_BASE_PRICE,
    step: int = INTERVAL_SECONDS[OHLC_INTERVAL],
    now: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """Random walk of ``count`` candles ending just before ``now``."""
    rng = rng or random.Random()
    now = int(time.time()) if now is None else now
    decimals = 2 if base_price >= 1 else 6
    price = base_price
    candles: List[dict] = []
    for idx in range(count):
        timestamp = now - (count - idx) * step
        change = (rng.random() - 0.5) * price * MOCK_VOLATILITY
        open_price = price
        close_price = open_price + change
        high = max(open_price, close_price) + rng.random() * price * 0.01
        low = min(open_price, close_price) - rng.random() * price * 0.01
        candles.append(
            {
                "timestamp": timestamp,
                "open": round(open_price, decimals),
                "high": round(high, decimals),
                "low": round(low, decimals),
                "close": round(close_price, decimals),
                "volume": float(rng.randint(100, 1099)),
            }
        )
        price = close_price
    return candles


async def fetch_ohlc(symbol: str, interval: str = OHLC_INTERVAL, limit: int = OHLC_LIMIT) -> List[dict]:
    symbol = resolve_symbol(symbol)
    try:
        return await binance_client.fetch_klines(symbol, interval, limit=limit)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error fetching Binance data for %s; serving synthetic candles", symbol)
        return generate_mock_ohlc(
            count=limit,
            base_price=SYMBOLS[symbol].base_price,
            step=INTERVAL_SECONDS.get(interval, INTERVAL_SECONDS[OHLC_INTERVAL]),
        )
