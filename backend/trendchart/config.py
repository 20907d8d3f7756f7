import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List


@dataclass(frozen=True)
class Instrument:
    symbol: str
    name: str
    base_price: float


DATA_DIR = Path(os.getenv("TRENDCHART_DATA_DIR", Path(__file__).resolve().parent.parent / "data"))

# "memory" or "sqlite"
STORAGE_BACKEND = os.getenv("TRENDCHART_STORAGE", "memory").lower()

API_BASE_URL = os.getenv("TRENDCHART_API_URL", "http://127.0.0.1:8000")


INSTRUMENTS: List[Instrument] = [
    Instrument(symbol="BTCUSDT", name="Bitcoin", base_price=95842.50),
    Instrument(symbol="ETHUSDT", name="Ethereum", base_price=3245.67),
    Instrument(symbol="ADAUSDT", name="Cardano", base_price=0.8956),
    Instrument(symbol="DOTUSDT", name="Polkadot", base_price=7.234),
    Instrument(symbol="LINKUSDT", name="Chainlink", base_price=23.45),
    Instrument(symbol="MATICUSDT", name="Polygon", base_price=1.234),
    Instrument(symbol="SOLUSDT", name="Solana", base_price=156.78),
    Instrument(symbol="AVAXUSDT", name="Avalanche", base_price=34.56),
]

DEFAULT_SYMBOL = "BTCUSDT"

INTERVAL_MINUTES: Dict[str, int] = {
    "1m": 1,
    "5m": 5,
    "15m": 15,
    "1h": 60,
    "4h": 240,
    "1d": 1440,
}

INTERVAL_SECONDS: Dict[str, int] = {key: value * 60 for key, value in INTERVAL_MINUTES.items()}

OHLC_INTERVAL = "5m"
OHLC_LIMIT = 100

DEFAULT_TRENDLINE_COLOR = "#2962FF"
TRENDLINES_STORAGE_KEY = "tradingTrendlines"

# Pixel radius around a rendered endpoint that still counts as a hit.
HIT_TOLERANCE_PX = 8.0

# Extra headroom on the price axis, as a fraction of the close range.
PRICE_PADDING_RATIO = 0.1

REFRESH_INTERVAL_SECONDS = 30.0
LABEL_TICK_SECONDS = 1.0


SYMBOLS: Dict[str, Instrument] = {instrument.symbol: instrument for instrument in INSTRUMENTS}


def resolve_symbol(symbol: str) -> str:
    upper = symbol.upper()
    if upper not in SYMBOLS:
        raise ValueError(f"Unsupported symbol: {symbol}")
    return upper


def local_state_path() -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR / "local_state.db"


def trendlines_db_path() -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR / "trendlines.db"
