"""Data models for the trendline engine."""
import time
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Literal, Optional

from .config import DEFAULT_TRENDLINE_COLOR

Endpoint = Literal["start", "end"]
ENDPOINTS = ("start", "end")


@dataclass
class TrendlinePoint:
    """A trendline anchor in domain space, with a cached pixel position."""
    timestamp: int  # seconds since epoch
    price: float
    pixel_x: float = 0.0  # rendering hint only, recomputed on viewport change
    pixel_y: float = 0.0

    def same_position(self, other: "TrendlinePoint") -> bool:
        return self.timestamp == other.timestamp and self.price == other.price

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "price": self.price}


@dataclass
class Trendline:
    """A committed two-point line anchored to (time, price)."""
    id: str
    start: TrendlinePoint
    end: TrendlinePoint
    color: str = DEFAULT_TRENDLINE_COLOR

    def point(self, endpoint: Endpoint) -> TrendlinePoint:
        if endpoint == "start":
            return self.start
        if endpoint == "end":
            return self.end
        raise ValueError(f"Unknown endpoint: {endpoint}")

    def set_point(self, endpoint: Endpoint, point: TrendlinePoint) -> None:
        if endpoint == "start":
            self.start = point
        elif endpoint == "end":
            self.end = point
        else:
            raise ValueError(f"Unknown endpoint: {endpoint}")

    def is_zero_length(self) -> bool:
        return self.start.same_position(self.end)

    def change_pct(self) -> float:
        """Percent change from the start price to the end price."""
        if self.start.price == 0:
            return 0.0
        return (self.end.price - self.start.price) / self.start.price * 100

    def copy(self) -> "Trendline":
        return replace(self, start=replace(self.start), end=replace(self.end))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DragTarget:
    trendline_id: str
    endpoint: Endpoint


@dataclass
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


_last_id_ms: int = 0


def generate_trendline_id(now_ms: Optional[int] = None) -> str:
    """Time-based id; strictly increasing so a deleted id never comes back."""
    global _last_id_ms
    value = int(time.time() * 1000) if now_ms is None else int(now_ms)
    if value <= _last_id_ms:
        value = _last_id_ms + 1
    _last_id_ms = value
    return str(value)


def observe_trendline_id(trendline_id: str) -> None:
    """Keep generated ids ahead of a numeric id that already exists."""
    global _last_id_ms
    try:
        value = int(trendline_id)
    except ValueError:
        return
    if value > _last_id_ms:
        _last_id_ms = value
