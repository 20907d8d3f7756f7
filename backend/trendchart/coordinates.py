"""Pixel <-> domain mapping for the chart canvas, and endpoint hit-testing.

The chart renders its time axis in milliseconds; everything outside this
module deals in whole seconds. ``CoordinateMapper`` is the only place that
converts between the two.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .config import HIT_TOLERANCE_PX, PRICE_PADDING_RATIO
from .errors import ScaleUnavailableError
from .models import ENDPOINTS, Candle, DragTarget, Trendline, TrendlinePoint

MS_PER_SECOND = 1000


@dataclass(frozen=True)
class Viewport:
    """Visible time/price range mapped onto the chart's plot area."""
    left: float
    top: float
    width: float
    height: float
    time_min_ms: float
    time_max_ms: float
    price_min: float
    price_max: float

    def is_valid(self) -> bool:
        values = (
            self.left,
            self.top,
            self.width,
            self.height,
            self.time_min_ms,
            self.time_max_ms,
            self.price_min,
            self.price_max,
        )
        if not all(math.isfinite(value) for value in values):
            return False
        return self.width > 0 and self.height > 0 and self.time_max_ms > self.time_min_ms and self.price_max > self.price_min

    @classmethod
    def from_candles(
        cls,
        candles: Sequence[Candle],
        width: float,
        height: float,
        left: float = 0.0,
        top: float = 0.0,
        padding_ratio: float = PRICE_PADDING_RATIO,
    ) -> "Viewport":
        """Fit the axes to a candle series: full time span, closes padded by ``padding_ratio``."""
        if not candles:
            raise ScaleUnavailableError("No candles loaded")
        closes = [candle.close for candle in candles]
        low = min(closes)
        high = max(closes)
        padding = (high - low) * padding_ratio
        return cls(
            left=left,
            top=top,
            width=width,
            height=height,
            time_min_ms=float(candles[0].timestamp * MS_PER_SECOND),
            time_max_ms=float(candles[-1].timestamp * MS_PER_SECOND),
            price_min=max(0.0, low - padding),
            price_max=high + padding,
        )


class CoordinateMapper:
    def __init__(self, viewport: Optional[Viewport] = None) -> None:
        self.viewport = viewport

    def _require_scale(self) -> Viewport:
        viewport = self.viewport
        if viewport is None:
            raise ScaleUnavailableError("Viewport has no scale yet")
        if not viewport.is_valid():
            raise ScaleUnavailableError(f"Viewport scale is degenerate: {viewport}")
        return viewport

    @property
    def ready(self) -> bool:
        return self.viewport is not None and self.viewport.is_valid()

    def pixel_to_domain(self, pixel_x: float, pixel_y: float) -> Tuple[int, float]:
        vp = self._require_scale()
        time_ms = vp.time_min_ms + (pixel_x - vp.left) / vp.width * (vp.time_max_ms - vp.time_min_ms)
        price = vp.price_max - (pixel_y - vp.top) / vp.height * (vp.price_max - vp.price_min)
        return math.floor(time_ms / MS_PER_SECOND), float(price)

    def domain_to_pixel(self, timestamp: int, price: float) -> Tuple[float, float]:
        vp = self._require_scale()
        time_ms = timestamp * MS_PER_SECOND
        x = vp.left + (time_ms - vp.time_min_ms) / (vp.time_max_ms - vp.time_min_ms) * vp.width
        y = vp.top + (vp.price_max - price) / (vp.price_max - vp.price_min) * vp.height
        return x, y

    def point_at(self, pixel_x: float, pixel_y: float) -> TrendlinePoint:
        """Map a pixel to a point, keeping the pixel as its rendering hint."""
        timestamp, price = self.pixel_to_domain(pixel_x, pixel_y)
        return TrendlinePoint(timestamp=timestamp, price=price, pixel_x=pixel_x, pixel_y=pixel_y)

    def project(self, trendline: Trendline) -> None:
        """Recompute the cached pixel hints of both endpoints."""
        for endpoint in ENDPOINTS:
            point = trendline.point(endpoint)
            point.pixel_x, point.pixel_y = self.domain_to_pixel(point.timestamp, point.price)


class HitTester:
    """Finds the trendline endpoint nearest to a pixel, within a tolerance."""

    def __init__(self, mapper: CoordinateMapper, tolerance: float = HIT_TOLERANCE_PX) -> None:
        self.mapper = mapper
        self.tolerance = tolerance

    def nearest_endpoint(self, trendlines: Iterable[Trendline], pixel_x: float, pixel_y: float) -> Optional[DragTarget]:
        best: Optional[DragTarget] = None
        best_distance = math.inf
        # Later trendlines were created more recently, so ``<=`` lets them win ties.
        for trendline in trendlines:
            for endpoint in ENDPOINTS:
                point = trendline.point(endpoint)
                x, y = self.mapper.domain_to_pixel(point.timestamp, point.price)
                distance = math.hypot(x - pixel_x, y - pixel_y)
                if distance > self.tolerance:
                    continue
                if distance <= best_distance:
                    best_distance = distance
                    best = DragTarget(trendline_id=trendline.id, endpoint=endpoint)
        return best
