"""A chart session: one symbol's candles, viewport, trendlines and timers."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional

from .collection import TrendlineCollection
from .commands import ChartController, Command
from .config import DEFAULT_SYMBOL, LABEL_TICK_SECONDS, REFRESH_INTERVAL_SECONDS, resolve_symbol
from .coordinates import CoordinateMapper, HitTester, Viewport
from .errors import ScaleUnavailableError
from .events_bus import CANDLES_UPDATED, LAST_UPDATE, EventBus
from .gestures import GestureStateMachine
from .models import Candle
from .persistence import TrendlinePersistence

logger = logging.getLogger(__name__)


def format_elapsed(seconds: float) -> str:
    if seconds < 2:
        return "Just now"
    if seconds < 60:
        return f"{int(seconds)} seconds ago"
    minutes = int(seconds // 60)
    return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"


class ChartSession:
    """Owns the gesture machine and drives the periodic refresh and label timers.

    ``client`` is anything with an ``async fetch_ohlc(symbol) -> List[Candle]``
    that returns an empty list on failure, such as ``RemoteSyncClient``.
    """

    def __init__(
        self,
        client: Any,
        symbol: str = DEFAULT_SYMBOL,
        persistence: Optional[TrendlinePersistence] = None,
        width: float = 800.0,
        height: float = 400.0,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        tick_interval: float = LABEL_TICK_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.symbol = resolve_symbol(symbol)
        self.width = width
        self.height = height
        self.refresh_interval = refresh_interval
        self.tick_interval = tick_interval
        self.clock = clock

        self.bus = EventBus()
        self.mapper = CoordinateMapper()
        self.collection = TrendlineCollection(persistence, self.bus)
        self.machine = GestureStateMachine(self.collection, self.mapper, HitTester(self.mapper))
        self.controller = ChartController(self.machine)

        self.candles: List[Candle] = []
        self.last_update: Optional[float] = None
        self._tasks: List[asyncio.Task] = []

    async def __aenter__(self) -> "ChartSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def dispatch(self, command: Command) -> Any:
        return self.controller.dispatch(command)

    async def start(self) -> None:
        if self.running:
            return
        self.collection.load()
        await self.refresh()
        self._tasks = [
            asyncio.create_task(self._every(self.refresh_interval, self.refresh), name=f"ohlc-refresh-{self.symbol}"),
            asyncio.create_task(self._every(self.tick_interval, self._tick), name=f"update-label-{self.symbol}"),
        ]

    async def close(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def refresh(self) -> bool:
        """Fetch candles; on failure the previous dataset stays in place."""
        candles = await self.client.fetch_ohlc(self.symbol)
        if not candles:
            logger.warning("No OHLC data for %s; keeping %d cached candles", self.symbol, len(self.candles))
            return False
        self.candles = list(candles)
        self.last_update = self.clock()
        self._rescale()
        self.bus.publish(CANDLES_UPDATED, self.candles, payload=len(self.candles))
        return True

    async def set_symbol(self, symbol: str) -> bool:
        self.symbol = resolve_symbol(symbol)
        return await self.refresh()

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        self._rescale()

    def last_update_label(self) -> str:
        if self.last_update is None:
            return "Never"
        return format_elapsed(max(0.0, self.clock() - self.last_update))

    def _rescale(self) -> None:
        try:
            self.mapper.viewport = Viewport.from_candles(self.candles, self.width, self.height)
        except ScaleUnavailableError:
            self.mapper.viewport = None
            return
        if self.mapper.ready:
            self.collection.reproject(self.mapper)

    async def _tick(self) -> None:
        self.bus.publish(LAST_UPDATE, self.last_update_label())

    async def _every(self, interval: float, action: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await action()
            except asyncio.CancelledError:
                raise
            except Exception:  # pylint: disable=broad-except
                logger.exception("Periodic task failed for %s", self.symbol)
