import asyncio

import pytest

from trendchart.commands import PointerEvent, StartDrawing
from trendchart.events_bus import CANDLES_UPDATED, LAST_UPDATE
from trendchart.models import Candle, Trendline, TrendlinePoint
from trendchart.persistence import MemoryKeyValueStore, TrendlinePersistence
from trendchart.session import ChartSession, format_elapsed

from .conftest import T0


def _candles(count=10, base=100.0):
    return [
        Candle(timestamp=T0 + idx * 300, open=base, high=base + 5, low=base - 5, close=base + idx)
        for idx in range(count)
    ]


class FakeClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = 0

    async def fetch_ohlc(self, symbol):
        self.calls += 1
        if self.responses:
            return self.responses.pop(0)
        return []


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_start_loads_trendlines_and_scales_viewport():
    store = MemoryKeyValueStore()
    persistence = TrendlinePersistence(store)
    persistence.save(
        [Trendline(id="1", start=TrendlinePoint(T0, 100.0), end=TrendlinePoint(T0 + 2700, 109.0))]
    )
    session = ChartSession(FakeClient([_candles()]), persistence=persistence, refresh_interval=3600, tick_interval=3600)

    async def scenario():
        async with session:
            assert session.running
            return session.collection.list()

    loaded = asyncio.run(scenario())

    assert not session.running
    assert session.mapper.ready
    assert [t.id for t in loaded] == ["1"]
    assert loaded[0].start.pixel_x == pytest.approx(0.0)
    assert loaded[0].end.pixel_x == pytest.approx(800.0)


def test_failed_refresh_keeps_previous_candles():
    first = _candles()
    clock = FakeClock()
    session = ChartSession(FakeClient([first, []]), clock=clock)
    updates = []
    session.bus.subscribe(CANDLES_UPDATED, updates.append)

    assert asyncio.run(session.refresh()) is True
    clock.now += 45
    assert asyncio.run(session.refresh()) is False

    assert session.candles == first
    assert len(updates) == 1
    assert session.last_update == 1000.0
    assert session.last_update_label() == "45 seconds ago"


def test_gestures_are_noops_before_first_data_load():
    session = ChartSession(FakeClient([]))
    session.machine.start_drawing()
    session.machine.click(10, 10)
    session.machine.click(20, 20)
    assert len(session.collection) == 0


def test_periodic_timers_run_and_stop_on_close():
    session = ChartSession(
        FakeClient([_candles() for _ in range(50)]),
        refresh_interval=0.01,
        tick_interval=0.01,
    )
    labels = []
    session.bus.subscribe(LAST_UPDATE, labels.append)

    async def scenario():
        await session.start()
        await asyncio.sleep(0.1)
        await session.close()
        calls_at_close = session.client.calls
        await asyncio.sleep(0.05)
        return calls_at_close

    calls_at_close = asyncio.run(scenario())

    assert calls_at_close > 1
    assert session.client.calls == calls_at_close
    assert labels and labels[-1] == "Just now"
    assert not session.running


def test_set_symbol_validates_and_refetches():
    session = ChartSession(FakeClient([_candles(), _candles(base=3000.0)]))
    asyncio.run(session.refresh())

    assert asyncio.run(session.set_symbol("ethusdt")) is True
    assert session.symbol == "ETHUSDT"
    assert session.candles[0].close == 3000.0

    with pytest.raises(ValueError):
        asyncio.run(session.set_symbol("NOPE"))


def test_resize_reprojects_trendlines():
    session = ChartSession(FakeClient([_candles()]), width=800, height=400)
    asyncio.run(session.refresh())
    session.collection.add(Trendline(id="1", start=TrendlinePoint(T0, 100.0), end=TrendlinePoint(T0 + 2700, 109.0)))

    session.resize(400, 200)

    assert session.collection.get("1").end.pixel_x == pytest.approx(400.0)


@pytest.mark.parametrize(
    "seconds,label",
    [(0, "Just now"), (1.5, "Just now"), (2, "2 seconds ago"), (59.9, "59 seconds ago"), (60, "1 minute ago"), (125, "2 minutes ago")],
)
def test_format_elapsed(seconds, label):
    assert format_elapsed(seconds) == label


def test_dispatch_routes_commands_to_gestures():
    session = ChartSession(FakeClient([_candles()]))
    asyncio.run(session.refresh())

    session.dispatch(StartDrawing())
    session.dispatch(PointerEvent("click", 100, 100))
    created = session.dispatch(PointerEvent("click", 700, 300))

    assert session.collection.list() == [created]
    assert session.machine.cursor == "default"
