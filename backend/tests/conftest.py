import pytest

from trendchart.collection import TrendlineCollection
from trendchart.coordinates import CoordinateMapper, HitTester, Viewport
from trendchart.events_bus import EventBus
from trendchart.gestures import GestureStateMachine
from trendchart.persistence import MemoryKeyValueStore, TrendlinePersistence

T0 = 1_700_000_000
SPAN_SECONDS = 30_000


@pytest.fixture
def viewport() -> Viewport:
    # 1000 x 500 px plot; 30 000 s of time and a 100..200 price range.
    return Viewport(
        left=0.0,
        top=0.0,
        width=1000.0,
        height=500.0,
        time_min_ms=float(T0 * 1000),
        time_max_ms=float((T0 + SPAN_SECONDS) * 1000),
        price_min=100.0,
        price_max=200.0,
    )


@pytest.fixture
def mapper(viewport: Viewport) -> CoordinateMapper:
    return CoordinateMapper(viewport)


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def persistence(store: MemoryKeyValueStore) -> TrendlinePersistence:
    return TrendlinePersistence(store)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def collection(persistence: TrendlinePersistence, bus: EventBus) -> TrendlineCollection:
    return TrendlineCollection(persistence, bus)


@pytest.fixture
def machine(collection: TrendlineCollection, mapper: CoordinateMapper) -> GestureStateMachine:
    return GestureStateMachine(collection, mapper, HitTester(mapper))
