"""In-memory trendline collection for one chart session."""
import logging
from typing import List, Optional

from .events_bus import COORDINATE_DISPLAY, TRENDLINES_CHANGED, EventBus
from .models import Endpoint, Trendline, TrendlinePoint, observe_trendline_id
from .persistence import TrendlinePersistence

logger = logging.getLogger(__name__)


class TrendlineCollection:
    """Ordered set of committed trendlines.

    Every mutation writes through to the persistence bridge and then publishes
    the full list on the ``trendlines`` topic. The one exception is
    ``update_endpoint(..., persist=False)``, used while dragging, where the
    caller is responsible for calling :meth:`flush` once the drag ends.
    """

    def __init__(self, persistence: Optional[TrendlinePersistence] = None, bus: Optional[EventBus] = None) -> None:
        self.persistence = persistence if persistence is not None else TrendlinePersistence()
        self.bus = bus if bus is not None else EventBus()
        self._items: List[Trendline] = []
        self._selected_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def __contains__(self, trendline_id) -> bool:
        return self.get(trendline_id) is not None

    def list(self) -> List[Trendline]:
        return list(self._items)

    def get(self, trendline_id: str) -> Optional[Trendline]:
        for trendline in self._items:
            if trendline.id == trendline_id:
                return trendline
        return None

    @property
    def selected(self) -> Optional[Trendline]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def load(self) -> List[Trendline]:
        """Replace the contents with whatever the persistence bridge holds."""
        self._items = self.persistence.load()
        for trendline in self._items:
            observe_trendline_id(trendline.id)
        if self._selected_id is not None and self.get(self._selected_id) is None:
            self._set_selection(None)
        self._notify()
        return self.list()

    def add(self, trendline: Trendline) -> Trendline:
        if self.get(trendline.id) is not None:
            raise ValueError(f"Duplicate trendline id: {trendline.id}")
        observe_trendline_id(trendline.id)
        self._items.append(trendline)
        logger.info(
            "Trendline created %s: start=(%s, %s) end=(%s, %s)",
            trendline.id,
            trendline.start.timestamp,
            trendline.start.price,
            trendline.end.timestamp,
            trendline.end.price,
        )
        self._commit()
        return trendline

    def update_endpoint(self, trendline_id: str, endpoint: Endpoint, point: TrendlinePoint, persist: bool = True) -> Optional[Trendline]:
        trendline = self.get(trendline_id)
        if trendline is None:
            logger.debug("Ignoring endpoint update for unknown trendline %s", trendline_id)
            return None
        trendline.set_point(endpoint, point)
        if persist:
            self._commit()
        else:
            self._notify()
        if self._selected_id == trendline_id:
            self.bus.publish(COORDINATE_DISPLAY, trendline, payload=trendline.to_dict())
        return trendline

    def remove(self, trendline_id: str) -> bool:
        trendline = self.get(trendline_id)
        if trendline is None:
            return False
        self._items.remove(trendline)
        if self._selected_id == trendline_id:
            self._set_selection(None)
        self._commit()
        return True

    def clear(self) -> None:
        self._items = []
        self._set_selection(None)
        self.persistence.clear()
        self._notify()

    def flush(self) -> None:
        self.persistence.save(self._items)

    def select(self, trendline_id: Optional[str]) -> Optional[Trendline]:
        """Surface a trendline (or nothing) to the coordinate display."""
        if trendline_id is not None and self.get(trendline_id) is None:
            return None
        self._set_selection(trendline_id)
        return self.selected

    def reproject(self, mapper) -> None:
        """Refresh every pixel hint after a viewport change."""
        for trendline in self._items:
            mapper.project(trendline)
        self._notify()

    def _set_selection(self, trendline_id: Optional[str]) -> None:
        self._selected_id = trendline_id
        selected = self.selected
        self.bus.publish(COORDINATE_DISPLAY, selected, payload=selected.to_dict() if selected else None)

    def _commit(self) -> None:
        self.persistence.save(self._items)
        self._notify()

    def _notify(self) -> None:
        items = self.list()
        self.bus.publish(TRENDLINES_CHANGED, items, payload=[trendline.to_dict() for trendline in items])
