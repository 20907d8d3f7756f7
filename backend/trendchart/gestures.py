"""Pointer/touch gesture handling for trendline drawing and endpoint dragging."""
import enum
import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from .collection import TrendlineCollection
from .config import DEFAULT_TRENDLINE_COLOR
from .coordinates import CoordinateMapper, HitTester
from .errors import ScaleUnavailableError
from .events_bus import DRAWING_STATE
from .models import DragTarget, Trendline, TrendlinePoint, generate_trendline_id

logger = logging.getLogger(__name__)


class DrawPhase(str, enum.Enum):
    AWAITING_START = "awaiting_start"
    AWAITING_END = "awaiting_end"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Hovering:
    target_id: Optional[str] = None


@dataclass(frozen=True)
class Drawing:
    phase: DrawPhase = DrawPhase.AWAITING_START
    draft: Optional[Trendline] = None


@dataclass(frozen=True)
class Dragging:
    target: DragTarget


GestureState = Union[Idle, Hovering, Drawing, Dragging]


class GestureStateMachine:
    """Turns pointer events in pixel space into trendline mutations.

    Only one gesture (drawing or dragging) can be active at a time. Handlers
    never raise on an unusable viewport; they log and leave state untouched.
    """

    def __init__(
        self,
        collection: TrendlineCollection,
        mapper: CoordinateMapper,
        hit_tester: Optional[HitTester] = None,
        color: str = DEFAULT_TRENDLINE_COLOR,
    ) -> None:
        self.collection = collection
        self.mapper = mapper
        self.hit_tester = hit_tester if hit_tester is not None else HitTester(mapper)
        self.color = color
        self.state: GestureState = Idle()

    @property
    def is_drawing(self) -> bool:
        return isinstance(self.state, Drawing)

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    @property
    def draft(self) -> Optional[Trendline]:
        if isinstance(self.state, Drawing):
            return self.state.draft
        return None

    @property
    def cursor(self) -> str:
        if isinstance(self.state, Dragging):
            return "grabbing"
        if isinstance(self.state, Drawing):
            return "crosshair"
        if isinstance(self.state, Hovering) and self.state.target_id is not None:
            return "move"
        return "default"

    def start_drawing(self) -> bool:
        if self.is_dragging:
            logger.debug("Ignoring start_drawing while a drag is active")
            return False
        self.state = Drawing(DrawPhase.AWAITING_START, None)
        self.collection.bus.publish(DRAWING_STATE, True)
        return True

    def cancel_drawing(self) -> bool:
        if not self.is_drawing:
            return False
        self.state = Idle()
        self.collection.bus.publish(DRAWING_STATE, False)
        return True

    def click(self, pixel_x: float, pixel_y: float) -> Optional[Trendline]:
        """Handle a click; returns the trendline it committed or surfaced, if any."""
        state = self.state
        if isinstance(state, Drawing):
            return self._draw_click(state, pixel_x, pixel_y)
        if isinstance(state, Dragging):
            return None
        target = self._hit(pixel_x, pixel_y)
        if target is None:
            return None
        return self.collection.select(target.trendline_id)

    def pointer_down(self, pixel_x: float, pixel_y: float) -> bool:
        if not isinstance(self.state, (Idle, Hovering)):
            return False
        target = self._hit(pixel_x, pixel_y)
        if target is None:
            return False
        self.state = Dragging(target)
        return True

    def pointer_move(self, pixel_x: float, pixel_y: float) -> None:
        state = self.state
        if isinstance(state, Dragging):
            point = self._map(pixel_x, pixel_y)
            if point is None:
                return
            self.collection.update_endpoint(state.target.trendline_id, state.target.endpoint, point, persist=False)
        elif isinstance(state, (Idle, Hovering)):
            target = self._hit(pixel_x, pixel_y)
            self.state = Hovering(target.trendline_id) if target is not None else Idle()

    def pointer_up(self) -> bool:
        if not isinstance(self.state, Dragging):
            return False
        self.state = Idle()
        self.collection.flush()
        return True

    touch_start = pointer_down
    touch_move = pointer_move

    def touch_end(self) -> bool:
        return self.pointer_up()

    def _draw_click(self, state: Drawing, pixel_x: float, pixel_y: float) -> Optional[Trendline]:
        point = self._map(pixel_x, pixel_y)
        if point is None:
            return None
        if state.phase is DrawPhase.AWAITING_START or state.draft is None:
            draft = Trendline(id=generate_trendline_id(), start=point, end=replace(point), color=self.color)
            self.state = Drawing(DrawPhase.AWAITING_END, draft)
            return None
        completed = state.draft.copy()
        completed.end = point
        self.state = Idle()
        try:
            self.collection.add(completed)
        except ValueError:
            logger.warning("Discarding drawn trendline with duplicate id %s", completed.id)
            self.collection.bus.publish(DRAWING_STATE, False)
            return None
        self.collection.select(completed.id)
        self.collection.bus.publish(DRAWING_STATE, False)
        return completed

    def _map(self, pixel_x: float, pixel_y: float) -> Optional[TrendlinePoint]:
        try:
            return self.mapper.point_at(pixel_x, pixel_y)
        except ScaleUnavailableError as exc:
            logger.debug("Skipping pointer event at (%s, %s): %s", pixel_x, pixel_y, exc)
            return None

    def _hit(self, pixel_x: float, pixel_y: float) -> Optional[DragTarget]:
        try:
            return self.hit_tester.nearest_endpoint(self.collection, pixel_x, pixel_y)
        except ScaleUnavailableError as exc:
            logger.debug("Hit-test unavailable at (%s, %s): %s", pixel_x, pixel_y, exc)
            return None
