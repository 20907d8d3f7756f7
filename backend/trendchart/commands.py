"""Commands sent from the UI boundary to the owner of the gesture state machine."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .gestures import GestureStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartDrawing:
    pass


@dataclass(frozen=True)
class CancelDrawing:
    pass


@dataclass(frozen=True)
class ToggleDrawing:
    """Start drawing when idle, cancel it when a draw is in progress."""


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class DeleteTrendline:
    trendline_id: str


@dataclass(frozen=True)
class SelectTrendline:
    trendline_id: Optional[str] = None


@dataclass(frozen=True)
class PointerEvent:
    kind: str  # "down", "move", "up", "click"
    x: float = 0.0
    y: float = 0.0


Command = Union[StartDrawing, CancelDrawing, ToggleDrawing, ClearAll, DeleteTrendline, SelectTrendline, PointerEvent]


class ChartController:
    def __init__(self, machine: GestureStateMachine) -> None:
        self.machine = machine
        self.collection = machine.collection
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            StartDrawing: lambda _: self.machine.start_drawing(),
            CancelDrawing: lambda _: self.machine.cancel_drawing(),
            ToggleDrawing: self._toggle_drawing,
            ClearAll: self._clear_all,
            DeleteTrendline: lambda cmd: self.collection.remove(cmd.trendline_id),
            SelectTrendline: lambda cmd: self.collection.select(cmd.trendline_id),
            PointerEvent: self._pointer,
        }

    def dispatch(self, command: Command) -> Any:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {command!r}")
        return handler(command)

    def _toggle_drawing(self, _: ToggleDrawing) -> bool:
        if self.machine.is_drawing:
            self.machine.cancel_drawing()
            return False
        return self.machine.start_drawing()

    def _clear_all(self, _: ClearAll) -> None:
        self.machine.cancel_drawing()
        self.collection.clear()

    def _pointer(self, event: PointerEvent) -> Any:
        if event.kind == "down":
            return self.machine.pointer_down(event.x, event.y)
        if event.kind == "move":
            return self.machine.pointer_move(event.x, event.y)
        if event.kind == "up":
            return self.machine.pointer_up()
        if event.kind == "click":
            return self.machine.click(event.x, event.y)
        logger.warning("Unknown pointer event kind: %s", event.kind)
        return None
