from __future__ import annotations

import math
from typing import Optional, Tuple

from match3 import constants
from match3.components.grid import Grid
from match3.components.piece import Position
from match3.events.bus import (
    EVENT_PIECE_CLICK,
    EVENT_PIECE_DRAG,
    EVENT_PIECE_PRESS,
    EVENT_POINTER_DRAG,
    EVENT_POINTER_PRESS,
    EVENT_POINTER_RELEASE,
    EventBus,
)


class InputSystem:
    """Maps raw pointer events in world units onto piece press / click / drag events.

    A press followed by a release without travelling past ``drag_threshold`` is
    a click. Crossing the threshold while held fires one drag carrying the unit
    direction of travel; the release that follows is then swallowed.
    """

    def __init__(self, event_bus: EventBus, grid: Grid, drag_threshold: float = constants.DRAG_THRESHOLD):
        self.event_bus = event_bus
        self.grid = grid
        self.drag_threshold = drag_threshold
        self._press_cell: Optional[Position] = None
        self._press_point: Optional[Tuple[float, float]] = None
        self._dragged = False
        self.event_bus.subscribe(EVENT_POINTER_PRESS, self.on_pointer_press)
        self.event_bus.subscribe(EVENT_POINTER_DRAG, self.on_pointer_drag)
        self.event_bus.subscribe(EVENT_POINTER_RELEASE, self.on_pointer_release)

    def on_pointer_press(self, sender, **kwargs):
        x = kwargs.get('x')
        y = kwargs.get('y')
        if x is None or y is None:
            return
        cell = self.grid.cell_at_world(x, y)
        self._dragged = False
        if cell is None or not self.grid.has_piece(*cell):
            self._press_cell = None
            self._press_point = None
            return
        self._press_cell = cell
        self._press_point = (x, y)
        self.event_bus.emit(EVENT_PIECE_PRESS, x=cell[0], y=cell[1])

    def on_pointer_drag(self, sender, **kwargs):
        if self._press_cell is None or self._press_point is None or self._dragged:
            return
        x = kwargs.get('x')
        y = kwargs.get('y')
        if x is None or y is None:
            return
        dx = x - self._press_point[0]
        dy = y - self._press_point[1]
        distance = math.hypot(dx, dy)
        if distance <= self.drag_threshold:
            return
        self._dragged = True
        cx, cy = self._press_cell
        self.event_bus.emit(EVENT_PIECE_DRAG, x=cx, y=cy, direction=(dx / distance, dy / distance))

    def on_pointer_release(self, sender, **kwargs):
        cell = self._press_cell
        dragged = self._dragged
        self._press_cell = None
        self._press_point = None
        self._dragged = False
        if cell is None or dragged:
            return
        self.event_bus.emit(EVENT_PIECE_CLICK, x=cell[0], y=cell[1])

    def detach(self) -> None:
        self.event_bus.unsubscribe(EVENT_POINTER_PRESS, self.on_pointer_press)
        self.event_bus.unsubscribe(EVENT_POINTER_DRAG, self.on_pointer_drag)
        self.event_bus.unsubscribe(EVENT_POINTER_RELEASE, self.on_pointer_release)
