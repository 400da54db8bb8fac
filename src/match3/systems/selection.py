from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Awaitable, Callable, Optional, Set, Tuple

from match3.components.grid import Grid
from match3.components.piece import Piece, Position
from match3.events.bus import (
    EVENT_INPUT_ENABLED,
    EVENT_PIECE_CLICK,
    EVENT_PIECE_DESELECTED,
    EVENT_PIECE_DRAG,
    EVENT_PIECE_PRESS,
    EVENT_PIECE_SELECTED,
    EVENT_PIECE_SHAKEN,
    EVENT_SWAP_COMPLETE,
    EVENT_SWAP_INVALID,
    EVENT_SWAP_STARTED,
    EventBus,
)
from match3.systems.cascade import CascadeResolver
from match3.systems.effects import BoardEffects
from match3.systems.match import MatchDetector

logger = logging.getLogger(__name__)


class SelectionState(Enum):
    IDLE = auto()
    FIRST_SELECTED = auto()
    SWAP_IN_FLIGHT = auto()


@dataclass(slots=True)
class SwapOutcome:
    src: Position
    dst: Position
    matched: bool = False
    reverted: bool = False
    score: int = 0
    depth: int = 0


class SelectionController:
    """Turns player picks and drags into swaps and hands matches to the cascade.

    ``input_enabled`` closes as soon as a swap is confirmed and reopens only
    after the swap, its revert or its whole cascade has settled; while closed
    every entry point is a no-op, so the grid has a single owner at a time.
    """

    def __init__(
        self,
        grid: Grid,
        detector: MatchDetector,
        resolver: CascadeResolver,
        effects: BoardEffects,
        event_bus: EventBus,
        *,
        revert_if_no_match: bool = True,
    ):
        self.grid = grid
        self.detector = detector
        self.resolver = resolver
        self.effects = effects
        self.event_bus = event_bus
        self.revert_if_no_match = revert_if_no_match
        self.selected: Optional[Piece] = None
        self.state = SelectionState.IDLE
        self.input_enabled = True
        self._pending: Set[asyncio.Task] = set()
        self.event_bus.subscribe(EVENT_PIECE_CLICK, self.on_piece_click)
        self.event_bus.subscribe(EVENT_PIECE_DRAG, self.on_piece_drag)
        self.event_bus.subscribe(EVENT_PIECE_PRESS, self.on_piece_press)

    # ------------------------------------------------------------------
    # Player intents
    # ------------------------------------------------------------------
    def highlight(self, piece: Piece) -> None:
        """Pointer-down feedback; only shown while nothing is selected yet."""
        if not self.input_enabled or self.selected is not None:
            return
        self.effects.highlight(piece)

    async def select(self, piece: Piece) -> Optional[SwapOutcome]:
        if not self.input_enabled:
            return None
        if self.selected is None:
            self._select_first(piece)
            return None
        if piece is self.selected:
            self.deselect(reason="reselect")
            return None
        if not self.grid.is_adjacent(self.selected.position, piece.position):
            self._select_first(piece)
            return None
        return await self.swap(self.selected, piece)

    def deselect(self, reason: str = "manual") -> None:
        prev = self.selected
        if prev is None:
            return
        prev.unselect()
        self.selected = None
        self.effects.clear_highlight()
        if self.state is SelectionState.FIRST_SELECTED:
            self.state = SelectionState.IDLE
        self.event_bus.emit(EVENT_PIECE_DESELECTED, piece=prev, reason=reason)

    async def swap(self, a: Piece, b: Piece) -> Optional[SwapOutcome]:
        if not self.input_enabled:
            return None
        src, dst = a.position, b.position
        if self.grid.get(*src) is not a or self.grid.get(*dst) is not b:
            logger.warning("Ignoring swap of pieces that are not on the board: %r, %r", a, b)
            return None
        if not self.grid.is_adjacent(src, dst):
            logger.warning("Ignoring swap of non-adjacent cells %s and %s", src, dst)
            return None

        self.set_input_enabled(False)
        self.state = SelectionState.SWAP_IN_FLIGHT
        if self.selected is not a:
            if self.selected is not None:
                self.selected.unselect()
            self.selected = a
            a.select()
        self.effects.clear_highlight()
        self.event_bus.emit(EVENT_SWAP_STARTED, src=src, dst=dst)
        outcome = SwapOutcome(src=src, dst=dst)
        try:
            await self._exchange(a, b)
            matched, has_match = self.detector.scan_board()
            if has_match:
                result = await self.resolver.resolve(matched)
                outcome.matched = True
                outcome.score = result.score
                outcome.depth = result.depth
            elif self.revert_if_no_match:
                self.event_bus.emit(EVENT_SWAP_INVALID, src=src, dst=dst, reverted=True)
                await self._exchange(b, a)
                outcome.reverted = True
            else:
                logger.debug("Keeping non-matching swap %s <-> %s", src, dst)
        finally:
            self.deselect(reason="swap")
            self.state = SelectionState.IDLE
            self.set_input_enabled(True)
        self.event_bus.emit(EVENT_SWAP_COMPLETE, outcome=outcome)
        return outcome

    async def swap_by_direction(self, piece: Piece, direction: Tuple[float, float]) -> Optional[SwapOutcome]:
        if not self.input_enabled:
            return None
        step = self.resolve_direction(direction)
        other = None
        if step is not None:
            other = self.grid.get(piece.x + step[0], piece.y + step[1])
        if other is None:
            self.effects.shake(piece)
            self.event_bus.emit(EVENT_PIECE_SHAKEN, piece=piece, direction=direction)
            return None
        return await self.swap(piece, other)

    def hint(self) -> Optional[Piece]:
        if not self.input_enabled:
            return None
        return self.detector.find_hint()

    @staticmethod
    def resolve_direction(direction: Tuple[float, float]) -> Optional[Tuple[int, int]]:
        """Snap a drag vector to the orthogonal step along its dominant axis (ties go horizontal)."""
        dx, dy = direction
        if dx == 0 and dy == 0:
            return None
        if abs(dx) >= abs(dy):
            return (1 if dx > 0 else -1, 0)
        return (0, 1 if dy > 0 else -1)

    # ------------------------------------------------------------------
    # Bus handlers
    # ------------------------------------------------------------------
    def on_piece_press(self, sender, **kwargs):
        piece = self._piece_from(kwargs)
        if piece is not None:
            self.highlight(piece)

    def on_piece_click(self, sender, **kwargs):
        piece = self._piece_from(kwargs)
        if piece is None:
            return
        self._schedule(self.select, piece)

    def on_piece_drag(self, sender, **kwargs):
        piece = self._piece_from(kwargs)
        direction = kwargs.get('direction')
        if piece is None or direction is None:
            return
        self._schedule(self.swap_by_direction, piece, direction)

    def detach(self) -> None:
        self.event_bus.unsubscribe(EVENT_PIECE_CLICK, self.on_piece_click)
        self.event_bus.unsubscribe(EVENT_PIECE_DRAG, self.on_piece_drag)
        self.event_bus.unsubscribe(EVENT_PIECE_PRESS, self.on_piece_press)

    async def wait_idle(self) -> None:
        while self._pending:
            # Failures were already logged by _on_task_done.
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _select_first(self, piece: Piece) -> None:
        if self.selected is not None:
            self.selected.unselect()
        self.selected = piece
        piece.select()
        self.state = SelectionState.FIRST_SELECTED
        self.effects.highlight(piece)
        self.event_bus.emit(EVENT_PIECE_SELECTED, piece=piece, x=piece.x, y=piece.y)

    async def _exchange(self, a: Piece, b: Piece) -> None:
        src, dst = a.position, b.position
        await asyncio.gather(
            self.effects.move(a, self.grid.world_position(*dst)),
            self.effects.move(b, self.grid.world_position(*src)),
        )
        self.grid.swap(src, dst)

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled
        self.event_bus.emit(EVENT_INPUT_ENABLED, enabled=enabled)

    def _piece_from(self, kwargs) -> Optional[Piece]:
        x = kwargs.get('x')
        y = kwargs.get('y')
        if x is None or y is None:
            return None
        return self.grid.get(x, y)

    def _schedule(self, fn: Callable[..., Awaitable], *args) -> None:
        if not self.input_enabled:
            return
        task = asyncio.get_running_loop().create_task(fn(*args))
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.exception("Scheduled board action failed", exc_info=exc)
