from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional

from esper import World

from match3.components.grid import Grid
from match3.components.piece import Piece
from match3.config import BoardSettings
from match3.events.bus import EventBus
from match3.factories.piece_factory import PieceFactory
from match3.systems.animation import AnimationSystem
from match3.systems.cascade import CascadeResolver
from match3.systems.effects import BoardEffects
from match3.systems.input import InputSystem
from match3.systems.match import MatchDetector
from match3.systems.selection import SelectionController

logger = logging.getLogger(__name__)


@dataclass
class Board:
    """Everything one playable board needs, wired to a shared bus and world."""
    world: World
    event_bus: EventBus
    settings: BoardSettings
    grid: Grid
    factory: PieceFactory
    detector: MatchDetector
    effects: BoardEffects
    resolver: CascadeResolver
    selection: SelectionController
    input_system: InputSystem
    on_score_increase: Optional[Callable[[int], None]] = None
    score: int = 0

    def report_score(self, amount: int) -> None:
        self.score += amount
        if self.on_score_increase is not None:
            self.on_score_increase(amount)

    def close(self) -> None:
        """Disconnect this board's systems from the bus so a new level can take over."""
        self.selection.detach()
        self.input_system.detach()
        if isinstance(self.effects, AnimationSystem):
            self.effects.detach()

    async def populate_animated(self) -> List[Piece]:
        """Fill the empty cells with spawn effects, keeping input closed until done."""
        self.selection.set_input_enabled(False)
        animated = isinstance(self.effects, AnimationSystem)
        if animated:
            self.effects.populating = True
        spawned: List[Piece] = []
        try:
            for x, y in self.grid.positions():
                if self.grid.has_piece(x, y):
                    continue
                piece = self.factory.spawn_for_cell(self.grid, x, y)
                self.grid.set(x, y, piece)
                spawned.append(piece)
                await self.effects.spawn(piece)
        finally:
            if animated:
                self.effects.populating = False
            self.selection.set_input_enabled(True)
        return spawned


def create_world(rng: random.Random | None = None) -> World:
    world = World()
    setattr(world, "random", rng or random.Random())
    return world


def create_board(
    event_bus: EventBus,
    settings: BoardSettings,
    *,
    world: World | None = None,
    effects: BoardEffects | None = None,
    rng: random.Random | None = None,
    on_score_increase: Optional[Callable[[int], None]] = None,
    populate: bool = True,
) -> Board:
    """Build grid, systems and controller for ``settings``.

    With ``populate`` the grid is filled before the board is returned;
    otherwise it starts empty with input closed and the caller is expected to
    await ``Board.populate_animated``. Without injected ``effects`` the
    tick-driven AnimationSystem is used.
    """
    if world is None:
        world = create_world(rng)
    if rng is None:
        rng = getattr(world, "random", None) or random.Random()
    grid = Grid(settings.width, settings.height, center=settings.center)
    factory = PieceFactory(settings.catalog, rng=rng)
    detector = MatchDetector(grid)
    if effects is None:
        effects = AnimationSystem(world, event_bus, settings.durations)
    resolver = CascadeResolver(
        grid,
        detector,
        factory,
        effects,
        event_bus,
        auto_refill=settings.auto_refill,
        reshuffle_on_stalemate=settings.reshuffle_on_stalemate,
    )
    selection = SelectionController(
        grid,
        detector,
        resolver,
        effects,
        event_bus,
        revert_if_no_match=settings.revert_if_no_match,
    )
    board = Board(
        world=world,
        event_bus=event_bus,
        settings=settings,
        grid=grid,
        factory=factory,
        detector=detector,
        effects=effects,
        resolver=resolver,
        selection=selection,
        input_system=InputSystem(event_bus, grid),
        on_score_increase=on_score_increase,
    )
    resolver.on_score_increase = board.report_score

    if populate:
        factory.populate(grid)
        if settings.reshuffle_on_stalemate and detector.find_hint() is None:
            resolver.reshuffle()
        logger.debug("Populated %dx%d board", grid.width, grid.height)
    else:
        selection.set_input_enabled(False)
    return board
