from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional

from match3 import constants
from match3.components.grid import Grid
from match3.components.piece import Piece, Position
from match3.events.bus import (
    EVENT_BOARD_RESHUFFLED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GRAVITY_APPLIED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_REFILL_COMPLETED,
    EVENT_SCORE_INCREASED,
    EventBus,
)
from match3.factories.piece_factory import PieceFactory
from match3.systems.effects import BoardEffects
from match3.systems.match import MatchDetector

logger = logging.getLogger(__name__)

ScoreCallback = Callable[[int], None]


class CascadePhase(Enum):
    IDLE = auto()
    CLEARING = auto()
    DROPPING = auto()
    REFILLING = auto()
    RECHECKING = auto()


@dataclass(slots=True)
class GravityMove:
    piece: Piece
    source: Position
    target: Position

    @property
    def rows(self) -> int:
        return self.source[1] - self.target[1]


@dataclass(slots=True)
class CascadeResult:
    score: int = 0
    depth: int = 0
    cleared: int = 0
    phase_scores: List[int] = field(default_factory=list)


class CascadeResolver:
    """Runs clear -> drop -> refill -> rescan until the board holds no match.

    Every effect request is awaited before the next grid mutation, and the
    score callback fires once per clear phase with that phase's subtotal.
    """

    def __init__(
        self,
        grid: Grid,
        detector: MatchDetector,
        factory: PieceFactory,
        effects: BoardEffects,
        event_bus: EventBus,
        *,
        on_score_increase: Optional[ScoreCallback] = None,
        auto_refill: bool = True,
        reshuffle_on_stalemate: bool = False,
    ):
        self.grid = grid
        self.detector = detector
        self.factory = factory
        self.effects = effects
        self.event_bus = event_bus
        self.on_score_increase = on_score_increase
        self.auto_refill = auto_refill
        self.reshuffle_on_stalemate = reshuffle_on_stalemate
        self.phase = CascadePhase.IDLE

    async def resolve(self, matched: List[Piece]) -> CascadeResult:
        result = CascadeResult()
        if not matched:
            return result
        while matched:
            result.depth += 1
            positions = [piece.position for piece in matched]
            logger.debug("Cascade step %d clearing %d pieces", result.depth, len(matched))
            self.event_bus.emit(EVENT_CASCADE_STEP, depth=result.depth, positions=positions)
            groups = [[piece.position for piece in group] for group in self.detector.find_matches()]
            self.event_bus.emit(
                EVENT_MATCH_FOUND, positions=positions, groups=groups, size=len(positions), depth=result.depth
            )
            score = await self.clear(matched, depth=result.depth)
            result.score += score
            result.cleared += len(matched)
            result.phase_scores.append(score)
            await self.drop_pieces()
            if self.auto_refill:
                await self.refill()
            self.phase = CascadePhase.RECHECKING
            matched, _ = self.detector.scan_board()
        self.phase = CascadePhase.IDLE
        if self.reshuffle_on_stalemate and self.detector.find_hint() is None:
            self.reshuffle()
        logger.debug("Cascade finished after %d steps, score %d", result.depth, result.score)
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=result.depth, score=result.score)
        return result

    async def clear(self, matched: List[Piece], *, depth: int = 1) -> int:
        self.phase = CascadePhase.CLEARING
        total = 0
        positions: List[Position] = []
        types = []
        for piece in matched:
            total += piece.score
            positions.append(piece.position)
            types.append(piece.type_id)
            await self.effects.remove(piece)
            self.grid.clear(*piece.position)
        self.event_bus.emit(EVENT_MATCH_CLEARED, positions=positions, types=types, score=total)
        if total > 0:
            if self.on_score_increase is not None:
                self.on_score_increase(total)
            self.event_bus.emit(EVENT_SCORE_INCREASED, amount=total, depth=depth)
        return total

    async def drop_pieces(self) -> List[GravityMove]:
        # Row 0 never falls; sweeping upward lets each piece fall through every gap below it at once.
        self.phase = CascadePhase.DROPPING
        moves: List[GravityMove] = []
        for y in range(1, self.grid.height):
            for x in range(self.grid.width):
                piece = self.grid.get(x, y)
                if piece is None or not self.grid.can_drop(x, y):
                    continue
                target_y, rows = self.grid.drop_target(x, y)
                if rows == 0:
                    continue
                await self.effects.drop(piece, rows)
                self.grid.clear(x, y)
                self.grid.set(x, target_y, piece)
                moves.append(GravityMove(piece=piece, source=(x, y), target=(x, target_y)))
        self.event_bus.emit(
            EVENT_GRAVITY_APPLIED,
            moves=[(move.source, move.target) for move in moves],
        )
        return moves

    async def refill(self) -> List[Piece]:
        self.phase = CascadePhase.REFILLING
        spawned: List[Piece] = []
        for x, y in self.grid.positions():
            if self.grid.has_piece(x, y):
                continue
            piece = self.factory.spawn_for_cell(self.grid, x, y)
            self.grid.set(x, y, piece)
            spawned.append(piece)
            await self.effects.spawn(piece)
        if spawned:
            self.event_bus.emit(EVENT_REFILL_COMPLETED, new_pieces=[piece.position for piece in spawned])
        return spawned

    def reshuffle(self, max_attempts: int = constants.RESHUFFLE_MAX_ATTEMPTS) -> int:
        """Replace every piece with a fresh layout that has no match and at least one move."""
        for attempt in range(1, max_attempts + 1):
            self.grid.clear_all()
            self.factory.populate(self.grid)
            if self.detector.has_match():
                continue
            if self.detector.find_hint() is None:
                continue
            logger.info("Board reshuffled after %d attempt(s)", attempt)
            self.event_bus.emit(EVENT_BOARD_RESHUFFLED, attempts=attempt)
            return attempt
        raise RuntimeError("Unable to reshuffle board without matches and with a valid swap")

