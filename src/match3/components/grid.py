from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Hashable, Iterator, List, Optional, Sequence, Tuple

from match3.components.piece import Piece, Position
from match3.errors import ConfigurationError

logger = logging.getLogger(__name__)

WorldPosition = Tuple[float, float]


class Grid:
    """Authoritative W x H board of pieces with the origin at the bottom-left cell.

    Cells hold a ``Piece`` or ``None``. Reads outside the board return ``None``
    instead of raising so run scans can probe freely past the edges.
    """

    def __init__(self, width: int, height: int, center: WorldPosition = (0.0, 0.0)):
        if width < 1 or height < 1:
            raise ConfigurationError(f"Grid size must be at least 1x1, got {width}x{height}")
        self.width = width
        self.height = height
        self.center = center
        self._cells: List[List[Optional[Piece]]] = [[None] * height for _ in range(width)]

    @classmethod
    def from_layout(
        cls,
        rows: Sequence[Sequence[Optional[Hashable]]],
        *,
        scores: Optional[dict] = None,
        center: WorldPosition = (0.0, 0.0),
    ) -> "Grid":
        """Build a grid from type ids written top row first, as a board reads on screen.

        ``None`` leaves a cell empty. Handy for fixtures and debugging.
        """
        if not rows or not rows[0]:
            raise ConfigurationError("Layout must contain at least one cell")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ConfigurationError("Layout rows must all have the same length")
        grid = cls(width, len(rows), center=center)
        scores = scores or {}
        for row_index, row in enumerate(rows):
            y = grid.height - 1 - row_index
            for x, type_id in enumerate(row):
                if type_id is not None:
                    grid.set(x, y, Piece(type_id=type_id, score=scores.get(type_id, 1)))
        return grid

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def origin(self) -> WorldPosition:
        return (self.center[0] - self.width / 2, self.center[1] - self.height / 2)

    def world_position(self, x: int, y: int) -> WorldPosition:
        ox, oy = self.origin
        return (ox + x, oy + y)

    def cell_at_world(self, wx: float, wy: float) -> Optional[Position]:
        ox, oy = self.origin
        x = math.floor(wx - ox)
        y = math.floor(wy - oy)
        if not self.in_bounds(x, y):
            return None
        return x, y

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    @staticmethod
    def is_adjacent(a: Position, b: Position) -> bool:
        ax, ay = a
        bx, by = b
        return (abs(ax - bx) == 1 and ay == by) or (abs(ay - by) == 1 and ax == bx)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------
    def get(self, x: int, y: int) -> Optional[Piece]:
        if not self.in_bounds(x, y):
            return None
        return self._cells[x][y]

    def type_id_at(self, x: int, y: int) -> Optional[Hashable]:
        piece = self.get(x, y)
        return piece.type_id if piece is not None else None

    def has_piece(self, x: int, y: int) -> bool:
        return self.get(x, y) is not None

    def set(self, x: int, y: int, piece: Piece) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell {(x, y)} is outside a {self.width}x{self.height} grid")
        self._cells[x][y] = piece
        piece.place(x, y)

    def clear(self, x: int, y: int) -> Optional[Piece]:
        if not self.in_bounds(x, y):
            return None
        piece = self._cells[x][y]
        self._cells[x][y] = None
        return piece

    def swap(self, a: Position, b: Position) -> None:
        first = self.get(*a)
        second = self.get(*b)
        if first is None or second is None:
            raise ValueError(f"Cannot swap {a} and {b}: both cells must hold a piece")
        self.set(b[0], b[1], first)
        self.set(a[0], a[1], second)

    def clear_all(self) -> None:
        for column in self._cells:
            for y in range(self.height):
                column[y] = None

    # ------------------------------------------------------------------
    # Gravity helpers
    # ------------------------------------------------------------------
    def can_drop(self, x: int, y: int) -> bool:
        if y <= 0:
            return False
        return self.get(x, y - 1) is None

    def drop_target(self, x: int, y: int) -> Tuple[int, int]:
        """Return ``(target_y, rows_dropped)`` for a piece falling from (x, y)."""
        rows = 0
        target_y = y
        while self.can_drop(x, target_y):
            rows += 1
            target_y -= 1
            if rows > self.height:
                logger.error(
                    "Drop from %s exceeded %d rows; leaving piece in place", (x, y), self.height
                )
                return y, 0
        return target_y, rows

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------
    def positions(self) -> Iterator[Position]:
        """Row-major, bottom row first, left to right."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def cells(self) -> Iterator[Tuple[Position, Optional[Piece]]]:
        for x, y in self.positions():
            yield (x, y), self._cells[x][y]

    def pieces(self) -> Iterator[Piece]:
        for _, piece in self.cells():
            if piece is not None:
                yield piece

    def empty_cells(self) -> List[Position]:
        return [pos for pos, piece in self.cells() if piece is None]

    def is_full(self) -> bool:
        return not self.empty_cells()

    def type_counts(self) -> Counter:
        return Counter(piece.type_id for piece in self.pieces())

    def snapshot(self) -> List[List[Optional[Hashable]]]:
        """Type ids laid out top row first, mirroring ``from_layout``."""
        return [
            [self.type_id_at(x, y) for x in range(self.width)]
            for y in range(self.height - 1, -1, -1)
        ]

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height})"
