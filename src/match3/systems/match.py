from __future__ import annotations

from typing import Dict, Hashable, List, Optional, Set, Tuple

from match3.components.grid import Grid
from match3.components.piece import Piece, Position

Direction = Tuple[int, int]

RIGHT: Direction = (1, 0)
UP: Direction = (0, 1)
LEFT: Direction = (-1, 0)
DOWN: Direction = (0, -1)
ORTHOGONAL: Tuple[Direction, ...] = (RIGHT, UP, LEFT, DOWN)

MIN_MATCH = 3


class MatchDetector:
    """Finds runs of three or more same-typed pieces on a grid without mutating it."""

    def __init__(self, grid: Grid):
        self.grid = grid

    def find_run(self, origin: Position, direction: Direction) -> List[Piece]:
        """Pieces sharing the origin's type, starting one step past origin and walking ``direction``."""
        if direction not in ORTHOGONAL:
            raise ValueError(f"Direction must be an orthogonal unit vector, got {direction!r}")
        source = self.grid.get(*origin)
        if source is None:
            return []
        dx, dy = direction
        x, y = origin[0] + dx, origin[1] + dy
        run: List[Piece] = []
        while True:
            current = self.grid.get(x, y)
            if not source.matches(current):
                break
            run.append(current)
            x += dx
            y += dy
        return run

    def scan_board(self) -> Tuple[List[Piece], bool]:
        """Return ``(matched_pieces, has_match)``.

        Only forward (right / up) runs are followed from each cell so every run
        is seen from its first piece. A piece sitting on both a horizontal and a
        vertical run is listed once.
        """
        matched: Dict[int, Piece] = {}
        for position, piece in self.grid.cells():
            if piece is None:
                continue
            for direction in (UP, RIGHT):
                run = self.find_run(position, direction)
                if len(run) >= MIN_MATCH - 1:
                    matched.setdefault(id(piece), piece)
                    for member in run:
                        matched.setdefault(id(member), member)
        pieces = list(matched.values())
        return pieces, bool(pieces)

    def has_match(self) -> bool:
        return self.scan_board()[1]

    def find_matches(self) -> List[List[Piece]]:
        """Matched pieces grouped so that crossing or overlapping runs form one group."""
        runs: List[Set[Position]] = []
        for position, piece in self.grid.cells():
            if piece is None:
                continue
            for direction in (RIGHT, UP):
                run = self.find_run(position, direction)
                if len(run) >= MIN_MATCH - 1:
                    runs.append({position, *(member.position for member in run)})
        merged: List[Set[Position]] = []
        while runs:
            first = runs.pop()
            changed = True
            while changed:
                changed = False
                for group in runs[:]:
                    if first & group:
                        first |= group
                        runs.remove(group)
                        changed = True
            merged.append(first)
        groups = [
            [self.grid.get(x, y) for x, y in sorted(group, key=lambda pos: (pos[1], pos[0]))]
            for group in merged
        ]
        groups.sort(key=lambda group: (group[0].y, group[0].x))
        return groups

    # ------------------------------------------------------------------
    # Look-ahead
    # ------------------------------------------------------------------
    def find_hint(self) -> Optional[Piece]:
        """First piece (bottom row first, left to right) that can be swapped into a match."""
        for position, piece in self.grid.cells():
            if piece is None:
                continue
            if self._has_hint_at(position, piece):
                return piece
        return None

    def _has_hint_at(self, position: Position, piece: Piece) -> bool:
        return any(self._move_completes_run(position, piece, direction) for direction in ORTHOGONAL)

    def _move_completes_run(self, position: Position, piece: Piece, direction: Direction) -> bool:
        dx, dy = direction
        tx, ty = position[0] + dx, position[1] + dy
        neighbour = self.grid.get(tx, ty)
        if neighbour is None or neighbour.matches(piece):
            return False
        type_id = piece.type_id
        # Continuing past the target cell: the classic "two in a row, one step away" shape.
        ahead = self._count_same(tx, ty, dx, dy, type_id)
        if ahead >= MIN_MATCH - 1:
            return True
        # Across the target cell: pairs on one side, or one piece on each side (the notch).
        px, py = dy, dx
        across = self._count_same(tx, ty, px, py, type_id) + self._count_same(tx, ty, -px, -py, type_id)
        return across >= MIN_MATCH - 1

    def _count_same(self, x: int, y: int, dx: int, dy: int, type_id: Hashable) -> int:
        count = 0
        x += dx
        y += dy
        while self.grid.type_id_at(x, y) == type_id:
            count += 1
            x += dx
            y += dy
        return count

    def predict_swap_creates_match(self, a: Position, b: Position) -> bool:
        """Virtually swap two occupied cells and report whether either lands in a run."""
        first = self.grid.type_id_at(*a)
        second = self.grid.type_id_at(*b)
        if first is None or second is None or first == second:
            return False
        overrides = {a: second, b: first}
        return self._line_match(a, overrides) or self._line_match(b, overrides)

    def _line_match(self, pos: Position, overrides: Dict[Position, Hashable]) -> bool:
        def type_at(x: int, y: int) -> Optional[Hashable]:
            if (x, y) in overrides:
                return overrides[(x, y)]
            return self.grid.type_id_at(x, y)

        type_id = type_at(*pos)
        for dx, dy in (RIGHT, UP):
            length = 1
            for sign in (1, -1):
                x, y = pos[0] + dx * sign, pos[1] + dy * sign
                while self.grid.in_bounds(x, y) and type_at(x, y) == type_id:
                    length += 1
                    x += dx * sign
                    y += dy * sign
            if length >= MIN_MATCH:
                return True
        return False

    def find_valid_swaps(self) -> List[Tuple[Piece, Piece]]:
        """Every adjacent pair whose swap would produce a match."""
        swaps: List[Tuple[Piece, Piece]] = []
        for (x, y), piece in self.grid.cells():
            if piece is None:
                continue
            for dx, dy in (RIGHT, UP):
                other = self.grid.get(x + dx, y + dy)
                if other is None:
                    continue
                if self.predict_swap_creates_match((x, y), (x + dx, y + dy)):
                    swaps.append((piece, other))
        return swaps
