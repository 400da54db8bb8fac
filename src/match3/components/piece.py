from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Optional, Tuple

Position = Tuple[int, int]


@dataclass(slots=True, frozen=True)
class PieceType:
    """Catalog entry for one kind of piece.

    ``asset`` is whatever the renderer needs to draw the piece (sprite path, color, ...).
    The rules never look at it.
    """
    type_id: Hashable
    score: int = 1
    asset: Any = None


@dataclass(slots=True, eq=False)
class Piece:
    """A piece instance living in (at most) one grid cell.

    Instances hash and compare by identity so a set of matched pieces never
    collapses two different cells of the same type. Use ``matches`` for the
    type-based comparison the rules care about.
    """
    type_id: Hashable
    score: int = 1
    x: int = -1
    y: int = -1
    selected: bool = False

    @property
    def position(self) -> Position:
        return self.x, self.y

    @property
    def placed(self) -> bool:
        return self.x >= 0 and self.y >= 0

    def matches(self, other: Optional["Piece"]) -> bool:
        return other is not None and other.type_id == self.type_id

    def place(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def select(self) -> None:
        self.selected = True

    def unselect(self) -> None:
        self.selected = False

    def __repr__(self) -> str:
        return f"Piece({self.type_id!r} @ {self.x},{self.y})"
