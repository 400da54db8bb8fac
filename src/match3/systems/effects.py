"""Boundary between the rules and whatever draws or plays the board.

The resolver and the selection controller await every effect request, so the
order move -> swap -> scan -> remove -> drop -> spawn -> rescan is strict
regardless of how long a renderer takes. ``InstantEffects`` completes every
request on the spot and keeps a log, which is what headless play and most
tests want.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Tuple, runtime_checkable

from match3.components.piece import Piece

WorldPosition = Tuple[float, float]


@runtime_checkable
class BoardEffects(Protocol):
    async def move(self, piece: Piece, position: WorldPosition) -> None: ...

    async def spawn(self, piece: Piece) -> None: ...

    async def remove(self, piece: Piece) -> None: ...

    async def drop(self, piece: Piece, rows: int) -> None: ...

    def shake(self, piece: Piece) -> None: ...

    def highlight(self, piece: Piece) -> None: ...

    def clear_highlight(self) -> None: ...


class InstantEffects:
    """Completes every effect immediately and records what was asked for."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Piece | None, object]] = []
        self.highlighted: Optional[Piece] = None

    async def move(self, piece: Piece, position: WorldPosition) -> None:
        self.calls.append(("move", piece, position))

    async def spawn(self, piece: Piece) -> None:
        self.calls.append(("spawn", piece, piece.position))

    async def remove(self, piece: Piece) -> None:
        self.calls.append(("remove", piece, piece.position))

    async def drop(self, piece: Piece, rows: int) -> None:
        self.calls.append(("drop", piece, rows))

    def shake(self, piece: Piece) -> None:
        self.calls.append(("shake", piece, piece.position))

    def highlight(self, piece: Piece) -> None:
        self.highlighted = piece
        self.calls.append(("highlight", piece, piece.position))

    def clear_highlight(self) -> None:
        self.highlighted = None
        self.calls.append(("clear_highlight", None, None))

    def kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.calls]

    def count(self, kind: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == kind)

    def reset(self) -> None:
        self.calls.clear()
