from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple

from match3.components.piece import Piece


@dataclass(slots=True)
class MoveAnimation:
    piece: Piece
    dst: Tuple[float, float]
    linear: float = 0.0  # 0..1


@dataclass(slots=True)
class RemoveAnimation:
    piece: Piece
    linear: float = 0.0


@dataclass(slots=True)
class DropAnimation:
    piece: Piece
    rows: int
    linear: float = 0.0


@dataclass(slots=True)
class SpawnAnimation:
    piece: Piece
    linear: float = 0.0


@dataclass(slots=True)
class ShakeAnimation:
    piece: Piece
    linear: float = 0.0


@dataclass(slots=True)
class Duration:
    value: float


@dataclass(slots=True)
class Completion:
    """Future the rules are awaiting; resolved when the animation entity finishes."""
    future: Optional[asyncio.Future] = None
