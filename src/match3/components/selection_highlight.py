from dataclasses import dataclass
from typing import Optional

from match3.components.piece import Piece


@dataclass(slots=True)
class SelectionHighlight:
    """Singleton marker for the board selector; ``piece`` is None while hidden."""
    piece: Optional[Piece] = None
