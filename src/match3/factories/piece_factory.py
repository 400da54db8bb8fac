from __future__ import annotations

import logging
import random
from typing import Hashable, Iterable, List, Optional, Set

from match3.components.grid import Grid
from match3.components.piece import Piece
from match3.components.piece_catalog import PieceCatalog

logger = logging.getLogger(__name__)


class PieceFactory:
    """Creates pieces from the catalog, steering random picks away from instant matches."""

    def __init__(self, catalog: PieceCatalog, rng: random.Random | None = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def random_type(self, excluded: Iterable[Hashable] = ()) -> Hashable:
        choices = self.catalog.spawnable_types() or self.catalog.defined_types()
        excluded_set = {type_id for type_id in excluded if type_id is not None}
        available = [type_id for type_id in choices if type_id not in excluded_set]
        if not available:
            # Small catalogs can be fully excluded; any type beats failing to fill the cell.
            logger.debug("All %d piece types excluded; picking without constraint", len(choices))
            available = choices
        return self.rng.choice(available)

    def create(self, type_id: Hashable) -> Piece:
        piece_type = self.catalog.get(type_id)
        return Piece(type_id=piece_type.type_id, score=piece_type.score)

    def spawn(self, excluded: Iterable[Hashable] = ()) -> Piece:
        return self.create(self.random_type(excluded))

    @staticmethod
    def excluded_types_at(grid: Grid, x: int, y: int) -> Set[Hashable]:
        """Type ids that would complete a run with the settled pieces left of and below (x, y)."""
        probes: List[Optional[Hashable]] = [
            grid.type_id_at(x - 1, y),  # closest left
            grid.type_id_at(x - 2, y),  # further left
            grid.type_id_at(x, y - 1),  # closest below
            grid.type_id_at(x, y - 2),  # further below
        ]
        return {type_id for type_id in probes if type_id is not None}

    def spawn_for_cell(self, grid: Grid, x: int, y: int) -> Piece:
        return self.spawn(self.excluded_types_at(grid, x, y))

    def populate(self, grid: Grid) -> List[Piece]:
        """Fill every empty cell, bottom row first, without effects."""
        spawned: List[Piece] = []
        for x, y in grid.positions():
            if grid.has_piece(x, y):
                continue
            piece = self.spawn_for_cell(grid, x, y)
            grid.set(x, y, piece)
            spawned.append(piece)
        return spawned
