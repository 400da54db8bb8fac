from __future__ import annotations

import random
from typing import Hashable, Iterable, List, Sequence

from match3.components.grid import Grid
from match3.components.piece_catalog import PieceCatalog
from match3.events.bus import EVENT_TICK, EventBus

BASE_TYPES = ['ruby', 'emerald', 'sapphire', 'topaz', 'amethyst']


def make_catalog(type_ids: Sequence[Hashable] = BASE_TYPES, score: int = 1) -> PieceCatalog:
    return PieceCatalog.from_entries([(type_id, score) for type_id in type_ids])


class ScriptedRandom(random.Random):
    """Random whose ``choice`` returns scripted type ids first, then behaves normally.

    A scripted id the caller did not offer is skipped in favour of the first
    offered option so refills stay legal.
    """

    def __init__(self, script: Iterable[Hashable] = (), seed: int = 0):
        super().__init__(seed)
        self.script: List[Hashable] = list(script)
        self.offered: List[List[Hashable]] = []

    def choice(self, seq):
        options = list(seq)
        self.offered.append(options)
        if self.script:
            wanted = self.script.pop(0)
            return wanted if wanted in options else options[0]
        return super().choice(options)


def checkerboard(width: int, height: int, type_ids: Sequence[Hashable] = BASE_TYPES) -> Grid:
    """Matchless layout: each cell's type depends on (x + 2 * y) so no three line up."""
    rows = []
    for row_index in range(height):
        y = height - 1 - row_index
        rows.append([type_ids[(x + 2 * y) % len(type_ids)] for x in range(width)])
    return Grid.from_layout(rows)


def drive(bus: EventBus, ticks: int, dt: float = 0.02) -> None:
    for _ in range(ticks):
        bus.emit(EVENT_TICK, dt=dt)
