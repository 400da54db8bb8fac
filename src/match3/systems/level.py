from __future__ import annotations

import logging
from typing import List

from esper import World

from match3.components.level_progress import LevelProgress
from match3.config import BoardSettings
from match3.errors import ConfigurationError
from match3.events.bus import (
    EVENT_LEVEL_CHANGED,
    EVENT_LEVEL_COMPLETE,
    EVENT_SCORE_INCREASED,
    EventBus,
)

logger = logging.getLogger(__name__)


class LevelSystem:
    """Accumulates score toward the active level's target and cycles through levels."""

    def __init__(self, world: World, event_bus: EventBus, levels: List[BoardSettings]):
        if not levels:
            raise ConfigurationError("At least one level is required")
        self.world = world
        self.event_bus = event_bus
        self.levels = list(levels)
        self._progress_entity = self._ensure_progress_entity()
        self.event_bus.subscribe(EVENT_SCORE_INCREASED, self.on_score_increased)
        self._reset_progress(0)

    def _ensure_progress_entity(self) -> int:
        existing = list(self.world.get_component(LevelProgress))
        if existing:
            return existing[0][0]
        return self.world.create_entity(LevelProgress())

    @property
    def progress(self) -> LevelProgress:
        return self.world.component_for_entity(self._progress_entity, LevelProgress)

    @property
    def current(self) -> BoardSettings:
        return self.levels[self.progress.index]

    @property
    def level_count(self) -> int:
        return len(self.levels)

    def on_score_increased(self, sender, **kwargs):
        amount = kwargs.get('amount', 0)
        if amount <= 0:
            return
        self.add_score(amount)

    def add_score(self, amount: int) -> None:
        progress = self.progress
        progress.score += amount
        if not progress.completed and progress.score >= progress.target_score:
            progress.completed = True
            logger.info("Level %d complete with %d points", progress.index, progress.score)
            self.event_bus.emit(
                EVENT_LEVEL_COMPLETE,
                index=progress.index,
                score=progress.score,
                target_score=progress.target_score,
            )

    def next_level(self) -> BoardSettings:
        index = self.progress.index + 1
        if index >= self.level_count:
            index = 0
        self._reset_progress(index)
        return self.current

    def previous_level(self) -> BoardSettings:
        index = self.progress.index - 1
        if index < 0:
            index = self.level_count - 1
        self._reset_progress(index)
        return self.current

    def _reset_progress(self, index: int) -> None:
        progress = self.progress
        progress.index = index
        progress.score = 0
        progress.completed = False
        progress.target_score = self.levels[index].target_score
        self.event_bus.emit(EVENT_LEVEL_CHANGED, index=index, target_score=progress.target_score)
