from __future__ import annotations

import asyncio
from typing import Any, Dict, Tuple

from esper import World

from match3.components.animation import (
    Completion,
    DropAnimation,
    Duration,
    MoveAnimation,
    RemoveAnimation,
    ShakeAnimation,
    SpawnAnimation,
)
from match3.components.piece import Piece
from match3.components.selection_highlight import SelectionHighlight
from match3.config import EffectDurations
from match3.events.bus import EVENT_ANIMATION_COMPLETE, EVENT_ANIMATION_START, EVENT_TICK, EventBus

ANIMATION_KINDS: Dict[type, str] = {
    MoveAnimation: "move",
    RemoveAnimation: "remove",
    DropAnimation: "drop",
    SpawnAnimation: "spawn",
    ShakeAnimation: "shake",
}


class AnimationSystem:
    """Tick-driven implementation of the board effects.

    Each request becomes its own entity carrying an animation component, a
    Duration and (unless fire-and-forget) a Completion future. ``tick`` events
    advance every animation; finished ones are deleted, their futures resolved
    and EVENT_ANIMATION_COMPLETE emitted.
    """

    def __init__(self, world: World, event_bus: EventBus, durations: EffectDurations | None = None):
        self.world = world
        self.event_bus = event_bus
        self.durations = durations or EffectDurations()
        self.highlight_entity = self.world.create_entity(SelectionHighlight())
        # While populating a board spawns use the (usually shorter) populate timing.
        self.populating = False
        event_bus.subscribe(EVENT_TICK, self.on_tick)

    # ------------------------------------------------------------------
    # BoardEffects
    # ------------------------------------------------------------------
    async def move(self, piece: Piece, position: Tuple[float, float]) -> None:
        await self._start(MoveAnimation(piece=piece, dst=position), self.durations.move)

    async def spawn(self, piece: Piece) -> None:
        duration = self.durations.populate_spawn if self.populating else self.durations.spawn
        await self._start(SpawnAnimation(piece=piece), duration)

    async def remove(self, piece: Piece) -> None:
        await self._start(RemoveAnimation(piece=piece), self.durations.remove)

    async def drop(self, piece: Piece, rows: int) -> None:
        await self._start(DropAnimation(piece=piece, rows=rows), rows * self.durations.drop_per_row)

    def shake(self, piece: Piece) -> None:
        duration = self.durations.shake
        ent = self.world.create_entity(ShakeAnimation(piece=piece), Duration(duration))
        self.event_bus.emit(EVENT_ANIMATION_START, kind="shake", piece=piece, meta={"entity": ent})
        if duration <= 0:
            self._finish(ent, ShakeAnimation)

    def highlight(self, piece: Piece) -> None:
        self.world.component_for_entity(self.highlight_entity, SelectionHighlight).piece = piece

    def clear_highlight(self) -> None:
        self.world.component_for_entity(self.highlight_entity, SelectionHighlight).piece = None

    @property
    def highlighted(self) -> Piece | None:
        return self.world.component_for_entity(self.highlight_entity, SelectionHighlight).piece

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------
    def _start(self, component: Any, duration: float) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        ent = self.world.create_entity(component, Duration(duration), Completion(future))
        kind = ANIMATION_KINDS[type(component)]
        self.event_bus.emit(EVENT_ANIMATION_START, kind=kind, piece=component.piece, meta={"entity": ent})
        if duration <= 0:
            self._finish(ent, type(component))
        return future

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', 1/60)
        for comp_type in ANIMATION_KINDS:
            for ent, anim in list(self.world.get_component(comp_type)):
                duration = self.world.component_for_entity(ent, Duration).value
                anim.linear = 1.0 if duration <= 0 else min(1.0, anim.linear + dt / duration)
                if anim.linear >= 1.0:
                    self._finish(ent, comp_type)

    def active_count(self) -> int:
        return sum(len(list(self.world.get_component(comp_type))) for comp_type in ANIMATION_KINDS)

    def _finish(self, ent: int, comp_type: type) -> None:
        anim = self.world.component_for_entity(ent, comp_type)
        future = None
        if self.world.has_component(ent, Completion):
            future = self.world.component_for_entity(ent, Completion).future
        self.world.delete_entity(ent, immediate=True)
        if future is not None and not future.done():
            future.set_result(None)
        self.event_bus.emit(EVENT_ANIMATION_COMPLETE, kind=ANIMATION_KINDS[comp_type], piece=anim.piece, meta={"entity": ent})

    def detach(self) -> None:
        self.event_bus.unsubscribe(EVENT_TICK, self.on_tick)
        if self.world.entity_exists(self.highlight_entity):
            self.world.delete_entity(self.highlight_entity, immediate=True)
