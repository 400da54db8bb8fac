"""Board and level settings.

Settings are plain dataclasses validated on construction, so a malformed level
fails before any piece is generated. ``load_levels`` reads a JSON file holding
either a single level object or a list of them::

    [
      {"width": 8, "height": 8, "target_score": 50,
       "pieces": [{"type_id": "ruby", "score": 1, "asset": "ruby.png"}, ...]}
    ]
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Tuple

from match3 import constants
from match3.components.piece_catalog import PieceCatalog
from match3.errors import ConfigurationError


@dataclass(slots=True, frozen=True)
class EffectDurations:
    """Per-phase effect timings. Opaque to the rules, consumed by the animation system."""
    move: float = constants.MOVE_DURATION
    remove: float = constants.REMOVE_DURATION
    spawn: float = constants.SPAWN_DURATION
    drop_per_row: float = constants.DROP_ROW_DURATION
    shake: float = constants.SHAKE_DURATION
    populate_spawn: float = constants.POPULATE_SPAWN_TIME

    def __post_init__(self) -> None:
        for name in ("move", "remove", "spawn", "drop_per_row", "shake", "populate_spawn"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ConfigurationError(f"Duration '{name}' must be a non-negative number, got {value!r}")


@dataclass(slots=True)
class BoardSettings:
    width: int
    height: int
    catalog: PieceCatalog
    revert_if_no_match: bool = True
    auto_refill: bool = True
    target_score: int = constants.TARGET_SCORE
    center: Tuple[float, float] = constants.BOARD_CENTER
    durations: EffectDurations = field(default_factory=EffectDurations)
    # Re-populate the board when a cascade leaves no possible move.
    reshuffle_on_stalemate: bool = False

    def __post_init__(self) -> None:
        if any(isinstance(value, bool) or not isinstance(value, int) for value in (self.width, self.height)):
            raise ConfigurationError(f"Board size must be integers, got {self.width!r}x{self.height!r}")
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(f"Board size must be at least 1x1, got {self.width}x{self.height}")
        if not isinstance(self.catalog, PieceCatalog):
            raise ConfigurationError("Board settings need a PieceCatalog")
        if self.target_score < 1:
            raise ConfigurationError(f"Target score must be positive, got {self.target_score}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BoardSettings":
        try:
            pieces = payload["pieces"]
        except KeyError:
            raise ConfigurationError("Level definition is missing 'pieces'") from None
        size = payload.get("size")
        if size is not None:
            try:
                width, height = size
            except (TypeError, ValueError):
                raise ConfigurationError(f"Board size must be a [width, height] pair, got {size!r}") from None
        else:
            width = payload.get("width", constants.GRID_WIDTH)
            height = payload.get("height", constants.GRID_HEIGHT)
        durations = payload.get("durations") or {}
        try:
            effect_durations = EffectDurations(**durations)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid durations: {exc}") from None
        try:
            target_score = int(payload.get("target_score", constants.TARGET_SCORE))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Target score must be an integer, got {payload.get('target_score')!r}") from None
        try:
            center = tuple(float(value) for value in payload.get("center", constants.BOARD_CENTER))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Board center must be an (x, y) pair, got {payload.get('center')!r}") from None
        if len(center) != 2:
            raise ConfigurationError(f"Board center must be an (x, y) pair, got {center!r}")
        return cls(
            width=width,
            height=height,
            catalog=PieceCatalog.from_entries(pieces),
            revert_if_no_match=bool(payload.get("revert_if_no_match", True)),
            auto_refill=bool(payload.get("auto_refill", True)),
            target_score=target_score,
            center=center,
            durations=effect_durations,
            reshuffle_on_stalemate=bool(payload.get("reshuffle_on_stalemate", False)),
        )


def levels_from_payload(payload: Any) -> List[BoardSettings]:
    if isinstance(payload, Mapping):
        entries: Iterable[Any] = [payload]
    elif isinstance(payload, list):
        entries = payload
    else:
        raise ConfigurationError("Level file must contain an object or a list of objects")
    levels = [BoardSettings.from_dict(entry) for entry in entries]
    if not levels:
        raise ConfigurationError("Level file does not define any level")
    return levels


def load_levels(path: Path | str) -> List[BoardSettings]:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError:
        raise ConfigurationError(f"Level file not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Level file {path} is not valid JSON: {exc}") from None
    return levels_from_payload(payload)
