from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods alive even when the owning system is not stored anywhere.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_POINTER_PRESS = "pointer_press"              # payload: x, y (world units)
EVENT_POINTER_DRAG = "pointer_drag"                # payload: x, y
EVENT_POINTER_RELEASE = "pointer_release"          # payload: x, y
EVENT_PIECE_PRESS = "piece_press"                  # payload: x, y (cell)
EVENT_PIECE_CLICK = "piece_click"                  # payload: x, y (cell)
EVENT_PIECE_DRAG = "piece_drag"                    # payload: x, y (cell), direction=(dx, dy)
EVENT_INPUT_ENABLED = "input_enabled"              # payload: enabled=bool


# ============================================================================
# SELECTION & SWAP
# ============================================================================
EVENT_PIECE_SELECTED = "piece_selected"            # payload: piece, x, y
EVENT_PIECE_DESELECTED = "piece_deselected"        # payload: piece, reason=str
EVENT_PIECE_SHAKEN = "piece_shaken"                # payload: piece, direction
EVENT_SWAP_STARTED = "swap_started"                # payload: src=(x,y), dst=(x,y)
EVENT_SWAP_INVALID = "swap_invalid"                # payload: src=(x,y), dst=(x,y), reverted=bool
EVENT_SWAP_COMPLETE = "swap_complete"              # payload: outcome=SwapOutcome


# ============================================================================
# MATCH & CASCADE
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[(x,y),...], groups=[[(x,y),...],...], size=int, depth=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(x,y),...], types=[type_id,...], score=int
EVENT_SCORE_INCREASED = "score_increased"          # payload: amount=int, depth=int
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=[((x,y),(x,y)),...]
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_pieces=[(x,y),...]
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(x,y),...]
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, score=int
EVENT_BOARD_RESHUFFLED = "board_reshuffled"        # payload: attempts=int


# ============================================================================
# ANIMATION
# ============================================================================
EVENT_ANIMATION_START = "animation_start"          # payload: kind=str, piece, meta=dict
EVENT_ANIMATION_COMPLETE = "animation_complete"    # payload: kind=str, piece, meta=dict


# ============================================================================
# LEVEL PROGRESSION
# ============================================================================
EVENT_LEVEL_CHANGED = "level_changed"              # payload: index=int, target_score=int
EVENT_LEVEL_COMPLETE = "level_complete"            # payload: index=int, score=int, target_score=int
