GRID_WIDTH = 8
GRID_HEIGHT = 8

# Board center in world units. The bottom-left cell sits at center - size / 2.
BOARD_CENTER = (0.0, 0.0)

# Default score target before a level counts as complete.
TARGET_SCORE = 50

# Effect durations (seconds). Only the animation system reads these; the rules never do.
MOVE_DURATION = 0.25
REMOVE_DURATION = 0.15
SPAWN_DURATION = 0.1
# Per dropped row.
DROP_ROW_DURATION = 0.06
SHAKE_DURATION = 0.25
# Spawn time used while populating a fresh board (0 disables the spawn effect).
POPULATE_SPAWN_TIME = 0.02

# Pointer travel (world units) before a press turns into a drag swap.
DRAG_THRESHOLD = 0.5

# Attempts before giving up on a stalemate reshuffle.
RESHUFFLE_MAX_ATTEMPTS = 200
