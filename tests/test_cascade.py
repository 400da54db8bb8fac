import random

import pytest

from match3.components.grid import Grid
from match3.events.bus import (
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GRAVITY_APPLIED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_REFILL_COMPLETED,
    EVENT_SCORE_INCREASED,
)
from match3.factories.piece_factory import PieceFactory
from match3.systems.cascade import CascadePhase, CascadeResolver
from match3.systems.match import MatchDetector
from tests.helpers import ScriptedRandom, make_catalog


def make_resolver(grid, effects, bus, rng=None, **kwargs):
    factory = PieceFactory(make_catalog(), rng=rng or random.Random(0))
    return CascadeResolver(grid, MatchDetector(grid), factory, effects, bus, **kwargs)


# Clearing the ruby column drops the emerald next to two others; refill is scripted.
TWO_STEP_LAYOUT = [
    ['sapphire', 'topaz', 'emerald'],
    ['topaz', 'amethyst', 'ruby'],
    ['amethyst', 'sapphire', 'ruby'],
    ['emerald', 'emerald', 'ruby'],
]
TWO_STEP_REFILL = ['topaz', 'sapphire', 'ruby', 'ruby', 'emerald', 'amethyst']


@pytest.mark.asyncio
async def test_empty_match_set_is_a_no_op(bus, effects):
    grid = Grid.from_layout([['ruby', 'topaz']])
    scores = []
    events = []
    bus.subscribe(EVENT_CASCADE_COMPLETE, lambda s, **k: events.append(k))
    resolver = make_resolver(grid, effects, bus, on_score_increase=scores.append)
    result = await resolver.resolve([])
    assert result.score == 0
    assert result.depth == 0
    assert scores == []
    assert events == []
    assert effects.calls == []


@pytest.mark.asyncio
async def test_two_step_cascade(bus, effects):
    grid = Grid.from_layout(TWO_STEP_LAYOUT)
    scores = []
    steps = []
    complete = {}
    bus.subscribe(EVENT_CASCADE_STEP, lambda s, **k: steps.append(k['depth']))
    bus.subscribe(EVENT_CASCADE_COMPLETE, lambda s, **k: complete.update(k))
    resolver = make_resolver(
        grid, effects, bus, rng=ScriptedRandom(TWO_STEP_REFILL), on_score_increase=scores.append
    )
    matched, has_match = resolver.detector.scan_board()
    assert has_match
    assert {piece.position for piece in matched} == {(2, 0), (2, 1), (2, 2)}

    result = await resolver.resolve(matched)

    assert result.depth == 2
    assert result.score == 6
    assert result.cleared == 6
    assert result.phase_scores == [3, 3]
    assert scores == [3, 3]
    assert steps == [1, 2]
    assert complete == {'depth': 2, 'score': 6}
    assert resolver.phase is CascadePhase.IDLE
    assert grid.snapshot() == [
        ['ruby', 'emerald', 'amethyst'],
        ['sapphire', 'topaz', 'ruby'],
        ['topaz', 'amethyst', 'sapphire'],
        ['amethyst', 'sapphire', 'topaz'],
    ]
    assert effects.count('remove') == 6
    assert effects.count('spawn') == 6
    assert not resolver.detector.has_match()


@pytest.mark.asyncio
async def test_remove_effects_precede_grid_clear(bus):
    grid = Grid.from_layout([['ruby', 'ruby', 'ruby', 'topaz']])
    seen = []

    class RecordingEffects:
        async def move(self, piece, position):
            pass

        async def spawn(self, piece):
            pass

        async def remove(self, piece):
            # The cell still holds the piece while its removal plays.
            seen.append(grid.get(*piece.position) is piece)

        async def drop(self, piece, rows):
            pass

        def shake(self, piece):
            pass

        def highlight(self, piece):
            pass

        def clear_highlight(self):
            pass

    resolver = make_resolver(grid, RecordingEffects(), bus, auto_refill=False)
    matched, _ = resolver.detector.scan_board()
    await resolver.resolve(matched)
    assert seen == [True, True, True]
    assert grid.snapshot() == [[None, None, None, 'topaz']]


@pytest.mark.asyncio
async def test_score_reports_per_phase_with_events(bus, effects):
    grid = Grid.from_layout([['ruby', 'ruby', 'ruby', 'topaz']], scores={'ruby': 5})
    amounts = []
    cleared = []
    bus.subscribe(EVENT_SCORE_INCREASED, lambda s, **k: amounts.append((k['amount'], k['depth'])))
    bus.subscribe(EVENT_MATCH_CLEARED, lambda s, **k: cleared.append(k))
    resolver = make_resolver(grid, effects, bus, auto_refill=False)
    matched, _ = resolver.detector.scan_board()
    result = await resolver.resolve(matched)
    assert result.score == 15
    assert amounts == [(15, 1)]
    assert cleared[0]['positions'] == [(0, 0), (1, 0), (2, 0)]
    assert cleared[0]['types'] == ['ruby', 'ruby', 'ruby']


@pytest.mark.asyncio
async def test_drop_conserves_pieces_and_closes_gaps(bus, effects):
    grid = Grid.from_layout([
        ['ruby', None, 'topaz'],
        [None, 'emerald', None],
        ['sapphire', None, None],
        [None, 'amethyst', 'ruby'],
    ])
    before = grid.type_counts()
    moves = []
    bus.subscribe(EVENT_GRAVITY_APPLIED, lambda s, **k: moves.extend(k['moves']))
    resolver = make_resolver(grid, effects, bus)
    gravity = await resolver.drop_pieces()
    assert grid.type_counts() == before
    for x in range(grid.width):
        column = [grid.get(x, y) for y in range(grid.height)]
        occupied = [piece is not None for piece in column]
        assert occupied == sorted(occupied, reverse=True)
    for piece in grid.pieces():
        assert grid.get(*piece.position) is piece
    assert grid.snapshot() == [
        [None, None, None],
        [None, None, None],
        ['ruby', 'emerald', 'topaz'],
        ['sapphire', 'amethyst', 'ruby'],
    ]
    assert [(move.source, move.target, move.rows) for move in gravity] == [
        ((0, 1), (0, 0), 1),
        ((1, 2), (1, 1), 1),
        ((0, 3), (0, 1), 2),
        ((2, 3), (2, 1), 2),
    ]
    assert moves == [(move.source, move.target) for move in gravity]
    assert [info for kind, _, info in effects.calls if kind == 'drop'] == [1, 1, 2, 2]


@pytest.mark.asyncio
async def test_refill_respects_exclusion_rule(bus, effects):
    grid = Grid.from_layout([
        [None, None, None, None],
        [None, None, None, None],
        ['ruby', 'ruby', None, 'topaz'],
        ['emerald', 'sapphire', 'emerald', 'emerald'],
    ])
    refilled = []
    bus.subscribe(EVENT_REFILL_COMPLETED, lambda s, **k: refilled.extend(k['new_pieces']))
    resolver = make_resolver(grid, effects, bus, rng=random.Random(4))
    spawned = await resolver.refill()
    assert len(spawned) == 9
    assert grid.is_full()
    assert refilled == [piece.position for piece in spawned]
    for piece in spawned:
        assert piece.type_id not in PieceFactory.excluded_types_at(grid, piece.x, piece.y)
    assert not resolver.detector.has_match()


@pytest.mark.asyncio
async def test_no_refill_leaves_holes(bus, effects):
    grid = Grid.from_layout([
        ['topaz', 'emerald', 'sapphire'],
        ['ruby', 'ruby', 'ruby'],
    ])
    resolver = make_resolver(grid, effects, bus, auto_refill=False)
    matched, _ = resolver.detector.scan_board()
    result = await resolver.resolve(matched)
    assert result.depth == 1
    assert grid.snapshot() == [
        [None, None, None],
        ['topaz', 'emerald', 'sapphire'],
    ]
    assert effects.count('spawn') == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", range(6))
async def test_cascade_converges_to_a_stable_board(bus, effects, seed):
    rng = random.Random(seed)
    grid = Grid(6, 6)
    factory = PieceFactory(make_catalog(), rng=rng)
    factory.populate(grid)
    # Force a run along the bottom row.
    for x in range(3):
        grid.set(x, 0, factory.create('ruby'))
    resolver = CascadeResolver(grid, MatchDetector(grid), factory, effects, bus)
    matched, has_match = resolver.detector.scan_board()
    assert has_match
    result = await resolver.resolve(matched)
    assert result.depth >= 1
    assert result.score >= 3
    assert grid.is_full()
    assert not resolver.detector.has_match()


def test_reshuffle_produces_matchless_board_with_a_move(bus, effects):
    grid = Grid(5, 5)
    resolver = make_resolver(grid, effects, bus, rng=random.Random(9))
    attempts = resolver.reshuffle()
    assert attempts >= 1
    assert grid.is_full()
    assert not resolver.detector.has_match()
    assert resolver.detector.find_hint() is not None


def test_reshuffle_gives_up_when_no_move_is_possible(bus, effects):
    resolver = make_resolver(Grid(2, 2), effects, bus)
    with pytest.raises(RuntimeError):
        resolver.reshuffle(max_attempts=5)


@pytest.mark.asyncio
async def test_match_found_reports_groups(bus, effects):
    grid = Grid.from_layout([
        ['topaz', 'topaz', 'topaz', 'emerald'],
        ['emerald', 'sapphire', 'emerald', 'amethyst'],
        ['ruby', 'ruby', 'ruby', 'sapphire'],
    ])
    found = []
    bus.subscribe(EVENT_MATCH_FOUND, lambda s, **k: found.append(k))
    resolver = make_resolver(grid, effects, bus, auto_refill=False)
    matched, _ = resolver.detector.scan_board()
    await resolver.resolve(matched)
    assert found[0]['size'] == 6
    assert found[0]['depth'] == 1
    assert found[0]['groups'] == [
        [(0, 0), (1, 0), (2, 0)],
        [(0, 2), (1, 2), (2, 2)],
    ]
