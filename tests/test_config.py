import json

import pytest

from match3.config import BoardSettings, EffectDurations, levels_from_payload, load_levels
from match3.errors import ConfigurationError
from tests.helpers import make_catalog

LEVELS = [
    {
        "size": [6, 7],
        "target_score": 30,
        "pieces": [
            {"type_id": "ruby", "score": 2, "asset": "ruby.png"},
            {"type_id": "topaz", "score": 1},
            {"type_id": "emerald", "score": 1},
        ],
        "durations": {"move": 0.1, "remove": 0.0},
        "revert_if_no_match": False,
    },
    {
        "width": 5,
        "height": 5,
        "pieces": [["ruby", 1], ["topaz", 1], ["emerald", 1]],
        "auto_refill": False,
        "reshuffle_on_stalemate": True,
    },
]


def test_load_levels_reads_list_of_levels(tmp_path):
    path = tmp_path / "levels.json"
    path.write_text(json.dumps(LEVELS), encoding="utf-8")
    levels = load_levels(path)
    assert len(levels) == 2
    first, second = levels
    assert (first.width, first.height) == (6, 7)
    assert first.target_score == 30
    assert first.catalog.asset_for("ruby") == "ruby.png"
    assert first.durations.move == 0.1
    assert first.durations.remove == 0.0
    assert first.revert_if_no_match is False
    assert (second.width, second.height) == (5, 5)
    assert second.auto_refill is False
    assert second.reshuffle_on_stalemate is True
    assert second.durations == EffectDurations()


def test_single_level_object_is_accepted():
    levels = levels_from_payload(LEVELS[1])
    assert len(levels) == 1


def test_missing_file_raises_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_levels(tmp_path / "nope.json")


def test_bad_json_raises_configuration_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_levels(path)


@pytest.mark.parametrize("payload", [
    [],
    "level",
    {"width": 4, "height": 4},
    {"width": 0, "height": 4, "pieces": [["ruby", 1]]},
    {"width": 4, "height": 4, "pieces": []},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "durations": {"move": -1}},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "durations": {"teleport": 1}},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "target_score": 0},
    {"size": [8], "pieces": [["ruby", 1]]},
    {"size": 8, "pieces": [["ruby", 1]]},
    {"width": True, "height": 4, "pieces": [["ruby", 1]]},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "target_score": "abc"},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "center": 3},
    {"width": 4, "height": 4, "pieces": [["ruby", 1]], "center": [1, 2, 3]},
])
def test_malformed_payloads_rejected(payload):
    with pytest.raises(ConfigurationError):
        levels_from_payload(payload)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        BoardSettings(width=-1, height=3, catalog=make_catalog())
