import json
import logging
import random

import numpy as np
import pytest

from cube_blast.game.core import GameConfig, GameState, apply_placement, create_initial_state
from cube_blast.game.geometry import as_piece
from cube_blast.game.storage import (
    GAME_STATE_KEY,
    HIGH_SCORE_KEY,
    GameStore,
    load_or_create,
    state_from_dict,
    state_to_dict,
)


@pytest.fixture
def played_state():
    state = create_initial_state(rng=random.Random(3))
    rng = random.Random(4)
    for origin in [(0, 0, 0), (0, 4, 4), (2, 5, 0)]:
        state = apply_placement(state, origin, rng)
    return state


@pytest.fixture
def store(tmp_path):
    return GameStore(str(tmp_path / "save.json"))


def test_state_dict_round_trip(played_state):
    data = json.loads(json.dumps(state_to_dict(played_state)))
    restored = state_from_dict(data, grid_size=8)
    assert restored == played_state
    assert not restored.board.flags.writeable


def test_round_trip_keeps_empty_slots_and_no_selection():
    board = np.zeros((8, 8, 8), dtype=bool)
    board[1, 2, 3] = True
    state = GameState(board=board, slots=(None, as_piece([[[True, False]]]), None), active_slot=None, score=300, game_over=True)
    restored = state_from_dict(state_to_dict(state))
    assert restored == state
    assert restored.active_slot is None
    assert restored.game_over


def _valid_dict():
    return state_to_dict(create_initial_state(rng=random.Random(0)))


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("score"),
        lambda d: d.update(board=[[[True]]] * 2),
        lambda d: d.update(board=[[[1] * 8] * 8] * 8),
        lambda d: d.update(board=[[[False] * 8] * 8] * 7),
        lambda d: d.update(slots=[]),
        lambda d: d.update(slots=[[[[False]]]]),
        lambda d: d.update(active_slot=3),
        lambda d: d.update(active_slot="0"),
        lambda d: d.update(slots=[None, None, None], active_slot=0),
        lambda d: d.update(score=-100),
        lambda d: d.update(score=1.5),
        lambda d: d.update(game_over="no"),
    ],
)
def test_malformed_state_raises(mutate):
    data = _valid_dict()
    mutate(data)
    with pytest.raises(ValueError):
        state_from_dict(data)


def test_grid_size_mismatch_raises():
    with pytest.raises(ValueError):
        state_from_dict(_valid_dict(), grid_size=6)


def test_store_round_trip(store, played_state):
    assert store.save_state(played_state)
    assert store.load_state() == played_state


def test_missing_file_means_no_saved_state(store):
    assert store.load_state() is None
    assert store.get_high_score() == 0


def test_load_or_create_falls_back_to_new_game(store):
    state = load_or_create(store, GameConfig(random_seed=1))
    assert state.score == 0
    assert state.occupied_count() == 0


def test_load_or_create_uses_saved_game(store, played_state):
    store.save_state(played_state)
    assert load_or_create(store) == played_state


def test_corrupt_file_is_logged_and_ignored(tmp_path, caplog):
    path = tmp_path / "save.json"
    path.write_text("{not json")
    store = GameStore(str(path))
    with caplog.at_level(logging.WARNING, logger="cube_blast.game.storage"):
        assert store.load_state() is None
    assert "Failed to read" in caplog.text


def test_malformed_saved_state_is_logged_and_ignored(store, caplog):
    with open(store.path, "w") as f:
        json.dump({GAME_STATE_KEY: {"board": []}}, f)
    with caplog.at_level(logging.WARNING, logger="cube_blast.game.storage"):
        assert store.load_state() is None
    assert "Discarding saved game" in caplog.text


def test_unwritable_path_is_logged(tmp_path, played_state, caplog):
    store = GameStore(str(tmp_path))
    with caplog.at_level(logging.ERROR, logger="cube_blast.game.storage"):
        assert not store.save_state(played_state)
    assert "Failed to write" in caplog.text


def test_clear_state_keeps_high_score(store, played_state):
    store.save_state(played_state)
    store.save_high_score(1200)
    assert store.clear_state()
    assert store.load_state() is None
    assert store.get_high_score() == 1200


def test_high_score_only_increases(store):
    assert store.save_high_score(500)
    assert not store.save_high_score(300)
    assert store.get_high_score() == 500
    assert store.save_high_score(900)
    assert store.get_high_score() == 900


def test_malformed_high_score_reads_as_zero(store):
    with open(store.path, "w") as f:
        json.dump({HIGH_SCORE_KEY: "lots"}, f)
    assert store.get_high_score() == 0


def test_undecodable_file_is_logged_and_ignored(tmp_path, caplog):
    path = tmp_path / "save.json"
    path.write_bytes(b'{"cube-blast-game-state": "\xff\xfe"}')
    store = GameStore(str(path))
    with caplog.at_level(logging.WARNING, logger="cube_blast.game.storage"):
        assert store.load_state() is None
        assert load_or_create(store, GameConfig(random_seed=2)).score == 0
    assert "Failed to read" in caplog.text


def test_infinite_high_score_reads_as_zero(store):
    with open(store.path, "w") as f:
        f.write('{"cube-blast-high-score": Infinity}')
    assert store.get_high_score() == 0
    assert store.save_high_score(400)
    assert store.get_high_score() == 400


def test_slot_count_mismatch_raises():
    with pytest.raises(ValueError):
        state_from_dict(_valid_dict(), slot_count=2)
    assert len(state_from_dict(_valid_dict(), slot_count=3).slots) == 3


def test_load_or_create_ignores_save_with_other_slot_count(store):
    two_slots = create_initial_state(GameConfig(pieces_per_set=2), random.Random(6))
    store.save_state(two_slots)
    state = load_or_create(store, GameConfig(random_seed=6))
    assert len(state.slots) == 3
    assert store.load_state(slot_count=2) == two_slots
