"""
Saved games and high score.

A `GameStore` is a flat key-value store kept in a single JSON file. Anything
that goes wrong while reading or writing it is logged and reported as "no
saved state"; the engine never sees storage errors.
"""

from __future__ import annotations

import json
import logging
import os
import random
from typing import Any, Dict, Optional

import numpy as np

from .core import GameConfig, GameState, create_initial_state
from .geometry import as_piece

logger = logging.getLogger(__name__)

GAME_STATE_KEY = "cube-blast-game-state"
HIGH_SCORE_KEY = "cube-blast-high-score"


def _bool_array_to_list(array: np.ndarray) -> list:
    return array.astype(bool).tolist()


def state_to_dict(state: GameState) -> Dict[str, Any]:
    return {
        "board": _bool_array_to_list(state.board),
        "slots": [None if piece is None else _bool_array_to_list(piece) for piece in state.slots],
        "active_slot": state.active_slot,
        "score": int(state.score),
        "game_over": bool(state.game_over),
    }


def _strict_bool_array(data: Any, name: str) -> np.ndarray:
    try:
        array = np.array(data, dtype=object)
    except ValueError as exc:
        raise ValueError(f"{name} is not a rectangular array") from exc
    if array.ndim != 3:
        raise ValueError(f"{name} must be three-dimensional, got {array.ndim} dimensions")
    if not all(isinstance(cell, bool) for cell in array.flat):
        raise ValueError(f"{name} must only hold booleans")
    return array.astype(np.bool_)


def state_from_dict(
    data: Dict[str, Any],
    grid_size: Optional[int] = None,
    slot_count: Optional[int] = None,
) -> GameState:
    """Rebuild a GameState, raising ValueError if `data` is malformed."""
    if not isinstance(data, dict):
        raise ValueError("saved state must be an object")
    missing = {"board", "slots", "active_slot", "score", "game_over"} - set(data)
    if missing:
        raise ValueError(f"saved state is missing {sorted(missing)}")

    board = _strict_bool_array(data["board"], "board")
    size = board.shape[0]
    if board.shape != (size, size, size):
        raise ValueError(f"board must be cubic, got shape {board.shape}")
    if grid_size is not None and size != grid_size:
        raise ValueError(f"board size {size} does not match grid size {grid_size}")
    board.flags.writeable = False

    if not isinstance(data["slots"], list) or not data["slots"]:
        raise ValueError("slots must be a non-empty list")
    if slot_count is not None and len(data["slots"]) != slot_count:
        raise ValueError(f"expected {slot_count} slots, got {len(data['slots'])}")
    slots = []
    for index, raw in enumerate(data["slots"]):
        if raw is None:
            slots.append(None)
            continue
        piece = _strict_bool_array(raw, f"slot {index}")
        if max(piece.shape) > size or not piece.any():
            raise ValueError(f"slot {index} holds an invalid piece")
        slots.append(as_piece(piece))

    active_slot = data["active_slot"]
    if active_slot is not None:
        if not isinstance(active_slot, int) or isinstance(active_slot, bool):
            raise ValueError("active_slot must be an integer or null")
        if not 0 <= active_slot < len(slots) or slots[active_slot] is None:
            raise ValueError(f"active_slot {active_slot} does not point at a piece")

    score = data["score"]
    if not isinstance(score, int) or isinstance(score, bool) or score < 0:
        raise ValueError("score must be a non-negative integer")
    if not isinstance(data["game_over"], bool):
        raise ValueError("game_over must be a boolean")

    return GameState(
        board=board,
        slots=tuple(slots),
        active_slot=active_slot,
        score=score,
        game_over=data["game_over"],
    )


class GameStore:
    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: expected a JSON object", self.path)
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> bool:
        tmp_path = f"{self.path}.tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            return False
        return True

    def save_state(self, state: GameState) -> bool:
        data = self._read()
        data[GAME_STATE_KEY] = state_to_dict(state)
        return self._write(data)

    def load_state(self, grid_size: Optional[int] = None, slot_count: Optional[int] = None) -> Optional[GameState]:
        saved = self._read().get(GAME_STATE_KEY)
        if saved is None:
            return None
        try:
            return state_from_dict(saved, grid_size, slot_count)
        except ValueError as exc:
            logger.warning("Discarding saved game in %s: %s", self.path, exc)
            return None

    def clear_state(self) -> bool:
        data = self._read()
        if GAME_STATE_KEY not in data:
            return True
        del data[GAME_STATE_KEY]
        return self._write(data)

    def get_high_score(self) -> int:
        value = self._read().get(HIGH_SCORE_KEY, 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError, OverflowError):
            logger.warning("Ignoring malformed high score %r", value)
            return 0

    def save_high_score(self, score: int) -> bool:
        """Store `score` if it beats the current high score."""
        data = self._read()
        if score <= self.get_high_score():
            return False
        data[HIGH_SCORE_KEY] = int(score)
        return self._write(data)


def load_or_create(
    store: GameStore,
    config: Optional[GameConfig] = None,
    rng: Optional[random.Random] = None,
) -> GameState:
    config = config or GameConfig()
    state = store.load_state(config.grid_size, config.pieces_per_set)
    if state is None:
        return create_initial_state(config, rng)
    return state
