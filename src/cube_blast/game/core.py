from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .geometry import Position, Shape, cell_count
from .grid import (
    Board,
    ClearResult,
    Coordinate,
    can_place,
    clear_cells,
    commit_piece,
    empty_board,
    find_cleared_cells,
    occupied_count,
    valid_origins,
)
from .pieces import generate_piece, generate_slots
from .rules import ScoringRules

logger = logging.getLogger(__name__)

Slots = Tuple[Optional[Shape], ...]


@dataclass
class GameConfig:
    grid_size: int = 8
    pieces_per_set: int = 3
    random_seed: Optional[int] = None
    max_episode_steps: int = 10000


@dataclass(frozen=True, eq=False)
class GameState:
    """Immutable snapshot of a game.

    Transitions never touch an existing state; they build a new one. Boards
    and pieces stored here are read-only arrays.
    """

    board: Board
    slots: Slots
    active_slot: Optional[int] = 0
    score: int = 0
    game_over: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        if (self.active_slot, self.score, self.game_over) != (other.active_slot, other.score, other.game_over):
            return False
        if not np.array_equal(self.board, other.board) or len(self.slots) != len(other.slots):
            return False
        for mine, theirs in zip(self.slots, other.slots):
            if (mine is None) != (theirs is None):
                return False
            if mine is not None and not np.array_equal(mine, theirs):
                return False
        return True

    __hash__ = None  # type: ignore[assignment]

    @property
    def grid_size(self) -> int:
        return int(self.board.shape[0])

    def is_occupied(self, x: int, y: int, z: int) -> bool:
        return bool(self.board[z, y, x])

    def slot_piece(self, index: int) -> Optional[Shape]:
        if 0 <= index < len(self.slots):
            return self.slots[index]
        return None

    @property
    def active_piece(self) -> Optional[Shape]:
        if self.active_slot is None:
            return None
        return self.slot_piece(self.active_slot)

    def occupied_count(self) -> int:
        return occupied_count(self.board)

    def is_empty_slots(self) -> bool:
        return all(piece is None for piece in self.slots)


@dataclass(frozen=True)
class PlacementResult:
    state: GameState
    accepted: bool
    cells_placed: int = 0
    cleared: ClearResult = field(default_factory=lambda: ClearResult(cells=frozenset()))
    score_delta: int = 0


def first_filled_slot(slots: Sequence[Optional[Shape]]) -> Optional[int]:
    for index, piece in enumerate(slots):
        if piece is not None:
            return index
    return None


def is_game_over(board: Board, slots: Sequence[Optional[Shape]]) -> bool:
    """True only when no piece in any slot fits anywhere on the board.

    All-empty slots are not a loss: a refill is about to happen.
    """
    pieces = [piece for piece in slots if piece is not None]
    if not pieces:
        return False
    size = board.shape[0]
    for piece in pieces:
        for z in range(size):
            for y in range(size):
                for x in range(size):
                    if can_place(board, piece, (x, y, z)):
                        return False
    return True


def create_initial_state(config: Optional[GameConfig] = None, rng: Optional[random.Random] = None) -> GameState:
    config = config or GameConfig()
    rng = rng or random.Random(config.random_seed)
    return GameState(
        board=empty_board(config.grid_size),
        slots=generate_slots(config.pieces_per_set, rng),
        active_slot=0,
        score=0,
        game_over=False,
    )


def resolve_placement(
    state: GameState,
    origin: Coordinate,
    rng: Optional[random.Random] = None,
    rules: Optional[ScoringRules] = None,
) -> PlacementResult:
    """Place the active piece at `origin` and report what happened.

    A rejected request yields `accepted=False` and the very same `state`.
    """
    if state.game_over:
        logger.debug("Placement ignored: game is over")
        return PlacementResult(state=state, accepted=False)
    piece = state.active_piece
    if piece is None:
        logger.debug("Placement ignored: no active piece")
        return PlacementResult(state=state, accepted=False)
    if not can_place(state.board, piece, origin):
        logger.debug("Placement rejected at %s", tuple(origin))
        return PlacementResult(state=state, accepted=False)

    rules = rules or ScoringRules()
    rng = rng or random.Random()

    board = commit_piece(state.board, piece, origin)
    cleared = find_cleared_cells(board)
    if cleared.cells:
        board = clear_cells(board, cleared.cells)
        logger.debug("Cleared %d cells on %d lines", cleared.cell_count, cleared.lines_cleared)
    board.flags.writeable = False
    score_delta = rules.score_for_cells(cleared.cell_count)

    slots: List[Optional[Shape]] = list(state.slots)
    slots[state.active_slot] = None
    if all(slot is None for slot in slots):
        slots = list(generate_slots(len(slots), rng))
        logger.debug("Refilled %d slots", len(slots))
    new_slots = tuple(slots)

    game_over = is_game_over(board, new_slots)
    if game_over:
        logger.info("Game over with score %d", state.score + score_delta)

    new_state = GameState(
        board=board,
        slots=new_slots,
        active_slot=first_filled_slot(new_slots),
        score=state.score + score_delta,
        game_over=game_over,
    )
    return PlacementResult(
        state=new_state,
        accepted=True,
        cells_placed=cell_count(piece),
        cleared=cleared,
        score_delta=score_delta,
    )


def apply_placement(
    state: GameState,
    origin: Coordinate,
    rng: Optional[random.Random] = None,
    rules: Optional[ScoringRules] = None,
) -> GameState:
    return resolve_placement(state, origin, rng, rules).state


def select_slot(state: GameState, index: int) -> GameState:
    if state.game_over or state.slot_piece(index) is None or index == state.active_slot:
        return state
    return replace(state, active_slot=index)


def cycle_active_slot(state: GameState) -> GameState:
    """Move the selection to the next non-empty slot, wrapping around."""
    count = len(state.slots)
    start = -1 if state.active_slot is None else state.active_slot
    for step in range(1, count + 1):
        index = (start + step) % count
        if state.slots[index] is not None:
            return select_slot(state, index)
    return state


def clear_selection(state: GameState) -> GameState:
    if state.active_slot is None:
        return state
    return replace(state, active_slot=None)


class CubeBlastGame:
    """Holds the current state and swaps it after every transition."""

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.rng = random.Random(self.config.random_seed)
        self.state = create_initial_state(self.config, self.rng)
        self.total_cells_cleared = 0
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.step_count = 0

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.state = create_initial_state(self.config, self.rng)
        self.total_cells_cleared = 0
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.step_count = 0

    def load(self, state: GameState) -> None:
        """Replace the current game; statistics restart with it."""
        self.state = state
        self.total_cells_cleared = 0
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.step_count = 0

    def generate_piece(self) -> Shape:
        return generate_piece(self.rng)

    def select(self, index: int) -> bool:
        self.state = select_slot(self.state, index)
        return self.state.active_slot == index

    def cycle(self) -> None:
        self.state = cycle_active_slot(self.state)

    def clear_selection(self) -> None:
        self.state = clear_selection(self.state)

    def place_active(self, x: int, y: int, z: int) -> Tuple[bool, int, int]:
        result = resolve_placement(self.state, Position(x, y, z), self.rng, self.rules)
        if not result.accepted:
            return False, 0, 0
        self.state = result.state
        self.total_cells_cleared += result.cleared.cell_count
        self.total_lines_cleared += result.cleared.lines_cleared
        self.total_pieces_placed += 1
        self.step_count += 1
        return True, result.score_delta, result.cleared.cell_count

    def place(self, slot: int, x: int, y: int, z: int) -> Tuple[bool, int, int]:
        if self.state.slot_piece(slot) is None:
            return False, 0, 0
        previous = self.state
        self.select(slot)
        placed = self.place_active(x, y, z)
        if not placed[0]:
            self.state = previous
        return placed

    def get_valid_actions(self) -> List[Tuple[int, int, int, int]]:
        """List of (slot, x, y, z) placements that would be accepted."""
        if self.state.game_over:
            return []
        actions: List[Tuple[int, int, int, int]] = []
        for slot, piece in enumerate(self.state.slots):
            if piece is None:
                continue
            for x, y, z in valid_origins(self.state.board, piece):
                actions.append((slot, x, y, z))
        return actions

    def get_state(self) -> dict:
        return {
            "board": self.state.board.copy(),
            "slots": [None if p is None else p.copy() for p in self.state.slots],
            "active_slot": self.state.active_slot,
            "score": self.state.score,
            "game_over": self.state.game_over,
            "total_cells_cleared": self.total_cells_cleared,
            "total_lines_cleared": self.total_lines_cleared,
            "total_pieces_placed": self.total_pieces_placed,
            "step_count": self.step_count,
        }

    def get_game_stats(self) -> dict:
        return {
            "final_score": self.state.score,
            "pieces_placed": self.total_pieces_placed,
            "cells_cleared": self.total_cells_cleared,
            "lines_cleared": self.total_lines_cleared,
            "fill_ratio": self.state.occupied_count() / float(self.state.board.size),
            "avg_score_per_piece": self.state.score / max(1, self.total_pieces_placed),
        }
