"""Game module for Cube Blast.

Exports the rules engine and supporting classes:
- geometry: Position, BlockDimensions and piece extents
- pieces: the shape catalog, rotations and the random generator
- grid: placement validation and per-axis line clearing
- ScoringRules: points per cleared cell
- GameState / apply_placement: immutable state and the transition function
- CubeBlastGame: holder of the current state
- GameStore: JSON-backed saved game and high score
"""

from .geometry import BlockDimensions, Position, as_piece, calculate_dimensions, cell_count, piece_cells
from .pieces import BASE_SHAPES, PieceType, Rotation, generate_piece, generate_slots, rotate_shape
from .grid import ClearResult, can_place, clear_cells, commit_piece, empty_board, find_cleared_cells, valid_origins
from .rules import ScoringRules
from .core import (
    CubeBlastGame,
    GameConfig,
    GameState,
    PlacementResult,
    apply_placement,
    clear_selection,
    create_initial_state,
    cycle_active_slot,
    is_game_over,
    resolve_placement,
    select_slot,
)
from .storage import GameStore, load_or_create, state_from_dict, state_to_dict

__all__ = [
    "BlockDimensions",
    "Position",
    "as_piece",
    "calculate_dimensions",
    "cell_count",
    "piece_cells",
    "BASE_SHAPES",
    "PieceType",
    "Rotation",
    "generate_piece",
    "generate_slots",
    "rotate_shape",
    "ClearResult",
    "can_place",
    "clear_cells",
    "commit_piece",
    "empty_board",
    "find_cleared_cells",
    "valid_origins",
    "ScoringRules",
    "CubeBlastGame",
    "GameConfig",
    "GameState",
    "PlacementResult",
    "apply_placement",
    "clear_selection",
    "create_initial_state",
    "cycle_active_slot",
    "is_game_over",
    "resolve_placement",
    "select_slot",
    "GameStore",
    "load_or_create",
    "state_from_dict",
    "state_to_dict",
]
