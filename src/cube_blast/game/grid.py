from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Tuple

import numpy as np

from .geometry import Position, Shape

Board = np.ndarray
Coordinate = Tuple[int, int, int]


@dataclass(frozen=True)
class ClearResult:
    cells: FrozenSet[Position]
    lines_x: int = 0
    lines_y: int = 0
    lines_z: int = 0

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def lines_cleared(self) -> int:
        return self.lines_x + self.lines_y + self.lines_z


def empty_board(size: int = 8) -> Board:
    board = np.zeros((size, size, size), dtype=np.bool_)
    board.flags.writeable = False
    return board


def _absolute_cells(piece: Shape, origin: Coordinate) -> np.ndarray:
    """Board coordinates (z, y, x) covered by the piece's occupied cells."""
    ox, oy, oz = (int(v) for v in origin)
    return np.argwhere(piece) + np.array([oz, oy, ox])


def can_place(board: Board, piece: Shape, origin: Coordinate) -> bool:
    """Check the piece fits inside the board at `origin` without overlap.

    Only occupied piece cells are tested; air cells never collide.
    """
    cells = _absolute_cells(piece, origin)
    if cells.size == 0:
        return True
    if np.any(cells < 0) or np.any(cells >= np.array(board.shape)):
        return False
    return not bool(np.any(board[cells[:, 0], cells[:, 1], cells[:, 2]]))


def commit_piece(board: Board, piece: Shape, origin: Coordinate) -> Board:
    """Return a copy of `board` with the piece written at `origin`."""
    if not can_place(board, piece, origin):
        raise ValueError(f"piece does not fit at {tuple(origin)}")
    cells = _absolute_cells(piece, origin)
    new_board = board.copy()
    new_board[cells[:, 0], cells[:, 1], cells[:, 2]] = True
    return new_board


def valid_origins(board: Board, piece: Shape) -> List[Position]:
    size = board.shape[0]
    origins: List[Position] = []
    for z in range(size):
        for y in range(size):
            for x in range(size):
                if can_place(board, piece, (x, y, z)):
                    origins.append(Position(x, y, z))
    return origins


def find_cleared_cells(board: Board) -> ClearResult:
    """Collect every cell lying on a complete line along X, Y or Z.

    Lines are tested on the same board for all three axes, so a cell shared by
    two complete lines appears once.
    """
    full_x = np.all(board, axis=2)  # (z, y)
    full_y = np.all(board, axis=1)  # (z, x)
    full_z = np.all(board, axis=0)  # (y, x)
    mask = full_x[:, :, None] | full_y[:, None, :] | full_z[None, :, :]
    cells = frozenset(Position(int(x), int(y), int(z)) for z, y, x in np.argwhere(mask))
    return ClearResult(
        cells=cells,
        lines_x=int(np.count_nonzero(full_x)),
        lines_y=int(np.count_nonzero(full_y)),
        lines_z=int(np.count_nonzero(full_z)),
    )


def clear_cells(board: Board, cells: Iterable[Coordinate]) -> Board:
    new_board = board.copy()
    for x, y, z in cells:
        new_board[z, y, x] = False
    return new_board


def occupied_count(board: Board) -> int:
    return int(np.count_nonzero(board))
