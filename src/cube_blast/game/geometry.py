from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, NamedTuple, Sequence, Union

import numpy as np


class Position(NamedTuple):
    x: int
    y: int
    z: int


# Pieces and boards are indexed [z, y, x]
Shape = np.ndarray
ShapeLike = Union[np.ndarray, Sequence[Sequence[Sequence[Any]]]]


@dataclass(frozen=True)
class BlockDimensions:
    x_width: int
    y_height: int
    z_depth: int


def _length(value: Any) -> int:
    try:
        return len(value)
    except TypeError:
        return 0


def calculate_dimensions(piece: ShapeLike) -> BlockDimensions:
    """Return the (x, y, z) extents of a piece.

    The depth is the length of the outer array, the height that of its first
    sub-array and the width that of the first row. Missing levels count as
    zero-length axes instead of raising.
    """
    if isinstance(piece, np.ndarray):
        dims = tuple(piece.shape) + (0, 0, 0)
        z_depth, y_height, x_width = dims[:3]
        return BlockDimensions(int(x_width), int(y_height), int(z_depth))
    z_depth = _length(piece)
    first_layer = piece[0] if z_depth else ()
    y_height = _length(first_layer)
    first_row = first_layer[0] if y_height else ()
    x_width = _length(first_row)
    return BlockDimensions(x_width, y_height, z_depth)


def _cell(data: Any, z: int, y: int, x: int) -> bool:
    try:
        return bool(data[z][y][x])
    except (IndexError, TypeError):
        return False


def as_piece(data: ShapeLike) -> Shape:
    """Densify `data` into a read-only boolean [z, y, x] array.

    Ragged rows are padded with air up to the extents reported by
    `calculate_dimensions`; cells beyond them are ignored.
    """
    if isinstance(data, np.ndarray) and data.ndim == 3:
        piece = data.astype(np.bool_, copy=True)
    else:
        dims = calculate_dimensions(data)
        piece = np.zeros((dims.z_depth, dims.y_height, dims.x_width), dtype=np.bool_)
        for z in range(dims.z_depth):
            for y in range(dims.y_height):
                for x in range(dims.x_width):
                    piece[z, y, x] = _cell(data, z, y, x)
    piece.flags.writeable = False
    return piece


def piece_cells(piece: Shape) -> List[Position]:
    """Local offsets of the occupied cells, ordered by z, then y, then x."""
    return [Position(int(x), int(y), int(z)) for z, y, x in np.argwhere(piece)]


def cell_count(piece: Shape) -> int:
    return int(np.count_nonzero(piece))
