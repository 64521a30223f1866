import numpy as np
import pytest

from cube_blast.game.geometry import (
    BlockDimensions,
    Position,
    as_piece,
    calculate_dimensions,
    cell_count,
    piece_cells,
)


def test_dimensions_of_array_are_x_y_z():
    piece = np.ones((2, 3, 4), dtype=bool)
    assert calculate_dimensions(piece) == BlockDimensions(x_width=4, y_height=3, z_depth=2)


def test_dimensions_of_nested_lists():
    assert calculate_dimensions([[[True, True, True]]]) == BlockDimensions(3, 1, 1)


@pytest.mark.parametrize(
    "data, expected",
    [
        ([], BlockDimensions(0, 0, 0)),
        ([[]], BlockDimensions(0, 0, 1)),
        ([[[]]], BlockDimensions(0, 1, 1)),
        (np.zeros((2, 3), dtype=bool), BlockDimensions(0, 3, 2)),
    ],
)
def test_missing_axes_count_as_zero(data, expected):
    assert calculate_dimensions(data) == expected


def test_ragged_rows_use_first_row_extents():
    piece = as_piece([[[True], [True, True]]])
    assert piece.shape == (1, 2, 1)
    assert piece.tolist() == [[[True], [True]]]


def test_as_piece_is_read_only():
    piece = as_piece([[[True, False]]])
    assert piece.dtype == np.bool_
    with pytest.raises(ValueError):
        piece[0, 0, 1] = True


def test_piece_cells_lists_occupied_offsets():
    piece = as_piece([
        [[True, False],
         [False, False]],
        [[False, False],
         [False, True]],
    ])
    assert piece_cells(piece) == [Position(0, 0, 0), Position(1, 1, 1)]
    assert cell_count(piece) == 2


def test_empty_piece_has_no_cells():
    piece = as_piece([])
    assert piece.shape == (0, 0, 0)
    assert piece_cells(piece) == []
    assert cell_count(piece) == 0
