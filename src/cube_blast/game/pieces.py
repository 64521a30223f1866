from __future__ import annotations

import random
from enum import IntEnum
from typing import NamedTuple, Optional, Tuple

import numpy as np

from .geometry import Shape, as_piece


class PieceType(IntEnum):
    PRISM = 0  # 2x3x2 rectangular prism
    BAR = 1    # 1x8x1 bar
    L = 2
    T = 3


class Rotation(NamedTuple):
    x: int
    y: int
    z: int


o = False
X = True

# [z][y][x]
BASE_SHAPES = {
    PieceType.PRISM: as_piece([
        [[X, X, X],
         [X, X, X]],
        [[X, X, X],
         [X, X, X]],
    ]),
    PieceType.BAR: as_piece([[[X, X, X, X, X, X, X, X]]]),
    PieceType.L: as_piece([
        [[X, o, o],
         [X, o, o],
         [X, X, X]],
    ]),
    PieceType.T: as_piece([
        [[X, X, X],
         [o, X, o],
         [o, X, o]],
    ]),
}


def _quarter_turns(shape: Shape, k: int, axes: Tuple[int, int]) -> Shape:
    k = k % 4
    if k == 0:
        return shape
    # rot90 reverses axes[1] and then swaps the pair
    return np.ascontiguousarray(np.rot90(shape, k, axes=axes))


def rotate_x(shape: Shape, k: int = 1) -> Shape:
    """Quarter turns about X: Y and Z swap, Y reversed."""
    return _quarter_turns(shape, k, axes=(0, 1))


def rotate_y(shape: Shape, k: int = 1) -> Shape:
    """Quarter turns about Y: X and Z swap, X reversed."""
    return _quarter_turns(shape, k, axes=(0, 2))


def rotate_z(shape: Shape, k: int = 1) -> Shape:
    """Quarter turns about Z: X and Y swap, X reversed."""
    return _quarter_turns(shape, k, axes=(1, 2))


def rotate_shape(shape: Shape, rx: int, ry: int, rz: int) -> Shape:
    """Apply `rx` turns about X, then `ry` about Y, then `rz` about Z."""
    rotated = rotate_z(rotate_y(rotate_x(shape, rx), ry), rz)
    return as_piece(rotated)


def random_rotation(rng: random.Random) -> Rotation:
    return Rotation(rng.randrange(4), rng.randrange(4), rng.randrange(4))


def generate_piece(rng: Optional[random.Random] = None) -> Shape:
    """Pick a catalog shape uniformly and rotate it randomly."""
    rng = rng or random.Random()
    kind = rng.choice(list(PieceType))
    rotation = random_rotation(rng)
    return rotate_shape(BASE_SHAPES[kind], rotation.x, rotation.y, rotation.z)


def generate_slots(count: int, rng: Optional[random.Random] = None) -> Tuple[Shape, ...]:
    rng = rng or random.Random()
    return tuple(generate_piece(rng) for _ in range(count))
