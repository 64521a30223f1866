from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
import pygame

from cube_blast.game import GameState, Position, can_place

Color = Tuple[int, int, int]

BACKGROUND: Color = (10, 10, 14)
EMPTY: Color = (30, 30, 36)
TEXT: Color = (230, 230, 230)

# One color per z-layer
LAYER_COLORS = [
    (59, 130, 246),
    (16, 185, 129),
    (239, 68, 68),
    (245, 158, 11),
    (139, 92, 246),
    (236, 72, 153),
    (14, 165, 233),
    (16, 185, 129),
]

GHOST_VALID: Color = (120, 220, 140)
GHOST_INVALID: Color = (220, 120, 120)
SELECTED: Color = (255, 255, 255)


def _layer_color(z: int) -> Color:
    return LAYER_COLORS[z % len(LAYER_COLORS)]


class Renderer:
    """Draws the board as z-layer slices laid out left to right.

    Each slice shows one z-layer with x to the right and y downward. The
    piece slots are drawn below the board the same way.
    """

    def __init__(self, grid_size: int = 8, cell_size: int = 14, margin: int = 20, gap: int = 10) -> None:
        self.grid_size = grid_size
        self.cell_size = cell_size
        self.margin = margin
        self.gap = gap
        self.font: Optional[pygame.font.Font] = None

    @property
    def slice_px(self) -> int:
        return self.grid_size * self.cell_size

    def window_size(self, slot_count: int = 3) -> Tuple[int, int]:
        width = self.margin * 2 + self.grid_size * (self.slice_px + self.gap)
        slot_height = slot_count * (self.slice_px + self.gap)
        height = self.margin * 4 + self.slice_px + slot_height + 80
        return width, height

    def _slice_origin(self, z: int, top: int) -> Tuple[int, int]:
        return self.margin + z * (self.slice_px + self.gap), top

    def _draw_cell(self, screen: pygame.Surface, left: int, top: int, x: int, y: int, color: Color, width: int = 0) -> None:
        rect = pygame.Rect(
            left + x * self.cell_size,
            top + y * self.cell_size,
            self.cell_size - 1,
            self.cell_size - 1,
        )
        pygame.draw.rect(screen, color, rect, width)

    def _draw_volume(self, screen: pygame.Surface, volume: np.ndarray, top: int, fixed_color: Optional[Color] = None) -> None:
        depth, height, width = volume.shape
        for z in range(depth):
            left, _ = self._slice_origin(z, top)
            for y in range(height):
                for x in range(width):
                    if volume[z, y, x]:
                        color = fixed_color or _layer_color(z)
                    else:
                        color = EMPTY
                    self._draw_cell(screen, left, top, x, y, color)

    def draw_board(self, screen: pygame.Surface, state: GameState) -> None:
        self._draw_volume(screen, state.board, self.margin)

    def draw_ghost(self, screen: pygame.Surface, state: GameState, cursor: Position) -> None:
        piece = state.active_piece
        if piece is None or state.game_over:
            return
        color = GHOST_VALID if can_place(state.board, piece, cursor) else GHOST_INVALID
        for z, y, x in np.argwhere(piece):
            bz, by, bx = cursor.z + z, cursor.y + y, cursor.x + x
            if 0 <= bz < self.grid_size and 0 <= by < self.grid_size and 0 <= bx < self.grid_size:
                left, top = self._slice_origin(int(bz), self.margin)
                self._draw_cell(screen, left, top, int(bx), int(by), color, width=2)

    def draw_slots(self, screen: pygame.Surface, state: GameState) -> int:
        top = self.margin * 2 + self.slice_px
        for index, piece in enumerate(state.slots):
            if piece is not None:
                fixed = SELECTED if index == state.active_slot else (200, 180, 60)
                self._draw_volume(screen, piece, top, fixed_color=fixed)
            top += self.slice_px + self.gap
        return top

    def draw_text(self, screen: pygame.Surface, lines: list, top: int) -> None:
        if self.font is None:
            self.font = pygame.font.SysFont(None, 22)
        for i, txt in enumerate(lines):
            img = self.font.render(txt, True, TEXT)
            screen.blit(img, (self.margin, top + i * 18))

    def draw(self, screen: pygame.Surface, state: GameState, cursor: Position, high_score: int = 0) -> None:
        screen.fill(BACKGROUND)
        self.draw_board(screen, state)
        self.draw_ghost(screen, state, cursor)
        top = self.draw_slots(screen, state)
        lines = [
            f"Score: {state.score}   High score: {max(high_score, state.score)}",
            f"Cursor: x={cursor.x} y={cursor.y} z={cursor.z}   Slot: {state.active_slot}",
            "Arrows: move x/y  PgUp/PgDn or W/S: move z  Tab / 1-3: select  Enter: place",
            "Esc: deselect  N: new game  Q: quit",
        ]
        if state.game_over:
            lines.insert(0, "Game Over - Press N to restart")
        self.draw_text(screen, lines, top)
        pygame.display.flip()
