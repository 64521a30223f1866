from __future__ import annotations

import argparse
import logging
from typing import Dict, Tuple

import pygame

from cube_blast.game import CubeBlastGame, GameConfig, GameStore, Position, load_or_create
from .renderer import Renderer

logger = logging.getLogger(__name__)

# (dx, dy, dz) per key
KEY_TO_MOVE: Dict[int, Tuple[int, int, int]] = {
    pygame.K_LEFT: (-1, 0, 0),
    pygame.K_RIGHT: (1, 0, 0),
    pygame.K_UP: (0, -1, 0),
    pygame.K_DOWN: (0, 1, 0),
    pygame.K_PAGEUP: (0, 0, 1),
    pygame.K_w: (0, 0, 1),
    pygame.K_PAGEDOWN: (0, 0, -1),
    pygame.K_s: (0, 0, -1),
}

KEY_TO_SLOT: Dict[int, int] = {
    pygame.K_1: 0,
    pygame.K_2: 1,
    pygame.K_3: 2,
    pygame.K_KP1: 0,
    pygame.K_KP2: 1,
    pygame.K_KP3: 2,
}


def clamp_grid(value: int, size: int) -> int:
    return max(0, min(size - 1, int(value)))


def move_cursor(cursor: Position, delta: Tuple[int, int, int], size: int) -> Position:
    return Position(
        clamp_grid(cursor.x + delta[0], size),
        clamp_grid(cursor.y + delta[1], size),
        clamp_grid(cursor.z + delta[2], size),
    )


def handle_key(game: CubeBlastGame, cursor: Position, key: int, store: GameStore | None = None) -> Position:
    """Apply one key press to the game and return the new cursor."""
    size = game.config.grid_size
    if key in KEY_TO_MOVE:
        return move_cursor(cursor, KEY_TO_MOVE[key], size)
    if key in KEY_TO_SLOT:
        game.select(KEY_TO_SLOT[key])
    elif key == pygame.K_TAB:
        game.cycle()
    elif key == pygame.K_ESCAPE:
        game.clear_selection()
    elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
        placed, gained, cleared = game.place_active(cursor.x, cursor.y, cursor.z)
        if placed:
            if cleared:
                logger.info("Cleared %d cells for %d points", cleared, gained)
            if store is not None:
                store.save_state(game.state)
                store.save_high_score(game.score)
    elif key == pygame.K_n:
        game.reset()
        if store is not None:
            store.clear_state()
    return cursor


def run(save_path: str | None = None, seed: int | None = None) -> None:
    config = GameConfig(random_seed=seed)
    game = CubeBlastGame(config)
    store = GameStore(save_path) if save_path else None
    if store is not None:
        game.load(load_or_create(store, config, game.rng))

    renderer = Renderer(grid_size=config.grid_size)
    cursor = Position(0, 0, 0)

    pygame.init()
    try:
        screen = pygame.display.set_mode(renderer.window_size(config.pieces_per_set))
        pygame.display.set_caption("Cube Blast - Human Play")
        clock = pygame.time.Clock()

        high_score = store.get_high_score() if store is not None else 0
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_q:
                        running = False
                    else:
                        cursor = handle_key(game, cursor, event.key, store)
                        high_score = max(high_score, game.score)

            renderer.draw(screen, game.state, cursor, high_score)
            clock.tick(30)
    finally:
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--save_path", type=str, default="./cube_blast_save.json")
    p.add_argument("--no_save", action="store_true")
    p.add_argument("--seed", type=int, default=None)
    return p


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args()
    run(None if args.no_save else args.save_path, args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
