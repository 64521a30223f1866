from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from cube_blast.game import CubeBlastGame, GameConfig, ScoringRules, cell_count

logger = logging.getLogger(__name__)


def _compute_action_mask(game: CubeBlastGame) -> np.ndarray:
    size = game.config.grid_size
    k = game.config.pieces_per_set
    mask = np.zeros((k, size, size, size), dtype=np.bool_)
    for slot, x, y, z in game.get_valid_actions():
        if 0 <= slot < k:
            mask[slot, x, y, z] = True
    return mask


def _pad_piece(piece: Optional[np.ndarray], size: int) -> np.ndarray:
    padded = np.zeros((size, size, size), dtype=np.int8)
    if piece is not None:
        d, h, w = piece.shape
        padded[:d, :h, :w] = piece
    return padded


class CubeBlastEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 rules: Optional[ScoringRules] = None,
                 score_weight: float = 0.01,
                 cells_weight: float = 0.05,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        self.game = CubeBlastGame(config, rules)
        self.render_mode = render_mode

        self.score_weight = float(score_weight)
        self.cells_weight = float(cells_weight)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)

        size = self.game.config.grid_size
        k = self.game.config.pieces_per_set

        # Board and padded slot pieces are [z, y, x]; active_slot == k means none
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0, high=1, shape=(size, size, size), dtype=np.int8),
                "pieces": spaces.Box(low=0, high=1, shape=(k, size, size, size), dtype=np.int8),
                "active_slot": spaces.Discrete(k + 1),
            }
        )

        # Action: (slot, x, y, z)
        self.action_space = spaces.MultiDiscrete((k, size, size, size))

        self._last_obs: Optional[Dict[str, Any]] = None

    def _get_obs(self) -> Dict[str, Any]:
        size = self.game.config.grid_size
        k = self.game.config.pieces_per_set
        state = self.game.state
        pieces = np.stack([_pad_piece(state.slot_piece(i), size) for i in range(k)])
        return {
            "board": state.board.astype(np.int8),
            "pieces": pieces,
            "active_slot": k if state.active_slot is None else int(state.active_slot),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.score,
            "steps": self.game.step_count,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.reset(seed)
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: np.ndarray | Tuple[int, int, int, int]):
        slot, x, y, z = map(int, action)

        piece = self.game.state.slot_piece(slot)
        cells_in_piece = cell_count(piece) if piece is not None else 0
        success, gained, cleared = self.game.place(slot, x, y, z)

        reward_components: Dict[str, float] = {}
        if success:
            reward_components["score"] = self.score_weight * float(gained)
            reward_components["cells"] = self.cells_weight * float(cells_in_piece)
        else:
            reward_components["invalid"] = self.invalid_action_penalty
        reward_components["step"] = self.step_penalty

        terminated = bool(self.game.game_over)
        truncated = self.game.step_count >= self.game.config.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty
            logger.debug("Episode finished: %s", self.game.get_game_stats())

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(gained)
        info["cells_cleared"] = int(cleared)
        self._last_obs = obs
        return obs, float(sum(reward_components.values())), terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        # z-layers side by side, one pixel block per cell
        board = self.game.state.board
        size = board.shape[0]
        cell = 8
        gap = 4
        img = np.full((size * cell, size * (size * cell + gap), 3), 15, dtype=np.uint8)
        for z in range(size):
            x0 = z * (size * cell + gap)
            for y in range(size):
                for x in range(size):
                    color = (70, 200, 120) if board[z, y, x] else (30, 30, 36)
                    img[y * cell:(y + 1) * cell, x0 + x * cell:x0 + (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
