import gymnasium as gym
import numpy as np
import pytest

import cube_blast.env  # noqa: F401
from cube_blast.env.cube_blast_env import CubeBlastEnv
from cube_blast.env.wrappers import FlattenDiscreteActionWrapper, ResampleInvalidActionWrapper


@pytest.fixture
def env():
    env = CubeBlastEnv()
    yield env
    env.close()


def test_spaces(env):
    assert tuple(env.action_space.nvec) == (3, 8, 8, 8)
    obs, info = env.reset(seed=0)
    assert env.observation_space.contains(obs)
    assert obs["board"].shape == (8, 8, 8)
    assert obs["pieces"].shape == (3, 8, 8, 8)
    assert obs["active_slot"] == 0
    assert info["action_mask"].shape == (3, 8, 8, 8)


def test_observation_pieces_match_slots(env):
    obs, _ = env.reset(seed=1)
    for slot, piece in enumerate(env.game.state.slots):
        assert obs["pieces"][slot].sum() == piece.sum()


def test_mask_matches_valid_actions(env):
    _, info = env.reset(seed=2)
    mask = info["action_mask"]
    assert int(mask.sum()) == len(env.game.get_valid_actions())
    for slot, x, y, z in env.game.get_valid_actions()[:20]:
        assert mask[slot, x, y, z]


def test_valid_step(env):
    _, info = env.reset(seed=3)
    action = tuple(int(v) for v in np.argwhere(info["action_mask"])[0])
    obs, reward, terminated, truncated, info = env.step(action)
    assert reward > 0
    assert not terminated and not truncated
    assert obs["board"].sum() > 0 or info["cells_cleared"] > 0
    assert info["steps"] == 1


def test_invalid_step_is_penalized_and_changes_nothing(env):
    env.reset(seed=4)
    before = env.game.state
    # every catalog piece is wider than one cell on some axis
    obs, reward, terminated, truncated, info = env.step((0, 7, 7, 7))
    assert reward == pytest.approx(-0.1)
    assert env.game.state is before
    assert info["engine_score_delta"] == 0.0


def test_rgb_render():
    env = CubeBlastEnv(render_mode="rgb_array")
    env.reset(seed=5)
    img = env.render()
    assert img.ndim == 3 and img.shape[2] == 3


def test_registered_env():
    env = gym.make("CubeBlast-8x8x8-v0")
    obs, info = env.reset(seed=6)
    assert "action_mask" in info
    env.close()


def test_flatten_wrapper_order():
    env = FlattenDiscreteActionWrapper(CubeBlastEnv())
    env.reset(seed=7)
    assert env.action_space.n == 3 * 8 ** 3
    for idx in (0, 1, 8, 64, 511, 512, 1535):
        expected = np.unravel_index(idx, (3, 8, 8, 8))
        assert tuple(env.action(idx)) == tuple(int(v) for v in expected)
    mask = env.get_action_mask()
    assert mask.shape == (3 * 8 ** 3,)
    assert np.array_equal(mask, env.unwrapped.get_action_mask().reshape(-1))


def test_resample_wrapper_replaces_invalid_action():
    env = ResampleInvalidActionWrapper(FlattenDiscreteActionWrapper(CubeBlastEnv()))
    env.reset(seed=8)
    mask = env.get_action_mask()
    invalid = int(np.flatnonzero(~mask)[0])
    _, reward, _, _, info = env.step(invalid)
    assert "invalid" not in info["reward_components"]
    assert reward > 0
