"""Gymnasium environments for Cube Blast."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Placement environment: action = (slot, x, y, z)
register(
    id="CubeBlast-8x8x8-v0",
    entry_point="cube_blast.env.cube_blast_env:CubeBlastEnv",
)

__all__ = ["CubeBlast-8x8x8-v0"]
