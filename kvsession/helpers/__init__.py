"""Shared utility functions."""

from .env import env_flag, env_int, env_float, env_list

__all__ = [
    "env_flag",
    "env_int",
    "env_float",
    "env_list",
]
