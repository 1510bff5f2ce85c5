"""Configuration defaults for autoplaytest.

Module-level defaults can be overridden through ``AUTOPLAYTEST_*``
environment variables. The getters read the environment on every call so
tests can monkeypatch it.
"""

import os

# Default configuration (can be overridden via environment variables)
DEFAULT_GAMES_PER_PERSONA = 5
DEFAULT_MAX_TICKS = 5000
DEFAULT_TIME_LIMIT_SECONDS = 60.0
DEFAULT_AI_PLAYER_ID = 2
DEFAULT_OPPONENT_PLAYER_ID = 1
DEFAULT_NODE_CACHE_SIZE = 10_000
DEFAULT_RESOURCE_BUCKET = 50

# UCB1 exploration constant shared by the planner and the persona catalog
DEFAULT_EXPLORATION_CONSTANT = 1.41

# Fixed cadences
SITUATION_REFRESH_INTERVAL = 10  # ticks between situation re-evaluations
YIELD_INTERVAL = 10  # ticks between cooperative yields in the match loop


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def get_games_per_persona() -> int:
    """Get configured games per persona from environment."""
    return _env_int("AUTOPLAYTEST_GAMES_PER_PERSONA", DEFAULT_GAMES_PER_PERSONA)


def get_max_ticks() -> int:
    """Get configured tick ceiling per match from environment."""
    return _env_int("AUTOPLAYTEST_MAX_TICKS", DEFAULT_MAX_TICKS)


def get_time_limit_seconds() -> float:
    """Get configured wall-clock ceiling per match from environment."""
    return _env_float("AUTOPLAYTEST_TIME_LIMIT_SECONDS", DEFAULT_TIME_LIMIT_SECONDS)


def get_node_cache_size() -> int:
    """Get configured planner node-cache capacity from environment."""
    return _env_int("AUTOPLAYTEST_NODE_CACHE_SIZE", DEFAULT_NODE_CACHE_SIZE)


def get_resource_bucket() -> int:
    """Get configured resource bucket width for state fingerprints."""
    return _env_int("AUTOPLAYTEST_RESOURCE_BUCKET", DEFAULT_RESOURCE_BUCKET)
