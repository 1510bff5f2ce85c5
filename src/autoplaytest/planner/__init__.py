"""Action planner: heuristics plus UCB1 bandit search."""

from .bandit import (
    DEFAULT_EXPLORATION_CONSTANT,
    DEFAULT_ROLLOUTS,
    DIRECT_MODE_MAX_CANDIDATES,
    ArmStats,
    NodeCache,
    Planner,
    SearchNode,
    state_fingerprint,
    ucb1_value,
)
from .heuristics import (
    base_action_score,
    enhanced_score,
    future_value,
    heuristic_score,
    legal_actions,
    situational_bonus,
)

__all__ = [
    # Planner
    "Planner",
    "SearchNode",
    "ArmStats",
    "NodeCache",
    "state_fingerprint",
    "ucb1_value",
    "DEFAULT_ROLLOUTS",
    "DEFAULT_EXPLORATION_CONSTANT",
    "DIRECT_MODE_MAX_CANDIDATES",
    # Heuristics
    "legal_actions",
    "base_action_score",
    "future_value",
    "heuristic_score",
    "situational_bonus",
    "enhanced_score",
]
