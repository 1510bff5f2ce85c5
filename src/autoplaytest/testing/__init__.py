"""Playtesting: per-match agents, a session coordinator and a sandbox skirmish."""

from autoplaytest.testing.agent import (
    DifficultySpike,
    Outcome,
    PlaytestAction,
    PlaytestingAgent,
    PlaytestMetrics,
    PlaytestResult,
)
from autoplaytest.testing.coordinator import (
    PlaytestConfig,
    PlaytestCoordinator,
    PlaytestSession,
    PlaytestSummary,
    SessionStatus,
    Simulation,
    default_execute,
    default_score,
    determine_outcome,
    print_session_summary,
    run_playtest_session,
    run_playtest_session_sync,
)
from autoplaytest.testing.sandbox import SkirmishSimulation

__all__ = [
    # Agent
    "PlaytestingAgent",
    "PlaytestResult",
    "PlaytestMetrics",
    "PlaytestAction",
    "DifficultySpike",
    "Outcome",
    # Coordinator
    "PlaytestCoordinator",
    "PlaytestConfig",
    "PlaytestSession",
    "PlaytestSummary",
    "SessionStatus",
    "Simulation",
    "default_execute",
    "default_score",
    "determine_outcome",
    "run_playtest_session",
    "run_playtest_session_sync",
    "print_session_summary",
    # Sandbox
    "SkirmishSimulation",
]
