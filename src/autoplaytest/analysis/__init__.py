"""Batch analysis: balance detection and exploit detection."""

from .balance import (
    BalanceDetector,
    BalanceIssue,
    BalanceMetrics,
    BalanceReport,
    DifficultyPoint,
    IssueType,
    OverallBalance,
    Severity,
    StrategyStats,
    assess_overall_balance,
    calculate_deviation,
    expected_difficulty,
    identify_strategy,
)
from .exploits import ExploitDetection, ExploitDetector, HeuristicExploitDetector

__all__ = [
    # Balance
    "BalanceDetector",
    "BalanceIssue",
    "BalanceMetrics",
    "BalanceReport",
    "DifficultyPoint",
    "IssueType",
    "OverallBalance",
    "Severity",
    "StrategyStats",
    "assess_overall_balance",
    "calculate_deviation",
    "expected_difficulty",
    "identify_strategy",
    # Exploits
    "ExploitDetection",
    "ExploitDetector",
    "HeuristicExploitDetector",
]
