"""Statistical balance detection over a batch of playtest results.

The detector keeps only the raw batch. Every call to ``analyze_balance``
recomputes metrics, issues, the overall classification and the
recommendations from scratch, so feeding the same batch always yields the
same report.

Strategy labels are the persona type refined by suffixes, checked in this
fixed order:

    _rush    an attack recorded before tick 2000
    _turtle  more than 5 defend actions
    _tech    any research action
    _expand  any base-building action

e.g. ``aggressive_rusher_rush_expand``.
"""

from __future__ import annotations

import json
import logging
import statistics
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from autoplaytest.models.actions import ArmyAction, BuildBuilding, Research

if TYPE_CHECKING:
    from autoplaytest.testing.agent import PlaytestResult

logger = logging.getLogger(__name__)

# Strategy win-rate band
TARGET_WIN_RATE_HIGH = 0.55
TARGET_WIN_RATE_LOW = 0.45
HIGH_WIN_RATE = 0.60
CRITICAL_WIN_RATE = 0.65
UNDERPOWERED_WIN_RATE = 0.35
MIN_PICK_RATE_FOR_UNDERPOWERED = 0.1

# Dominance (win rate x pick rate)
DOMINANT_PICK_RATE = 0.5
CRITICAL_DOMINANCE = 0.4

# Difficulty curve deviation, in standard deviations
SPIKE_DEVIATION_MEDIUM = 2.0
SPIKE_DEVIATION_HIGH = 3.0

RESOURCE_EFFICIENCY_RATIO = 2.0
RESOURCE_VARIANCE_THRESHOLD = 0.1

# Whole-game win rate
UNWINNABLE_WIN_RATE = 0.05
TRIVIAL_WIN_RATE = 0.95

RUSH_TICK_LIMIT = 2000
TURTLE_DEFEND_COUNT = 5

HEALTHY_RECOMMENDATION = "Game balance appears healthy. Continue monitoring with more playtests."
RESOURCE_RECOMMENDATION = "Balance resource generation rates across different strategies"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueType(str, Enum):
    IMBALANCE = "imbalance"
    EXPLOIT = "exploit"
    DIFFICULTY_SPIKE = "difficulty_spike"
    UNWINNABLE = "unwinnable"
    TRIVIAL = "trivial"


class OverallBalance(str, Enum):
    BALANCED = "balanced"
    SLIGHTLY_IMBALANCED = "slightly_imbalanced"
    IMBALANCED = "imbalanced"
    SEVERELY_IMBALANCED = "severely_imbalanced"


# =============================================================================
# Report records
# =============================================================================


@dataclass(frozen=True)
class BalanceIssue:
    """A single balance finding.

    Attributes:
        type: Issue category
        severity: How serious the finding is
        description: Human-readable description
        evidence: The numbers behind the finding
        tick: Tick of a difficulty spike (spike issues only)
    """

    type: IssueType
    severity: Severity
    description: str
    evidence: dict[str, Any] = field(default_factory=dict)
    tick: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "evidence": self.evidence,
        }
        if self.tick is not None:
            data["tick"] = self.tick
        return data


@dataclass(frozen=True)
class DifficultyPoint:
    """Observed vs expected difficulty at one tick."""

    tick: int
    difficulty: float
    expected_difficulty: float
    deviation: float  # standard deviations from expected

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "difficulty": round(self.difficulty, 4),
            "expected_difficulty": round(self.expected_difficulty, 4),
            "deviation": round(self.deviation, 4),
        }


@dataclass
class BalanceMetrics:
    """Per-strategy rates plus the difficulty curve, keyed by strategy label."""

    win_rates: dict[str, float] = field(default_factory=dict)
    pick_rates: dict[str, float] = field(default_factory=dict)
    average_game_duration: float = 0.0
    difficulty_curve: list[DifficultyPoint] = field(default_factory=list)
    resource_efficiency: dict[str, float] = field(default_factory=dict)
    strategy_dominance: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "win_rates": {k: round(v, 4) for k, v in self.win_rates.items()},
            "pick_rates": {k: round(v, 4) for k, v in self.pick_rates.items()},
            "average_game_duration": round(self.average_game_duration, 2),
            "difficulty_curve": [p.to_dict() for p in self.difficulty_curve],
            "resource_efficiency": {k: round(v, 4) for k, v in self.resource_efficiency.items()},
            "strategy_dominance": {k: round(v, 4) for k, v in self.strategy_dominance.items()},
        }


@dataclass
class BalanceReport:
    """Complete balance analysis of a batch."""

    overall_balance: OverallBalance
    issues: list[BalanceIssue]
    metrics: BalanceMetrics
    recommendations: list[str]

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "overall_balance": self.overall_balance.value,
            "issues": [i.to_dict() for i in self.issues],
            "metrics": self.metrics.to_dict(),
            "recommendations": list(self.recommendations),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class StrategyStats:
    """Aggregate statistics for one strategy label."""

    games: int = 0
    wins: int = 0
    total_duration: int = 0
    average_score: float = 0.0

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games > 0 else 0.0


# =============================================================================
# Pure helpers
# =============================================================================


def identify_strategy(result: PlaytestResult) -> str:
    """Compose the strategy label for one result (suffix order: rush, turtle, tech, expand)."""
    actions = result.actions

    has_rush = any(
        isinstance(a.action, ArmyAction) and a.action.is_attack and a.tick < RUSH_TICK_LIMIT
        for a in actions
    )
    defend_count = sum(1 for a in actions if isinstance(a.action, ArmyAction) and a.action.is_defend)
    has_tech = any(isinstance(a.action, Research) for a in actions)
    has_expand = any(isinstance(a.action, BuildBuilding) and a.action.is_expansion for a in actions)

    strategy = result.persona_type.value
    if has_rush:
        strategy = f"{strategy}_rush"
    if defend_count > TURTLE_DEFEND_COUNT:
        strategy = f"{strategy}_turtle"
    if has_tech:
        strategy = f"{strategy}_tech"
    if has_expand:
        strategy = f"{strategy}_expand"
    return strategy


def expected_difficulty(max_tick: int) -> Callable[[int], float]:
    """Expected difficulty S-curve over match progress ``p = tick / max_tick``.

    ``0.2 + 0.6 * p^2 + 0.2 * p``, with p capped at 1.
    """

    def curve(tick: int) -> float:
        progress = min(1.0, tick / max_tick) if max_tick > 0 else 1.0
        return 0.2 + progress * progress * 0.6 + progress * 0.2

    return curve


def calculate_deviation(actual: float, expected: float, values: list[float]) -> float:
    """|actual - expected| in units of the population std-dev of ``values``.

    Returns 0 with fewer than two samples or zero spread.
    """
    if len(values) < 2:
        return 0.0
    std_dev = statistics.pstdev(values)
    if std_dev == 0:
        return 0.0
    return abs(actual - expected) / std_dev


def assess_overall_balance(issues: Iterable[BalanceIssue]) -> OverallBalance:
    """Classify a list of issues by severity counts."""
    issues = list(issues)
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    high = sum(1 for i in issues if i.severity == Severity.HIGH)
    medium = sum(1 for i in issues if i.severity == Severity.MEDIUM)

    if critical > 0:
        return OverallBalance.SEVERELY_IMBALANCED
    if high >= 3:
        return OverallBalance.IMBALANCED
    if high > 0 or medium >= 5:
        return OverallBalance.SLIGHTLY_IMBALANCED
    return OverallBalance.BALANCED


def _positive_efficiencies(metrics: BalanceMetrics) -> list[float]:
    return [v for v in metrics.resource_efficiency.values() if v > 0]


# =============================================================================
# Detector
# =============================================================================


class BalanceDetector:
    """Accumulates playtest results and reports on game balance.

    Usage:
        detector = BalanceDetector()
        detector.add_playtest_results(results)
        report = detector.analyze_balance()
        print(report.overall_balance, report.recommendations)
    """

    def __init__(self):
        self._results: list[PlaytestResult] = []

    @property
    def results(self) -> list[PlaytestResult]:
        return list(self._results)

    def add_playtest_results(self, results: Iterable[PlaytestResult]) -> None:
        self._results.extend(results)

    def clear(self) -> None:
        self._results.clear()

    def played_results(self) -> list[PlaytestResult]:
        """The batch without matches that crashed (outcome ``error``)."""
        return [r for r in self._results if not r.is_error]

    def identify_strategy(self, result: PlaytestResult) -> str:
        return identify_strategy(result)

    def analyze_balance(self) -> BalanceReport:
        """Recompute the full report from the accumulated batch."""
        metrics = self.calculate_metrics()
        issues = self.detect_issues(metrics)
        overall = assess_overall_balance(issues)
        recommendations = self.generate_recommendations(issues, metrics)
        logger.debug(
            f"Balance analysis over {len(self._results)} results: {overall.value}, {len(issues)} issues"
        )
        return BalanceReport(
            overall_balance=overall,
            issues=issues,
            metrics=metrics,
            recommendations=recommendations,
        )

    def calculate_metrics(self) -> BalanceMetrics:
        played = self.played_results()
        games: dict[str, int] = {}
        wins: dict[str, int] = {}
        efficiency_sum: dict[str, float] = {}
        severities_by_tick: dict[int, list[float]] = {}
        total_duration = 0

        for result in played:
            total_duration += result.duration
            strategy = identify_strategy(result)
            games[strategy] = games.get(strategy, 0) + 1
            if result.is_win:
                wins[strategy] = wins.get(strategy, 0) + 1
            efficiency_sum[strategy] = (
                efficiency_sum.get(strategy, 0.0) + result.metrics.average_resource_efficiency
            )
            for spike in result.metrics.difficulty_spikes:
                severities_by_tick.setdefault(spike.tick, []).append(spike.severity)

        total_games = len(played)
        win_rates = {s: wins.get(s, 0) / n for s, n in games.items()}
        pick_rates = {s: n / total_games for s, n in games.items()}
        resource_efficiency = {s: efficiency_sum[s] / n for s, n in games.items()}
        dominance = {s: win_rates[s] * pick_rates[s] for s in games}

        max_tick = max((r.duration for r in played), default=0)
        curve = expected_difficulty(max_tick)
        difficulty_curve = []
        for tick in sorted(severities_by_tick):
            severities = severities_by_tick[tick]
            observed = statistics.fmean(severities)
            expected = curve(tick)
            difficulty_curve.append(
                DifficultyPoint(
                    tick=tick,
                    difficulty=observed,
                    expected_difficulty=expected,
                    deviation=calculate_deviation(observed, expected, severities),
                )
            )

        return BalanceMetrics(
            win_rates=win_rates,
            pick_rates=pick_rates,
            average_game_duration=total_duration / max(1, total_games),
            difficulty_curve=difficulty_curve,
            resource_efficiency=resource_efficiency,
            strategy_dominance=dominance,
        )

    def detect_issues(
        self, metrics: BalanceMetrics, results: Optional[list[PlaytestResult]] = None
    ) -> list[BalanceIssue]:
        """Apply the fixed issue thresholds to ``metrics``.

        Args:
            metrics: Metrics to check
            results: Batch for the whole-game win rate (default: the accumulated batch);
                crashed matches are left out
        """
        results = self.played_results() if results is None else [r for r in results if not r.is_error]
        issues: list[BalanceIssue] = []

        for strategy, win_rate in metrics.win_rates.items():
            pick_rate = metrics.pick_rates.get(strategy, 0.0)
            if win_rate > TARGET_WIN_RATE_HIGH:
                if win_rate > CRITICAL_WIN_RATE:
                    severity = Severity.CRITICAL
                elif win_rate > HIGH_WIN_RATE:
                    severity = Severity.HIGH
                else:
                    severity = Severity.MEDIUM
                issues.append(
                    BalanceIssue(
                        type=IssueType.IMBALANCE,
                        severity=severity,
                        description=f'Strategy "{strategy}" has {win_rate * 100:.1f}% win rate (target: 45-55%)',
                        evidence={"strategy": strategy, "win_rate": win_rate, "threshold": TARGET_WIN_RATE_HIGH},
                    )
                )
            elif win_rate < TARGET_WIN_RATE_LOW and pick_rate > MIN_PICK_RATE_FOR_UNDERPOWERED:
                issues.append(
                    BalanceIssue(
                        type=IssueType.IMBALANCE,
                        severity=Severity.HIGH if win_rate < UNDERPOWERED_WIN_RATE else Severity.MEDIUM,
                        description=f'Strategy "{strategy}" has {win_rate * 100:.1f}% win rate (underpowered)',
                        evidence={"strategy": strategy, "win_rate": win_rate, "threshold": TARGET_WIN_RATE_LOW},
                    )
                )

        for strategy, pick_rate in metrics.pick_rates.items():
            win_rate = metrics.win_rates.get(strategy, 0.0)
            dominance = metrics.strategy_dominance.get(strategy, 0.0)
            if pick_rate > DOMINANT_PICK_RATE and win_rate > TARGET_WIN_RATE_HIGH:
                issues.append(
                    BalanceIssue(
                        type=IssueType.IMBALANCE,
                        severity=Severity.CRITICAL if dominance > CRITICAL_DOMINANCE else Severity.HIGH,
                        description=(
                            f'Strategy "{strategy}" is dominant: {pick_rate * 100:.0f}% pick rate, '
                            f"{win_rate * 100:.1f}% win rate"
                        ),
                        evidence={
                            "strategy": strategy,
                            "pick_rate": pick_rate,
                            "win_rate": win_rate,
                            "dominance": dominance,
                        },
                    )
                )

        for point in metrics.difficulty_curve:
            if point.deviation > SPIKE_DEVIATION_MEDIUM:
                issues.append(
                    BalanceIssue(
                        type=IssueType.DIFFICULTY_SPIKE,
                        severity=Severity.HIGH if point.deviation > SPIKE_DEVIATION_HIGH else Severity.MEDIUM,
                        description=(
                            f"Difficulty spike at tick {point.tick}: "
                            f"{point.deviation:.1f} standard deviations above expected"
                        ),
                        evidence={
                            "tick": point.tick,
                            "difficulty": point.difficulty,
                            "expected": point.expected_difficulty,
                            "deviation": point.deviation,
                        },
                        tick=point.tick,
                    )
                )

        efficiencies = _positive_efficiencies(metrics)
        if len(efficiencies) > 1:
            max_efficiency = max(efficiencies)
            min_efficiency = min(efficiencies)
            ratio = max_efficiency / min_efficiency
            if ratio > RESOURCE_EFFICIENCY_RATIO:
                issues.append(
                    BalanceIssue(
                        type=IssueType.IMBALANCE,
                        severity=Severity.MEDIUM,
                        description=(
                            f"Resource efficiency varies significantly: "
                            f"{min_efficiency:.2f} to {max_efficiency:.2f}"
                        ),
                        evidence={
                            "min_efficiency": min_efficiency,
                            "max_efficiency": max_efficiency,
                            "ratio": ratio,
                        },
                    )
                )

        if results:
            win_rate = sum(1 for r in results if r.is_win) / len(results)
            if win_rate < UNWINNABLE_WIN_RATE:
                issues.append(
                    BalanceIssue(
                        type=IssueType.UNWINNABLE,
                        severity=Severity.CRITICAL,
                        description=(
                            f"Game appears unwinnable: only {win_rate * 100:.1f}% win rate across all personas"
                        ),
                        evidence={"win_rate": win_rate, "total_games": len(results)},
                    )
                )
            elif win_rate > TRIVIAL_WIN_RATE:
                issues.append(
                    BalanceIssue(
                        type=IssueType.TRIVIAL,
                        severity=Severity.HIGH,
                        description=f"Game appears too easy: {win_rate * 100:.1f}% win rate across all personas",
                        evidence={"win_rate": win_rate, "total_games": len(results)},
                    )
                )

        return issues

    def generate_recommendations(
        self, issues: list[BalanceIssue], metrics: BalanceMetrics
    ) -> list[str]:
        """Deterministic recommendation lines derived from the issue list."""
        recommendations: list[str] = []

        seen_strategies: set[str] = set()
        for issue in issues:
            strategy = issue.evidence.get("strategy")
            if issue.type != IssueType.IMBALANCE or strategy is None or strategy in seen_strategies:
                continue
            seen_strategies.add(strategy)
            if issue.evidence["win_rate"] > TARGET_WIN_RATE_HIGH:
                recommendations.append(
                    f'Nerf strategy "{strategy}": reduce effectiveness or increase cost'
                )
            else:
                recommendations.append(
                    f'Buff strategy "{strategy}": increase effectiveness or reduce cost'
                )

        spike_count = sum(1 for i in issues if i.type == IssueType.DIFFICULTY_SPIKE)
        if spike_count > 0:
            recommendations.append(f"Smooth difficulty curve: {spike_count} significant spikes detected")

        efficiencies = list(metrics.resource_efficiency.values())
        if len(efficiencies) > 1 and statistics.pvariance(efficiencies) > RESOURCE_VARIANCE_THRESHOLD:
            recommendations.append(RESOURCE_RECOMMENDATION)

        if not recommendations:
            recommendations.append(HEALTHY_RECOMMENDATION)

        return recommendations

    def strategy_stats(self) -> dict[str, StrategyStats]:
        """Games, wins, total duration and mean final score per strategy label."""
        stats: dict[str, StrategyStats] = {}
        for result in self.played_results():
            entry = stats.setdefault(identify_strategy(result), StrategyStats())
            entry.games += 1
            if result.is_win:
                entry.wins += 1
            entry.total_duration += result.duration
            entry.average_score += (result.final_score - entry.average_score) / entry.games
        return stats
