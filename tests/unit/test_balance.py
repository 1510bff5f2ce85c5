"""Tests for autoplaytest.analysis.balance module.

Tests cover:
- Strategy labels from decision traces
- Per-strategy metrics and the difficulty curve
- Issue thresholds (win rate band, dominance, spikes, resources, whole game)
- Overall classification and recommendations
- Determinism of repeated analysis
"""

import pytest

from autoplaytest.analysis.balance import (
    HEALTHY_RECOMMENDATION,
    RESOURCE_RECOMMENDATION,
    BalanceDetector,
    BalanceIssue,
    BalanceMetrics,
    IssueType,
    OverallBalance,
    Severity,
    assess_overall_balance,
    calculate_deviation,
    expected_difficulty,
    identify_strategy,
)
from autoplaytest.models.actions import ArmyAction, BuildBuilding, GatherResources, Research
from autoplaytest.personas import PersonaType
from autoplaytest.testing.agent import (
    DifficultySpike,
    Outcome,
    PlaytestAction,
    PlaytestMetrics,
    PlaytestResult,
)


def make_result(
    persona=PersonaType.AGGRESSIVE_RUSHER,
    outcome=Outcome.WIN,
    duration=1000,
    actions=(),
    efficiency=0.0,
    spikes=(),
    score=0.0,
    game_id="game",
):
    """Build a PlaytestResult; actions are (tick, action) pairs."""
    return PlaytestResult(
        game_id=game_id,
        persona_type=PersonaType(persona),
        outcome=outcome,
        duration=duration,
        final_score=score,
        metrics=PlaytestMetrics(
            average_resource_efficiency=efficiency,
            difficulty_spikes=tuple(spikes),
        ),
        actions=tuple(
            PlaytestAction(tick=tick, action=action, score=0.5, reasoning="test")
            for tick, action in actions
        ),
    )


def spike(tick, severity):
    return DifficultySpike(tick=tick, severity=severity, description="test spike")


def analyze(results):
    detector = BalanceDetector()
    detector.add_playtest_results(results)
    return detector.analyze_balance()


# =============================================================================
# Strategy labels
# =============================================================================


class TestIdentifyStrategy:
    """Tests for identify_strategy."""

    def test_plain_persona(self):
        """A trace with no telling actions is just the persona."""
        result = make_result(actions=[(10, GatherResources())])
        assert identify_strategy(result) == "aggressive_rusher"

    def test_all_suffixes_in_order(self):
        """Suffixes are appended as rush, turtle, tech, expand."""
        actions = [(100, ArmyAction(action="attack"))]
        actions += [(200 + i, ArmyAction(action="defend")) for i in range(6)]
        actions += [(300, BuildBuilding(building_type="base")), (400, Research())]
        result = make_result(actions=actions)
        assert identify_strategy(result) == "aggressive_rusher_rush_turtle_tech_expand"

    def test_late_attack_is_not_a_rush(self):
        """Attacks from tick 2000 on do not count as a rush."""
        result = make_result(actions=[(2000, ArmyAction(action="attack"))])
        assert identify_strategy(result) == "aggressive_rusher"

    def test_five_defends_is_not_turtling(self):
        """Turtling needs more than five defends."""
        actions = [(i, ArmyAction(action="defend")) for i in range(5)]
        assert identify_strategy(make_result(actions=actions)) == "aggressive_rusher"

    def test_non_base_building_is_not_expansion(self):
        """Only bases count as expanding."""
        result = make_result(actions=[(10, BuildBuilding(building_type="barracks"))])
        assert identify_strategy(result) == "aggressive_rusher"

    def test_detector_delegates(self):
        """BalanceDetector.identify_strategy uses the same labels."""
        result = make_result(persona=PersonaType.TECH_FOCUSED, actions=[(10, Research())])
        assert BalanceDetector().identify_strategy(result) == "tech_focused_tech"


# =============================================================================
# Pure helpers
# =============================================================================


class TestHelpers:
    """Tests for the curve, deviation and classification helpers."""

    def test_expected_difficulty_curve(self):
        """0.2 at the start, 1.0 at the end, 0.45 half way."""
        curve = expected_difficulty(1000)
        assert curve(0) == pytest.approx(0.2)
        assert curve(500) == pytest.approx(0.45)
        assert curve(1000) == pytest.approx(1.0)
        assert curve(5000) == pytest.approx(1.0)

    def test_expected_difficulty_without_duration(self):
        """A zero-length batch treats every tick as the end."""
        assert expected_difficulty(0)(100) == pytest.approx(1.0)

    def test_calculate_deviation(self):
        """Deviation is measured in population standard deviations."""
        assert calculate_deviation(0.9, 0.1, [0.5, 0.7]) == pytest.approx(8.0)

    def test_calculate_deviation_degenerate(self):
        """Fewer than two samples or no spread gives zero."""
        assert calculate_deviation(0.9, 0.1, [0.9]) == 0.0
        assert calculate_deviation(0.9, 0.1, [0.5, 0.5]) == 0.0

    def test_assess_overall_balance(self):
        """Classification follows severity counts."""

        def issues(*severities):
            return [BalanceIssue(IssueType.IMBALANCE, s, "x") for s in severities]

        assert assess_overall_balance(issues(Severity.CRITICAL)) == OverallBalance.SEVERELY_IMBALANCED
        assert assess_overall_balance(issues(*[Severity.HIGH] * 3)) == OverallBalance.IMBALANCED
        assert assess_overall_balance(issues(Severity.HIGH)) == OverallBalance.SLIGHTLY_IMBALANCED
        assert assess_overall_balance(issues(*[Severity.MEDIUM] * 5)) == OverallBalance.SLIGHTLY_IMBALANCED
        assert assess_overall_balance(issues(*[Severity.MEDIUM] * 4)) == OverallBalance.BALANCED
        assert assess_overall_balance(issues(Severity.LOW)) == OverallBalance.BALANCED
        assert assess_overall_balance([]) == OverallBalance.BALANCED


# =============================================================================
# Issue thresholds
# =============================================================================


class TestDetectIssues:
    """Tests for BalanceDetector.detect_issues."""

    @pytest.mark.parametrize(
        "win_rate,severity",
        [(0.6, Severity.MEDIUM), (0.62, Severity.HIGH), (0.7, Severity.CRITICAL)],
    )
    def test_overpowered_band(self, win_rate, severity):
        """Win rates above 55% are flagged by how far above they are."""
        metrics = BalanceMetrics(win_rates={"s": win_rate}, pick_rates={"s": 0.2})
        issues = BalanceDetector().detect_issues(metrics, results=[])
        assert [i.severity for i in issues] == [severity]
        assert issues[0].evidence["strategy"] == "s"

    def test_inside_band_is_fine(self):
        """Win rates within 45-55% are not issues."""
        metrics = BalanceMetrics(win_rates={"a": 0.55, "b": 0.45}, pick_rates={"a": 0.5, "b": 0.5})
        assert BalanceDetector().detect_issues(metrics, results=[]) == []

    @pytest.mark.parametrize(
        "win_rate,pick_rate,expected",
        [(0.3, 0.2, [Severity.HIGH]), (0.4, 0.2, [Severity.MEDIUM]), (0.3, 0.1, [])],
    )
    def test_underpowered_band(self, win_rate, pick_rate, expected):
        """Low win rates only matter for strategies picked more than 10% of the time."""
        metrics = BalanceMetrics(win_rates={"s": win_rate}, pick_rates={"s": pick_rate})
        issues = BalanceDetector().detect_issues(metrics, results=[])
        assert [i.severity for i in issues] == expected

    def test_dominance(self):
        """Popular winning strategies are dominant; critical above 0.4 dominance."""
        high = BalanceMetrics(
            win_rates={"s": 0.6}, pick_rates={"s": 0.6}, strategy_dominance={"s": 0.36}
        )
        critical = BalanceMetrics(
            win_rates={"s": 0.7}, pick_rates={"s": 0.6}, strategy_dominance={"s": 0.42}
        )
        high_issues = BalanceDetector().detect_issues(high, results=[])
        critical_issues = BalanceDetector().detect_issues(critical, results=[])

        assert [i.severity for i in high_issues] == [Severity.MEDIUM, Severity.HIGH]
        assert "dominant" in high_issues[1].description
        assert [i.severity for i in critical_issues] == [Severity.CRITICAL, Severity.CRITICAL]

    def test_resource_efficiency_ratio(self):
        """A best/worst efficiency ratio above 2 is one medium issue."""
        metrics = BalanceMetrics(resource_efficiency={"A": 1.0, "B": 2.5})
        issues = BalanceDetector().detect_issues(metrics, results=[])
        assert len(issues) == 1
        assert issues[0].severity == Severity.MEDIUM
        assert issues[0].evidence["ratio"] == pytest.approx(2.5)

    def test_zero_efficiency_ignored(self):
        """Strategies with no efficiency samples do not make the ratio infinite."""
        metrics = BalanceMetrics(resource_efficiency={"A": 0.0, "B": 0.5})
        assert BalanceDetector().detect_issues(metrics, results=[]) == []

    def test_unwinnable(self):
        """Under 5% wins across the batch is critical."""
        results = [make_result(outcome=Outcome.LOSS) for _ in range(20)]
        issues = BalanceDetector().detect_issues(BalanceMetrics(), results=results)
        assert [(i.type, i.severity) for i in issues] == [(IssueType.UNWINNABLE, Severity.CRITICAL)]

    def test_trivial(self):
        """Over 95% wins across the batch is high."""
        results = [make_result() for _ in range(20)]
        issues = BalanceDetector().detect_issues(BalanceMetrics(), results=results)
        assert [(i.type, i.severity) for i in issues] == [(IssueType.TRIVIAL, Severity.HIGH)]


# =============================================================================
# Full analysis
# =============================================================================


class TestAnalyzeBalance:
    """Tests for BalanceDetector.analyze_balance."""

    def test_one_strategy_always_wins(self):
        """Ten rusher wins: critical, dominant and trivial, with one nerf line."""
        report = analyze([make_result(game_id=f"g{i}") for i in range(10)])

        assert report.overall_balance == OverallBalance.SEVERELY_IMBALANCED
        assert report.metrics.win_rates == {"aggressive_rusher": 1.0}
        assert report.metrics.pick_rates == {"aggressive_rusher": 1.0}
        assert [i.type for i in report.issues] == [
            IssueType.IMBALANCE,
            IssueType.IMBALANCE,
            IssueType.TRIVIAL,
        ]
        assert report.recommendations == [
            'Nerf strategy "aggressive_rusher": reduce effectiveness or increase cost'
        ]

    def test_all_losses_recommend_buff(self):
        """A strategy that never wins gets a buff recommendation."""
        report = analyze([make_result(outcome=Outcome.LOSS) for _ in range(10)])
        assert report.overall_balance == OverallBalance.SEVERELY_IMBALANCED
        assert report.recommendations == [
            'Buff strategy "aggressive_rusher": increase effectiveness or reduce cost'
        ]

    def test_healthy_batch(self):
        """Even strategies produce the healthy fallback."""
        report = analyze(
            [
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.WIN),
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.LOSS),
                make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.WIN),
                make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.LOSS),
            ]
        )
        assert report.overall_balance == OverallBalance.BALANCED
        assert report.issues == []
        assert report.recommendations == [HEALTHY_RECOMMENDATION]

    def test_resource_variance_recommendation(self):
        """Widely varying efficiency adds the resource recommendation."""
        report = analyze(
            [
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.WIN, efficiency=0.1),
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.LOSS, efficiency=0.1),
                make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.WIN, efficiency=0.9),
                make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.LOSS, efficiency=0.9),
            ]
        )
        assert report.metrics.resource_efficiency == pytest.approx({"explorer": 0.1, "tech_focused": 0.9})
        assert report.count_by_severity(Severity.MEDIUM) == 1
        assert report.recommendations == [RESOURCE_RECOMMENDATION]

    def test_single_spike_is_not_significant(self):
        """One spike sample has no spread, so it never deviates."""
        report = analyze([make_result(duration=1000, spikes=[spike(500, 0.9)])])
        point = report.metrics.difficulty_curve[0]
        assert point.tick == 500
        assert point.difficulty == pytest.approx(0.9)
        assert point.expected_difficulty == pytest.approx(0.45)
        assert point.deviation == 0.0
        assert not any(i.type == IssueType.DIFFICULTY_SPIKE for i in report.issues)

    def test_clustered_spikes_are_significant(self):
        """Spikes concentrated at one tick far above the curve are flagged."""
        results = [
            make_result(outcome=Outcome.WIN if i % 2 else Outcome.LOSS, spikes=[spike(500, s)])
            for i, s in enumerate([0.9, 0.9, 0.9, 0.8])
        ]
        report = analyze(results)
        spike_issues = [i for i in report.issues if i.type == IssueType.DIFFICULTY_SPIKE]
        assert len(spike_issues) == 1
        assert spike_issues[0].tick == 500
        assert spike_issues[0].severity == Severity.HIGH
        assert "Smooth difficulty curve: 1 significant spikes detected" in report.recommendations

    def test_difficulty_curve_sorted_by_tick(self):
        """Curve points come out in tick order."""
        report = analyze(
            [
                make_result(spikes=[spike(900, 0.5)]),
                make_result(spikes=[spike(300, 0.5), spike(600, 0.5)]),
            ]
        )
        assert [p.tick for p in report.metrics.difficulty_curve] == [300, 600, 900]

    def test_average_duration(self):
        """Average duration covers every result."""
        report = analyze([make_result(duration=100), make_result(duration=300)])
        assert report.metrics.average_game_duration == pytest.approx(200.0)

    def test_crashed_matches_are_not_losses(self):
        """Error outcomes stay out of win, pick and whole-game rates."""
        report = analyze([make_result(persona=PersonaType.EXPLORER, outcome=Outcome.ERROR) for _ in range(3)])
        assert report.metrics.win_rates == {}
        assert report.issues == []
        assert report.overall_balance == OverallBalance.BALANCED
        assert report.recommendations == [HEALTHY_RECOMMENDATION]

    def test_crashed_matches_excluded_from_mixed_batch(self):
        """Only played matches count toward the rates."""
        played = [
            make_result(persona=PersonaType.EXPLORER, outcome=Outcome.WIN, duration=100),
            make_result(persona=PersonaType.EXPLORER, outcome=Outcome.LOSS, duration=100),
            make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.WIN, duration=100),
            make_result(persona=PersonaType.TECH_FOCUSED, outcome=Outcome.LOSS, duration=100),
        ]
        crashed = [make_result(persona=PersonaType.EXPLORER, outcome=Outcome.ERROR, duration=0) for _ in range(3)]
        report = analyze(played + crashed)

        assert report.metrics.win_rates == {"explorer": 0.5, "tech_focused": 0.5}
        assert report.metrics.pick_rates == {"explorer": 0.5, "tech_focused": 0.5}
        assert report.metrics.average_game_duration == pytest.approx(100.0)
        assert report.issues == []

    def test_repeatable(self):
        """Analyzing the same batch twice gives the same report."""
        detector = BalanceDetector()
        detector.add_playtest_results(
            [
                make_result(persona=PersonaType.EXPLORER, efficiency=0.2, spikes=[spike(400, 0.7)]),
                make_result(outcome=Outcome.LOSS, efficiency=0.6, spikes=[spike(400, 0.3)]),
            ]
        )
        assert detector.analyze_balance().to_dict() == detector.analyze_balance().to_dict()

    def test_report_serializes(self):
        """Reports serialize to JSON."""
        report = analyze([make_result(spikes=[spike(500, 0.9)])])
        assert '"overall_balance"' in report.to_json()


class TestDetectorState:
    """Tests for batch accumulation."""

    def test_strategy_stats(self):
        """Stats aggregate games, wins, duration and mean score per label."""
        detector = BalanceDetector()
        detector.add_playtest_results(
            [
                make_result(persona=PersonaType.EXPLORER, duration=100, score=10.0),
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.LOSS, duration=300, score=30.0),
            ]
        )
        stats = detector.strategy_stats()["explorer"]
        assert stats.games == 2
        assert stats.wins == 1
        assert stats.total_duration == 400
        assert stats.average_score == pytest.approx(20.0)
        assert stats.win_rate == pytest.approx(0.5)

    def test_strategy_stats_skip_crashed_matches(self):
        """Error outcomes are kept in the batch but not in the stats."""
        detector = BalanceDetector()
        detector.add_playtest_results(
            [
                make_result(persona=PersonaType.EXPLORER, duration=100),
                make_result(persona=PersonaType.EXPLORER, outcome=Outcome.ERROR, duration=7),
            ]
        )
        assert len(detector.results) == 2
        assert len(detector.played_results()) == 1
        stats = detector.strategy_stats()["explorer"]
        assert stats.games == 1
        assert stats.total_duration == 100

    def test_results_accumulate(self):
        """Results from several calls are analyzed together."""
        detector = BalanceDetector()
        detector.add_playtest_results([make_result()])
        detector.add_playtest_results([make_result(outcome=Outcome.LOSS)])
        assert len(detector.results) == 2

    def test_clear(self):
        """clear empties the batch."""
        detector = BalanceDetector()
        detector.add_playtest_results([make_result()])
        detector.clear()
        assert detector.results == []
        report = detector.analyze_balance()
        assert report.overall_balance == OverallBalance.BALANCED
        assert report.recommendations == [HEALTHY_RECOMMENDATION]
