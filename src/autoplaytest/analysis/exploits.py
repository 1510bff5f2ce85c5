"""Exploit detection contract.

An exploit detector looks at a finished batch and reports degenerate ways of
winning. The coordinator only depends on the ``ExploitDetector`` interface;
``HeuristicExploitDetector`` is the default implementation.
"""

from __future__ import annotations

import json
import logging
import statistics
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from autoplaytest.analysis.balance import Severity
from autoplaytest.models.actions import action_kind

if TYPE_CHECKING:
    from autoplaytest.testing.agent import PlaytestResult

logger = logging.getLogger(__name__)

DOMINANT_ACTION_SHARE = 0.8
FAST_WIN_FRACTION = 0.25
MIN_TRACE_LENGTH = 5


@dataclass(frozen=True)
class ExploitDetection:
    """A suspected exploit.

    Attributes:
        kind: Short identifier (``dominant_action`` or ``fast_win``)
        severity: How serious the finding is
        persona_type: Persona whose games show the pattern
        description: Human-readable description
        confidence: 0-1 confidence in the finding
        game_ids: Games that exhibit the pattern
        evidence: The numbers behind the finding
    """

    kind: str
    severity: Severity
    persona_type: str
    description: str
    confidence: float
    game_ids: tuple[str, ...] = ()
    evidence: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "severity": self.severity.value,
            "persona_type": self.persona_type,
            "description": self.description,
            "confidence": round(self.confidence, 3),
            "game_ids": list(self.game_ids),
            "evidence": self.evidence,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class ExploitDetector(ABC):
    """Abstract base class for exploit detectors."""

    @abstractmethod
    def analyze_for_exploits(self, results: list[PlaytestResult]) -> list[ExploitDetection]:
        """Inspect a batch of results.

        Args:
            results: Every result of the session

        Returns:
            Detections, possibly empty
        """
        pass


class HeuristicExploitDetector(ExploitDetector):
    """Flags repetitive winning traces and unusually fast wins.

    - dominant_action: a winning game whose trace is more than 80% one action kind
    - fast_win: a win shorter than a quarter of the median winning duration
    """

    def __init__(
        self,
        dominant_share: float = DOMINANT_ACTION_SHARE,
        fast_win_fraction: float = FAST_WIN_FRACTION,
        min_trace_length: int = MIN_TRACE_LENGTH,
    ):
        if not 0.0 < dominant_share <= 1.0:
            raise ValueError(f"dominant_share must be in (0, 1], got {dominant_share}")
        if not 0.0 < fast_win_fraction < 1.0:
            raise ValueError(f"fast_win_fraction must be in (0, 1), got {fast_win_fraction}")
        self.dominant_share = dominant_share
        self.fast_win_fraction = fast_win_fraction
        self.min_trace_length = min_trace_length

    def analyze_for_exploits(self, results: list[PlaytestResult]) -> list[ExploitDetection]:
        wins = [r for r in results if r.is_win]
        if not wins:
            return []
        detections = self._dominant_actions(wins) + self._fast_wins(wins)
        if detections:
            logger.info(f"Found {len(detections)} suspected exploits in {len(wins)} wins")
        return detections

    def _dominant_actions(self, wins: list[PlaytestResult]) -> list[ExploitDetection]:
        # (persona, action kind) -> (game ids, worst share)
        flagged: dict[tuple[str, str], tuple[list[str], float]] = {}
        for result in wins:
            if len(result.actions) < self.min_trace_length:
                continue
            counts = Counter(action_kind(a.action) for a in result.actions)
            kind, count = counts.most_common(1)[0]
            share = count / len(result.actions)
            if share > self.dominant_share:
                key = (result.persona_type.value, kind)
                game_ids, top_share = flagged.get(key, ([], 0.0))
                game_ids.append(result.game_id)
                flagged[key] = (game_ids, max(top_share, share))

        return [
            ExploitDetection(
                kind="dominant_action",
                severity=Severity.HIGH,
                persona_type=persona,
                description=(
                    f'Persona "{persona}" wins by repeating "{kind}" '
                    f"({share * 100:.0f}% of decisions)"
                ),
                confidence=share,
                game_ids=tuple(game_ids),
                evidence={"action_kind": kind, "share": share, "games": len(game_ids)},
            )
            for (persona, kind), (game_ids, share) in flagged.items()
        ]

    def _fast_wins(self, wins: list[PlaytestResult]) -> list[ExploitDetection]:
        durations = [r.duration for r in wins if r.duration > 0]
        if len(durations) < 2:
            return []
        median = statistics.median(durations)
        cutoff = median * self.fast_win_fraction

        by_persona: dict[str, list[PlaytestResult]] = {}
        for result in wins:
            if 0 < result.duration < cutoff:
                by_persona.setdefault(result.persona_type.value, []).append(result)

        detections = []
        for persona, fast in by_persona.items():
            fastest = min(r.duration for r in fast)
            detections.append(
                ExploitDetection(
                    kind="fast_win",
                    severity=Severity.MEDIUM,
                    persona_type=persona,
                    description=(
                        f'Persona "{persona}" won {len(fast)} games in under '
                        f"{cutoff:.0f} ticks (median win: {median:.0f})"
                    ),
                    confidence=min(1.0, 1 - fastest / median),
                    game_ids=tuple(r.game_id for r in fast),
                    evidence={"median_duration": median, "cutoff": cutoff, "fastest": fastest},
                )
            )
        return detections
