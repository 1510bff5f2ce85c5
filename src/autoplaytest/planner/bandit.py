"""Bandit planner: direct scoring for small action sets, UCB1 otherwise.

The planner never expands a tree past the root. Each decision point is a
single ``SearchNode`` whose arms are the candidate actions; rollouts are
heuristic evaluations of one arm, chosen by UCB1:

    ucb(arm) = mean(arm) + C * sqrt(ln(node.visits) / arm.visits)

Unvisited arms have infinite priority, so every arm is tried once before any
arm is tried twice.

Nodes are cached under a coarse state fingerprint. The cache belongs to the
planner instance (or to a handle the caller passes in) and is LRU-bounded,
so concurrent matches that each own a planner never share counters.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Hashable, Optional

from autoplaytest.config import (
    DEFAULT_EXPLORATION_CONSTANT,
    get_node_cache_size,
    get_resource_bucket,
)
from autoplaytest.evaluation.situation import SituationSummary, evaluate_situation
from autoplaytest.models.actions import Action
from autoplaytest.models.state import StateSnapshot
from autoplaytest.planner.heuristics import (
    enhanced_score,
    heuristic_score,
    legal_actions,
)

if TYPE_CHECKING:
    from autoplaytest.personas.base import Persona

logger = logging.getLogger(__name__)

DEFAULT_ROLLOUTS = 100
DIRECT_MODE_MAX_CANDIDATES = 5
FINGERPRINT_TICK_MODULO = 100


@dataclass
class ArmStats:
    """Visit statistics for one candidate action."""

    action: Action
    visits: int = 0
    value: float = 0.0

    @property
    def mean(self) -> float:
        """Mean value, or -inf for an arm never visited."""
        return self.value / self.visits if self.visits > 0 else -math.inf


def ucb1_value(arm: ArmStats, total_visits: int, exploration_constant: float) -> float:
    """UCB1 priority of ``arm``; infinite while the arm is unvisited."""
    if arm.visits == 0:
        return math.inf
    exploration = exploration_constant * math.sqrt(math.log(max(total_visits, 1)) / arm.visits)
    return arm.value / arm.visits + exploration


@dataclass
class SearchNode:
    """A single decision point: total visits plus per-arm statistics."""

    arms: list[ArmStats] = field(default_factory=list)
    visits: int = 0

    @classmethod
    def for_actions(cls, actions: list[Action]) -> "SearchNode":
        return cls(arms=[ArmStats(action=a) for a in actions])

    def matches(self, actions: list[Action]) -> bool:
        """Whether this node's arms are exactly ``actions``, in order."""
        return len(self.arms) == len(actions) and all(
            arm.action == action for arm, action in zip(self.arms, actions)
        )

    def select_arm(self, exploration_constant: float) -> int | None:
        """Index of the arm with the highest UCB1 value; first seen wins ties."""
        selected: int | None = None
        best_ucb = -math.inf
        for index, arm in enumerate(self.arms):
            ucb = ucb1_value(arm, self.visits, exploration_constant)
            if ucb > best_ucb:
                best_ucb = ucb
                selected = index
        return selected

    def record(self, index: int, score: float) -> None:
        arm = self.arms[index]
        arm.visits += 1
        arm.value += score

    def best_arm(self) -> ArmStats | None:
        """Arm with the highest mean; the first arm when nothing was visited."""
        if not self.arms:
            return None
        best = self.arms[0]
        for arm in self.arms[1:]:
            if arm.mean > best.mean:
                best = arm
        return best


class NodeCache:
    """LRU-bounded mapping of state fingerprints to search nodes."""

    def __init__(self, max_size: Optional[int] = None):
        """Initialize the cache.

        Args:
            max_size: Maximum nodes kept (default from configuration)

        Raises:
            ValueError: If max_size is not positive
        """
        self.max_size = max_size if max_size is not None else get_node_cache_size()
        if self.max_size <= 0:
            raise ValueError(f"max_size must be positive, got {self.max_size}")
        self._nodes: OrderedDict[Hashable, SearchNode] = OrderedDict()
        self.evictions = 0

    def get(self, key: Hashable) -> SearchNode | None:
        node = self._nodes.get(key)
        if node is not None:
            self._nodes.move_to_end(key)
        return node

    def put(self, key: Hashable, node: SearchNode) -> None:
        self._nodes[key] = node
        self._nodes.move_to_end(key)
        while len(self._nodes) > self.max_size:
            self._nodes.popitem(last=False)
            self.evictions += 1

    def clear(self) -> None:
        self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._nodes


def state_fingerprint(
    state: StateSnapshot, player_id: int, bucket: Optional[int] = None
) -> tuple[int, int, int, int]:
    """Coarse, lossy key: player id, bucketed minerals and gas, tick mod 100."""
    bucket = bucket or get_resource_bucket()
    player = state.player(player_id)
    minerals = player.minerals if player else 0.0
    gas = player.gas if player else 0.0
    return (
        player_id,
        int(minerals // bucket),
        int(gas // bucket),
        state.tick % FINGERPRINT_TICK_MODULO,
    )


class Planner:
    """Chooses actions by direct scoring or UCB1 bandit search.

    Usage:
        planner = Planner(rollouts=200, exploration_constant=1.41)
        action = planner.best_move(state, player_id=2)

        # Persona-shaped search
        planner = Planner.for_persona(create_persona("explorer"))
    """

    def __init__(
        self,
        rollouts: int = DEFAULT_ROLLOUTS,
        exploration_constant: float = DEFAULT_EXPLORATION_CONSTANT,
        cache: Optional[NodeCache] = None,
    ):
        """Initialize the planner.

        Args:
            rollouts: Bandit iterations per decision
            exploration_constant: UCB1 exploration constant C
            cache: Node cache handle; a fresh private cache if not provided

        Raises:
            ValueError: If rollouts is negative
        """
        if rollouts < 0:
            raise ValueError(f"rollouts must be non-negative, got {rollouts}")
        self.rollouts = rollouts
        self.exploration_constant = exploration_constant
        self.cache = cache if cache is not None else NodeCache()

    @classmethod
    def for_persona(cls, persona: "Persona", cache: Optional[NodeCache] = None) -> "Planner":
        """Build a planner whose search breadth and depth follow a persona."""
        return cls(
            rollouts=persona.rollout_count(),
            exploration_constant=persona.exploration_constant(),
            cache=cache,
        )

    def best_move(
        self,
        state: StateSnapshot,
        player_id: int,
        candidates: Optional[list[Action]] = None,
    ) -> Action | None:
        """Get the best action for ``player_id``.

        Args:
            state: Current snapshot (a mapping is validated into one)
            player_id: Player to act for
            candidates: Actions to choose from (default: legal actions)

        Returns:
            The chosen action, or None if there are no candidates
        """
        state = StateSnapshot.coerce(state)
        if candidates is None:
            candidates = legal_actions(state, player_id)
        if not candidates:
            return None

        situation = evaluate_situation(state, player_id)

        if len(candidates) <= DIRECT_MODE_MAX_CANDIDATES:
            return self.best_move_direct(state, player_id, candidates, situation)
        return self.best_move_bandit(state, player_id, candidates, situation)

    def best_move_direct(
        self,
        state: StateSnapshot,
        player_id: int,
        candidates: list[Action],
        situation: SituationSummary,
    ) -> Action | None:
        """Argmax of the enhanced score; first seen wins ties."""
        best: Action | None = None
        best_score = -math.inf
        for action in candidates:
            score = enhanced_score(state, player_id, action, situation)
            if score > best_score:
                best_score = score
                best = action
        return best

    def best_move_bandit(
        self,
        state: StateSnapshot,
        player_id: int,
        candidates: list[Action],
        situation: SituationSummary,
    ) -> Action | None:
        """Run UCB1 rollouts over a cached node and return the best-mean arm."""
        node = self.get_node(state, player_id, candidates)

        for _ in range(self.rollouts):
            self._rollout(node, state, player_id, situation)

        best = node.best_arm()
        return best.action if best is not None else None

    def get_node(
        self, state: StateSnapshot, player_id: int, candidates: list[Action]
    ) -> SearchNode:
        """Fetch the node for this fingerprint, rebuilding it if its arms changed."""
        key = state_fingerprint(state, player_id)
        node = self.cache.get(key)
        if node is None or not node.matches(candidates):
            if node is not None:
                logger.debug(f"Rebuilding stale search node {key}")
            node = SearchNode.for_actions(candidates)
            self.cache.put(key, node)
        return node

    def _rollout(
        self,
        node: SearchNode,
        state: StateSnapshot,
        player_id: int,
        situation: SituationSummary,
    ) -> None:
        node.visits += 1
        index = node.select_arm(self.exploration_constant)
        if index is None:
            return
        score = enhanced_score(state, player_id, node.arms[index].action, situation)
        node.record(index, score)

    def evaluate_action(self, state: StateSnapshot, player_id: int, action: Action) -> float:
        """Heuristic score of one action (no situational bonus)."""
        return heuristic_score(StateSnapshot.coerce(state), player_id, action)

    def evaluate_action_enhanced(
        self,
        state: StateSnapshot,
        player_id: int,
        action: Action,
        situation: Optional[SituationSummary] = None,
    ) -> float:
        """Heuristic score plus the situational bonus."""
        state = StateSnapshot.coerce(state)
        if situation is None:
            situation = evaluate_situation(state, player_id)
        return enhanced_score(state, player_id, action, situation)

    def validate_action(
        self, state: StateSnapshot, player_id: int, action: Action, threshold: float = 0.5
    ) -> bool:
        """Whether the heuristic score of ``action`` meets ``threshold``."""
        return self.evaluate_action(state, player_id, action) >= threshold
