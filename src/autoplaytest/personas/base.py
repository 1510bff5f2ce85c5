"""Procedural persona interface.

A persona is a fixed trait vector that reweights the same underlying
decision algorithm. It contributes in two places:

1. ``evaluate_action`` scores candidates from the persona's perspective
   (category baseline scaled by trait weights, times a hint-driven modifier)
2. ``exploration_constant`` and ``rollout_count`` reshape the planner's
   bandit search, so one search algorithm yields different play styles
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from autoplaytest.config import DEFAULT_EXPLORATION_CONSTANT
from autoplaytest.evaluation.situation import SituationSummary
from autoplaytest.models.actions import (
    Action,
    ArmyAction,
    BuildBuilding,
    BuildUnit,
    Research,
    TimeHorizon,
)
from autoplaytest.models.state import StateSnapshot, army_size, worker_count


class PersonaType(str, Enum):
    """The eight persona archetypes."""

    EFFICIENCY_EXPERT = "efficiency_expert"
    EXPLORER = "explorer"
    CAUTIOUS_NAVIGATOR = "cautious_navigator"
    SOCIAL_NAVIGATOR = "social_navigator"
    ADVENTUROUS_PLAYER = "adventurous_player"
    AGGRESSIVE_RUSHER = "aggressive_rusher"
    DEFENSIVE_TURTLER = "defensive_turtler"
    TECH_FOCUSED = "tech_focused"


PERSONA_DISPLAY_NAMES: dict[PersonaType, str] = {
    PersonaType.EFFICIENCY_EXPERT: "Efficiency Expert",
    PersonaType.EXPLORER: "Explorer",
    PersonaType.CAUTIOUS_NAVIGATOR: "Cautious Navigator",
    PersonaType.SOCIAL_NAVIGATOR: "Social Navigator",
    PersonaType.ADVENTUROUS_PLAYER: "Adventurous Player",
    PersonaType.AGGRESSIVE_RUSHER: "Aggressive Rusher",
    PersonaType.DEFENSIVE_TURTLER: "Defensive Turtler",
    PersonaType.TECH_FOCUSED: "Tech Focused",
}

PERSONA_DESCRIPTIONS: dict[PersonaType, str] = {
    PersonaType.EFFICIENCY_EXPERT: "Pursues shortest paths and maximum score accumulation. Optimizes resource usage.",
    PersonaType.EXPLORER: "Seeks novel strategies and detours. Prefers exploring unknown areas.",
    PersonaType.CAUTIOUS_NAVIGATOR: "Prioritizes risk avoidance. Defensive play style.",
    PersonaType.SOCIAL_NAVIGATOR: "Prefers populated routes and cooperative play patterns.",
    PersonaType.ADVENTUROUS_PLAYER: "Embraces novel and challenging situations. High risk tolerance.",
    PersonaType.AGGRESSIVE_RUSHER: "Focuses on early military aggression. Low patience.",
    PersonaType.DEFENSIVE_TURTLER: "Builds strong defenses before attacking. High patience.",
    PersonaType.TECH_FOCUSED: "Prioritizes technology research and upgrades.",
}

HIGH_EXPLORATION_CONSTANT = 2.0
LOW_EXPLORATION_CONSTANT = 0.8
THOROUGH_ROLLOUTS = 500
QUICK_ROLLOUTS = 100
DEFAULT_PERSONA_ROLLOUTS = 200


class PersonaTraits(BaseModel):
    """Trait weights for a persona, each in [0, 1].

    Core personality traits:
        aggressiveness: How likely to attack vs defend
        exploration_drive: Preference for exploring vs optimizing known areas
        risk_tolerance: Willingness to take risks
        patience: Preference for long-term vs short-term gains
        innovation_drive: Preference for novel strategies vs proven ones
        efficiency_focus: Focus on optimal resource usage
        social_preference: Preference for populated routes/cooperative play
        tech_focus: Preference for technology research

    Strategy weights:
        economy_weight, military_weight, expansion_weight, research_weight
    """

    model_config = ConfigDict(frozen=True)

    aggressiveness: float = Field(ge=0.0, le=1.0)
    exploration_drive: float = Field(ge=0.0, le=1.0)
    risk_tolerance: float = Field(ge=0.0, le=1.0)
    patience: float = Field(ge=0.0, le=1.0)
    innovation_drive: float = Field(ge=0.0, le=1.0)
    efficiency_focus: float = Field(ge=0.0, le=1.0)
    social_preference: float = Field(ge=0.0, le=1.0)
    tech_focus: float = Field(ge=0.0, le=1.0)
    economy_weight: float = Field(ge=0.0, le=1.0)
    military_weight: float = Field(ge=0.0, le=1.0)
    expansion_weight: float = Field(ge=0.0, le=1.0)
    research_weight: float = Field(ge=0.0, le=1.0)


class Persona:
    """A play-style archetype applied on top of the planner."""

    def __init__(self, persona_type: PersonaType, traits: PersonaTraits):
        self.type = persona_type
        self.traits = traits
        self.name = PERSONA_DISPLAY_NAMES.get(persona_type, "Unknown Persona")
        self.description = PERSONA_DESCRIPTIONS.get(persona_type, "Unknown persona description")

    def __repr__(self) -> str:
        return f"Persona({self.type.value!r})"

    def evaluate_action(
        self,
        state: StateSnapshot,
        player_id: int,
        action: Action,
        situation: Optional[SituationSummary] = None,
    ) -> float:
        """Score an action from this persona's perspective, in [0, 1]."""
        state = StateSnapshot.coerce(state)
        base = self.base_action_score(state, player_id, action)
        return max(0.0, min(1.0, base * self.action_modifier(action, situation)))

    def base_action_score(self, state: StateSnapshot, player_id: int, action: Action) -> float:
        """Category baseline scaled by the matching trait weight."""
        if state.player(player_id) is None:
            return 0.0

        t = self.traits
        score = 0.5

        if isinstance(action, BuildUnit):
            if action.is_worker:
                workers = worker_count(state, player_id)
                score = 0.8 if workers < 8 else (0.5 if workers < 12 else 0.2)
                score *= t.economy_weight
            else:
                score = 0.6 + (0.2 if army_size(state, player_id) < 5 else 0.0)
                score *= t.military_weight
                if t.aggressiveness > 0.6:
                    score *= 1.3
        elif isinstance(action, BuildBuilding) and action.is_expansion:
            score = 0.7 * t.expansion_weight
            if t.exploration_drive > 0.6:
                score *= 1.2
        elif isinstance(action, Research):
            score = 0.6 * t.research_weight * t.tech_focus
        elif isinstance(action, ArmyAction):
            if action.is_attack:
                score = t.aggressiveness * 0.9 * t.military_weight
            else:
                score = (1 - t.aggressiveness) * 0.7 * t.military_weight

        return max(0.0, min(1.0, score))

    def action_modifier(self, action: Action, situation: Optional[SituationSummary] = None) -> float:
        """Multiplier from the action's hints and the current threat level."""
        t = self.traits
        modifier = 1.0

        if action.risk_level > 0.5:
            modifier *= 0.5 + t.risk_tolerance

        if action.time_horizon == TimeHorizon.LONG:
            modifier *= 0.7 + t.patience * 0.3
        elif action.time_horizon == TimeHorizon.SHORT:
            modifier *= 0.7 + (1 - t.patience) * 0.3

        if action.novelty > 0.5:
            modifier *= 0.6 + t.innovation_drive * 0.4

        if action.efficiency > 0.7:
            modifier *= 0.7 + t.efficiency_focus * 0.3

        if situation is not None:
            threat = situation.threat.level
            if threat > 0.5 and t.risk_tolerance < 0.3:
                # Cautious personas lean in when threatened
                modifier *= 1.2
            elif threat < 0.3 and t.aggressiveness > 0.7:
                modifier *= 1.2

        return modifier

    def exploration_constant(self) -> float:
        """UCB1 exploration constant for this persona's searches."""
        if self.traits.exploration_drive > 0.7 or self.traits.innovation_drive > 0.7:
            return HIGH_EXPLORATION_CONSTANT
        if self.traits.efficiency_focus > 0.7:
            return LOW_EXPLORATION_CONSTANT
        return DEFAULT_EXPLORATION_CONSTANT

    def rollout_count(self) -> int:
        """Bandit rollouts per decision for this persona."""
        if self.traits.efficiency_focus > 0.7:
            return THOROUGH_ROLLOUTS
        if self.traits.innovation_drive > 0.7:
            return QUICK_ROLLOUTS
        return DEFAULT_PERSONA_ROLLOUTS
