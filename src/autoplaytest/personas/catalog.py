"""The fixed persona catalog and its factory functions.

Trait vectors are immutable; ``create_persona`` wraps the shared vector in a
fresh ``Persona`` each call.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from autoplaytest.personas.base import Persona, PersonaTraits, PersonaType

logger = logging.getLogger(__name__)

DEFAULT_PERSONA_TYPE = PersonaType.EFFICIENCY_EXPERT

PERSONA_TRAITS: dict[PersonaType, PersonaTraits] = {
    PersonaType.EFFICIENCY_EXPERT: PersonaTraits(
        aggressiveness=0.4,
        exploration_drive=0.2,
        risk_tolerance=0.3,
        patience=0.8,
        innovation_drive=0.2,
        efficiency_focus=0.9,
        social_preference=0.3,
        tech_focus=0.5,
        economy_weight=0.6,
        military_weight=0.3,
        expansion_weight=0.4,
        research_weight=0.3,
    ),
    PersonaType.EXPLORER: PersonaTraits(
        aggressiveness=0.5,
        exploration_drive=0.9,
        risk_tolerance=0.7,
        patience=0.4,
        innovation_drive=0.8,
        efficiency_focus=0.3,
        social_preference=0.5,
        tech_focus=0.4,
        economy_weight=0.3,
        military_weight=0.4,
        expansion_weight=0.8,
        research_weight=0.3,
    ),
    PersonaType.CAUTIOUS_NAVIGATOR: PersonaTraits(
        aggressiveness=0.2,
        exploration_drive=0.3,
        risk_tolerance=0.1,
        patience=0.9,
        innovation_drive=0.2,
        efficiency_focus=0.6,
        social_preference=0.4,
        tech_focus=0.5,
        economy_weight=0.5,
        military_weight=0.2,
        expansion_weight=0.3,
        research_weight=0.4,
    ),
    PersonaType.SOCIAL_NAVIGATOR: PersonaTraits(
        aggressiveness=0.4,
        exploration_drive=0.5,
        risk_tolerance=0.5,
        patience=0.6,
        innovation_drive=0.4,
        efficiency_focus=0.4,
        social_preference=0.9,
        tech_focus=0.4,
        economy_weight=0.4,
        military_weight=0.4,
        expansion_weight=0.6,
        research_weight=0.3,
    ),
    PersonaType.ADVENTUROUS_PLAYER: PersonaTraits(
        aggressiveness=0.7,
        exploration_drive=0.8,
        risk_tolerance=0.9,
        patience=0.3,
        innovation_drive=0.9,
        efficiency_focus=0.2,
        social_preference=0.5,
        tech_focus=0.4,
        economy_weight=0.3,
        military_weight=0.6,
        expansion_weight=0.7,
        research_weight=0.3,
    ),
    PersonaType.AGGRESSIVE_RUSHER: PersonaTraits(
        aggressiveness=0.95,
        exploration_drive=0.3,
        risk_tolerance=0.8,
        patience=0.1,
        innovation_drive=0.3,
        efficiency_focus=0.4,
        social_preference=0.2,
        tech_focus=0.2,
        economy_weight=0.2,
        military_weight=0.9,
        expansion_weight=0.3,
        research_weight=0.1,
    ),
    PersonaType.DEFENSIVE_TURTLER: PersonaTraits(
        aggressiveness=0.1,
        exploration_drive=0.2,
        risk_tolerance=0.1,
        patience=0.95,
        innovation_drive=0.2,
        efficiency_focus=0.7,
        social_preference=0.3,
        tech_focus=0.6,
        economy_weight=0.6,
        military_weight=0.1,
        expansion_weight=0.2,
        research_weight=0.7,
    ),
    PersonaType.TECH_FOCUSED: PersonaTraits(
        aggressiveness=0.4,
        exploration_drive=0.4,
        risk_tolerance=0.5,
        patience=0.8,
        innovation_drive=0.6,
        efficiency_focus=0.6,
        social_preference=0.3,
        tech_focus=0.95,
        economy_weight=0.4,
        military_weight=0.3,
        expansion_weight=0.4,
        research_weight=0.9,
    ),
}


def resolve_persona_type(persona_type: PersonaType | str) -> PersonaType | None:
    """Normalize a persona name ("Aggressive Rusher", "aggressive-rusher", ...).

    Returns:
        The matching PersonaType, or None if the name is unknown
    """
    if isinstance(persona_type, PersonaType):
        return persona_type
    type_name = str(persona_type).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return PersonaType(type_name)
    except ValueError:
        return None


def create_persona(persona_type: PersonaType | str) -> Persona:
    """Create a persona by type.

    Unknown types fall back to the efficiency expert rather than raising.

    Args:
        persona_type: Persona type or its name

    Returns:
        Persona instance
    """
    resolved = resolve_persona_type(persona_type)
    if resolved is None:
        logger.warning(
            f"Unknown persona type {persona_type!r}, falling back to {DEFAULT_PERSONA_TYPE.value}"
        )
        resolved = DEFAULT_PERSONA_TYPE
    return Persona(resolved, PERSONA_TRAITS[resolved])


def create_all() -> list[Persona]:
    """Create one persona of every type, in catalog order."""
    return [create_persona(t) for t in PersonaType]


def create_random(seed: Optional[int] = None) -> Persona:
    """Create a persona of a randomly chosen type.

    Args:
        seed: Optional seed; the same seed always yields the same type
    """
    rng = random.Random(seed)
    return create_persona(rng.choice(list(PersonaType)))


def list_persona_types() -> list[str]:
    """Names of all persona types, in catalog order."""
    return [t.value for t in PersonaType]
