"""Procedural personas for automated playtesting.

Eight fixed archetypes reweight the same planner into distinct play styles.
All personas implement the Persona interface.
"""

from autoplaytest.personas.base import (
    PERSONA_DESCRIPTIONS,
    PERSONA_DISPLAY_NAMES,
    Persona,
    PersonaTraits,
    PersonaType,
)
from autoplaytest.personas.catalog import (
    DEFAULT_PERSONA_TYPE,
    PERSONA_TRAITS,
    create_all,
    create_persona,
    create_random,
    list_persona_types,
    resolve_persona_type,
)

__all__ = [
    # Base classes and types
    "Persona",
    "PersonaTraits",
    "PersonaType",
    "PERSONA_DISPLAY_NAMES",
    "PERSONA_DESCRIPTIONS",
    # Catalog
    "PERSONA_TRAITS",
    "DEFAULT_PERSONA_TYPE",
    # Factory functions
    "create_persona",
    "create_all",
    "create_random",
    "list_persona_types",
    "resolve_persona_type",
]
