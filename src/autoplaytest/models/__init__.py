"""Playtesting data models.

This module exports the action union and the read-only state snapshot.
"""

from .actions import (
    Action,
    ActionBase,
    ArmyAction,
    ArmyOrder,
    BuildBuilding,
    BuildingType,
    BuildUnit,
    GatherResources,
    Research,
    TimeHorizon,
    UnitType,
    action_kind,
    format_action_for_display,
    parse_action,
)
from .state import (
    BuildingSnapshot,
    MapInfo,
    PlayerSnapshot,
    StateSnapshot,
    UnitSnapshot,
    army_size,
    has_building,
    total_cost,
    worker_count,
)

__all__ = [
    # Enums
    "UnitType",
    "BuildingType",
    "TimeHorizon",
    "ArmyOrder",
    # Action variants
    "Action",
    "ActionBase",
    "BuildUnit",
    "BuildBuilding",
    "ArmyAction",
    "GatherResources",
    "Research",
    # Action functions
    "action_kind",
    "format_action_for_display",
    "parse_action",
    # State models
    "StateSnapshot",
    "PlayerSnapshot",
    "UnitSnapshot",
    "BuildingSnapshot",
    "MapInfo",
    # State functions
    "army_size",
    "has_building",
    "total_cost",
    "worker_count",
]
