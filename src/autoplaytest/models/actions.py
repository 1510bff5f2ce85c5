"""Action definitions for automated playtesting.

Actions form a closed tagged union discriminated on ``type``. Each variant
carries optional scoring hints (time horizon, risk, efficiency, novelty) that
only persona modifiers read; the planner and the simulation dispatch on the
concrete variant class.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class UnitType(str, Enum):
    """Unit types the planner knows how to value.

    Inherits from str for proper JSON serialization.
    """

    WORKER = "worker"
    SOLDIER = "soldier"
    TANK = "tank"
    AIR_UNIT = "air_unit"


class BuildingType(str, Enum):
    """Building types the planner knows how to value."""

    BASE = "base"
    BARRACKS = "barracks"
    FACTORY = "factory"
    AIRFIELD = "airfield"


class TimeHorizon(str, Enum):
    """How far ahead an action pays off."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class ArmyOrder(str, Enum):
    """Orders that can be given to the whole army."""

    ATTACK = "attack"
    DEFEND = "defend"


class ActionBase(BaseModel):
    """Fields shared by every action variant.

    Attributes:
        time_horizon: Payoff horizon hint (None when not applicable)
        risk_level: Risk hint in [0, 1]
        efficiency: Resource-efficiency hint in [0, 1]
        novelty: Novelty hint in [0, 1]
    """

    model_config = ConfigDict(frozen=True)

    time_horizon: TimeHorizon | None = Field(default=None)
    risk_level: float = Field(default=0.0, ge=0.0, le=1.0)
    efficiency: float = Field(default=0.0, ge=0.0, le=1.0)
    novelty: float = Field(default=0.0, ge=0.0, le=1.0)


class BuildUnit(ActionBase):
    """Train a unit of the given type."""

    type: Literal["build_unit"] = "build_unit"
    unit_type: str
    cost: float = Field(default=0.0, ge=0.0)

    @field_validator("unit_type", mode="before")
    @classmethod
    def normalize_unit_type(cls, v: Any) -> str:
        """Store unit types lower-cased ("WORKER" and "worker" are the same)."""
        if isinstance(v, Enum):
            v = v.value
        return str(v).lower()

    @property
    def is_worker(self) -> bool:
        return self.unit_type == UnitType.WORKER.value


class BuildBuilding(ActionBase):
    """Construct a building of the given type."""

    type: Literal["build_building"] = "build_building"
    building_type: str
    cost: float = Field(default=0.0, ge=0.0)

    @field_validator("building_type", mode="before")
    @classmethod
    def normalize_building_type(cls, v: Any) -> str:
        """Store building types lower-cased."""
        if isinstance(v, Enum):
            v = v.value
        return str(v).lower()

    @property
    def is_expansion(self) -> bool:
        return self.building_type == BuildingType.BASE.value


class ArmyAction(ActionBase):
    """Send the whole army to attack or hold it home to defend."""

    type: Literal["army_action"] = "army_action"
    action: ArmyOrder
    army_size: int = Field(default=0, ge=0)

    @property
    def is_attack(self) -> bool:
        return self.action == ArmyOrder.ATTACK

    @property
    def is_defend(self) -> bool:
        return self.action == ArmyOrder.DEFEND


class GatherResources(ActionBase):
    """Put idle workers back on resource gathering."""

    type: Literal["gather_resources"] = "gather_resources"


class Research(ActionBase):
    """Start the next available research."""

    type: Literal["research"] = "research"


Action = Annotated[
    Union[BuildUnit, BuildBuilding, ArmyAction, GatherResources, Research],
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)


def parse_action(data: Any) -> Action:
    """Validate a mapping (or an existing action) into an action variant.

    Raises:
        pydantic.ValidationError: If ``type`` is missing or unknown
    """
    if isinstance(data, ActionBase):
        return data
    return _ACTION_ADAPTER.validate_python(data)


def action_kind(action: Action) -> str:
    """Coarse label used to group actions in traces and reports.

    Examples: ``build_unit:worker``, ``build_building:base``,
    ``army_action:attack``, ``research``.
    """
    if isinstance(action, BuildUnit):
        return f"build_unit:{action.unit_type}"
    if isinstance(action, BuildBuilding):
        return f"build_building:{action.building_type}"
    if isinstance(action, ArmyAction):
        return f"army_action:{action.action.value}"
    return action.type


def format_action_for_display(action: Action) -> str:
    """Format an action as a short human-readable string."""
    if isinstance(action, BuildUnit):
        return f"Build {action.unit_type} ({action.cost:.0f})"
    if isinstance(action, BuildBuilding):
        return f"Construct {action.building_type} ({action.cost:.0f})"
    if isinstance(action, ArmyAction):
        return f"Army {action.action.value} ({action.army_size} units)"
    if isinstance(action, GatherResources):
        return "Gather resources"
    return "Research"
