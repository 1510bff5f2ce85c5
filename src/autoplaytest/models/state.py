"""State snapshot models.

The simulation owns the game; the core only reads snapshots of it. Every
field has a neutral default so that partial or loosely shaped snapshots
still validate: missing (or null) resources read as zero, missing hit points
read as full health, a missing map reads as "no map information".

Both snake_case and camelCase keys are accepted (``player_id`` or
``playerId``, ``max_hp`` or ``maxHp``, ``game_over`` or ``gameOver``).
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from autoplaytest.models.actions import UnitType

# Player-level keys that some simulations keep outside the resources mapping
_LEGACY_RESOURCE_KEYS = ("minerals", "gas", "ore", "energy", "biomass", "data")


def _normalize_type(v: Any) -> str:
    if v is None:
        return ""
    if hasattr(v, "value"):
        v = v.value
    return str(v).lower()


def total_cost(cost: Mapping[str, float] | float | None) -> float:
    """Sum a cost mapping (``{"minerals": 150, "gas": 100}``) into one number."""
    if cost is None:
        return 0.0
    if isinstance(cost, (int, float)):
        return float(cost)
    return float(sum(v or 0.0 for v in cost.values()))


class SnapshotModel(BaseModel):
    """Base for snapshot models: explicit nulls read as the field default."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data


def _zero_missing(v: Any) -> Any:
    if isinstance(v, Mapping):
        return {k: (val or 0.0) for k, val in v.items()}
    return v or {}


class MapInfo(SnapshotModel):
    """Map dimensions."""

    width: float = Field(default=64.0)
    height: float = Field(default=64.0)


class PlayerSnapshot(SnapshotModel):
    """Per-player state.

    Attributes:
        id: Player identifier
        resources: Banked resources by pool name
        researched_techs: Identifiers of completed research
    """

    id: int = Field(default=0)
    resources: dict[str, float] = Field(default_factory=dict)
    researched_techs: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_resources(cls, data: Any) -> Any:
        """Move top-level ``minerals``/``gas`` keys into ``resources``."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        resources = dict(data.get("resources") or {})
        for key in _LEGACY_RESOURCE_KEYS:
            if key in data and key not in resources:
                resources[key] = data.pop(key)
        data["resources"] = resources
        return data

    @field_validator("resources", mode="before")
    @classmethod
    def drop_missing_values(cls, v: Any) -> Any:
        """Treat ``None`` pools as empty."""
        return _zero_missing(v)

    @field_validator("researched_techs", mode="before")
    @classmethod
    def accept_any_collection(cls, v: Any) -> Any:
        """Accept sets and other iterables of tech ids."""
        if v is None:
            return []
        if isinstance(v, (set, frozenset, tuple)):
            return sorted(str(t) for t in v)
        return v

    @property
    def minerals(self) -> float:
        """Primary resource (``minerals``, falling back to ``ore``)."""
        return self.resources.get("minerals") or self.resources.get("ore") or 0.0

    @property
    def gas(self) -> float:
        """Secondary resource (``gas``, falling back to ``energy``)."""
        return self.resources.get("gas") or self.resources.get("energy") or 0.0

    @property
    def total_resources(self) -> float:
        """All banked resources across every pool."""
        return float(sum(self.resources.values()))


class UnitSnapshot(SnapshotModel):
    """A unit on the map."""

    id: int | str | None = Field(default=None)
    player_id: int = Field(default=0)
    type: str = Field(default="")
    hp: float = Field(default=1.0)
    max_hp: float = Field(default=1.0)
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    attack: float = Field(default=0.0)
    defense: float = Field(default=0.0)
    cost: dict[str, float] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        return _normalize_type(v)

    @field_validator("cost", mode="before")
    @classmethod
    def zero_missing_cost(cls, v: Any) -> Any:
        return _zero_missing(v)

    @property
    def is_worker(self) -> bool:
        return self.type == UnitType.WORKER.value

    @property
    def is_alive(self) -> bool:
        return self.hp > 0


class BuildingSnapshot(SnapshotModel):
    """A building on the map."""

    id: int | str | None = Field(default=None)
    player_id: int = Field(default=0)
    type: str = Field(default="")
    hp: float = Field(default=1.0)
    max_hp: float = Field(default=1.0)
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    is_complete: bool = Field(default=True)
    cost: dict[str, float] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        return _normalize_type(v)

    @field_validator("cost", mode="before")
    @classmethod
    def zero_missing_cost(cls, v: Any) -> Any:
        return _zero_missing(v)


class StateSnapshot(SnapshotModel):
    """Complete snapshot of the simulation at one tick.

    Attributes:
        id: Game identifier (optional)
        players: Players keyed by id
        units: Every unit on the map, all players
        buildings: Every building on the map, all players
        map: Map dimensions (None when the simulation exposes no map)
        tick: Simulation tick counter
        winner: Winning player id once decided
        game_over: Whether the simulation reports a terminal state
        tech_available: Whether research actions exist in this game
    """

    id: str | None = Field(default=None)
    players: dict[int, PlayerSnapshot] = Field(default_factory=dict)
    units: list[UnitSnapshot] = Field(default_factory=list)
    buildings: list[BuildingSnapshot] = Field(default_factory=list)
    map: MapInfo | None = Field(default=None)
    tick: int = Field(default=0, ge=0)
    winner: int | None = Field(default=None)
    game_over: bool = Field(default=False)
    tech_available: bool = Field(default=False)

    @field_validator("players", mode="before")
    @classmethod
    def players_from_list(cls, v: Any) -> Any:
        """Accept a list of players as well as a mapping keyed by id."""
        if v is None:
            return {}
        if isinstance(v, (list, tuple)):
            keyed = {}
            for player in v:
                pid = (player.get("id") or 0) if isinstance(player, Mapping) else player.id
                keyed[pid] = player
            return keyed
        return v

    @field_validator("units", "buildings", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return v or []

    @model_validator(mode="after")
    def fill_player_ids(self) -> "StateSnapshot":
        """Make each player's ``id`` agree with its key."""
        for pid, player in self.players.items():
            if player.id != pid:
                player.id = pid
        return self

    @classmethod
    def coerce(cls, obj: "StateSnapshot | Mapping[str, Any]") -> "StateSnapshot":
        """Return ``obj`` if it already is a snapshot, else validate it."""
        if isinstance(obj, StateSnapshot):
            return obj
        return cls.model_validate(obj)

    def player(self, player_id: int) -> PlayerSnapshot | None:
        """Get a player, or None if absent."""
        return self.players.get(player_id)

    def opponents(self, player_id: int) -> list[PlayerSnapshot]:
        """All players other than ``player_id``."""
        return [p for pid, p in self.players.items() if pid != player_id]

    def units_of(self, player_id: int) -> list[UnitSnapshot]:
        return [u for u in self.units if u.player_id == player_id]

    def enemy_units(self, player_id: int) -> list[UnitSnapshot]:
        return [u for u in self.units if u.player_id != player_id]

    def buildings_of(self, player_id: int, complete_only: bool = False) -> list[BuildingSnapshot]:
        return [
            b
            for b in self.buildings
            if b.player_id == player_id and (b.is_complete or not complete_only)
        ]

    def enemy_buildings(self, player_id: int) -> list[BuildingSnapshot]:
        return [b for b in self.buildings if b.player_id != player_id]


def worker_count(state: StateSnapshot, player_id: int) -> int:
    """Number of workers owned by ``player_id``."""
    return sum(1 for u in state.units_of(player_id) if u.is_worker)


def army_size(state: StateSnapshot, player_id: int) -> int:
    """Number of non-worker units owned by ``player_id``."""
    return sum(1 for u in state.units_of(player_id) if not u.is_worker)


def has_building(
    state: StateSnapshot, player_id: int, building_type: str, complete_only: bool = True
) -> bool:
    """Whether ``player_id`` owns a building of ``building_type``."""
    return any(
        b.type == building_type for b in state.buildings_of(player_id, complete_only=complete_only)
    )
