"""Situation evaluation for playtesting agents.

Turns a raw state snapshot into a structured summary of seven assessments
(resources, military, economy, map, threat, tech, timing). Evaluation is a
total, deterministic function of the snapshot: missing players, units or map
information read as neutral values instead of raising.

Key formulas:
- Advantage = (mine - enemy) / (mine + enemy); 1.0 if only I have any
- Military strength = sum(unit_value * hp / max_hp) + 0.3 * building strength
- Worker saturation = min(1, workers / (8 * bases))
- Threat level = min(1, sum(threat strengths) / 100)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Literal

from autoplaytest.models.actions import BuildingType, UnitType
from autoplaytest.models.state import (
    BuildingSnapshot,
    PlayerSnapshot,
    StateSnapshot,
    UnitSnapshot,
)

UNIT_VALUES: dict[str, float] = {
    UnitType.WORKER.value: 5.0,
    UnitType.SOLDIER.value: 15.0,
    UnitType.TANK.value: 40.0,
    UnitType.AIR_UNIT.value: 25.0,
}
DEFAULT_UNIT_VALUE = 10.0
BUILDING_DEFENSE_VALUE = 20.0
BUILDING_STRENGTH_WEIGHT = 0.3

WORKERS_PER_BASE = 8
INCOME_PER_WORKER = 2.0
EXPANSION_MINERALS = 400.0
MAX_BASES = 3
PRODUCTION_BUILDINGS = (
    BuildingType.BARRACKS.value,
    BuildingType.FACTORY.value,
    BuildingType.AIRFIELD.value,
)

THREAT_RADIUS = 30.0
IMMEDIATE_THREAT_DISTANCE = 20.0
ARMY_DISADVANTAGE_RATIO = 1.5
THREAT_NORMALIZER = 100.0

EARLY_GAME_TICKS = 1000
MID_GAME_TICKS = 5000
FULL_GAME_TICKS = 10000

Phase = Literal["early", "mid", "late"]


# =============================================================================
# Assessment records
# =============================================================================


@dataclass(frozen=True)
class ResourceAssessment:
    advantage: float = 0.0
    my_total: float = 0.0
    enemy_total: float = 0.0
    minerals: float = 0.0
    gas: float = 0.0
    income: float = 0.0


@dataclass(frozen=True)
class Composition:
    workers: int = 0
    soldiers: int = 0
    tanks: int = 0
    air: int = 0
    total: int = 0


@dataclass(frozen=True)
class MilitaryAssessment:
    advantage: float = 0.0
    my_strength: float = 0.0
    enemy_strength: float = 0.0
    unit_count: int = 0
    enemy_unit_count: int = 0
    army_size: int = 0
    enemy_army_size: int = 0
    composition: Composition = field(default_factory=Composition)
    enemy_composition: Composition = field(default_factory=Composition)


@dataclass(frozen=True)
class EconomyAssessment:
    worker_count: int = 0
    base_count: int = 0
    production_count: int = 0
    saturation: float = 0.0
    income_rate: float = 0.0
    can_expand: bool = False


@dataclass(frozen=True)
class MapAssessment:
    control: float = 0.5
    my_spread: float = 0.0
    enemy_spread: float = 0.0
    expansion_opportunities: int = 0


@dataclass(frozen=True)
class Threat:
    """A single detected threat.

    Attributes:
        kind: ``base_under_attack`` or ``army_disadvantage``
        strength: Contribution to the overall threat level (before /100)
        unit_count: Enemy units involved (base threats only)
        distance: Closest enemy distance to the base (base threats only)
        location: Base coordinates (base threats only)
        ratio: Enemy/own army ratio (army threats only)
    """

    kind: str
    strength: float
    unit_count: int = 0
    distance: float | None = None
    location: tuple[float, float] | None = None
    ratio: float | None = None


@dataclass(frozen=True)
class ThreatAssessment:
    level: float = 0.0
    threats: tuple[Threat, ...] = ()

    @property
    def immediate(self) -> tuple[Threat, ...]:
        """Threats with enemies closer than 20 to a base."""
        return tuple(
            t for t in self.threats if t.distance is not None and t.distance < IMMEDIATE_THREAT_DISTANCE
        )

    @property
    def strategic(self) -> tuple[Threat, ...]:
        """Everything that is not immediate."""
        return tuple(
            t for t in self.threats if t.distance is None or t.distance >= IMMEDIATE_THREAT_DISTANCE
        )


@dataclass(frozen=True)
class TechAssessment:
    advantage: float = 0.0
    my_tech: int = 0
    enemy_tech: int = 0
    can_research: bool = False


@dataclass(frozen=True)
class TimingAssessment:
    tick: int = 0
    phase: Phase = "early"
    progress: float = 0.0


@dataclass(frozen=True)
class SituationSummary:
    """Structured situational summary for one player at one tick."""

    resources: ResourceAssessment = field(default_factory=ResourceAssessment)
    military: MilitaryAssessment = field(default_factory=MilitaryAssessment)
    economy: EconomyAssessment = field(default_factory=EconomyAssessment)
    map: MapAssessment = field(default_factory=MapAssessment)
    threat: ThreatAssessment = field(default_factory=ThreatAssessment)
    tech: TechAssessment = field(default_factory=TechAssessment)
    timing: TimingAssessment = field(default_factory=TimingAssessment)


# =============================================================================
# Helpers
# =============================================================================


def normalized_advantage(mine: float, theirs: float) -> float:
    """(mine - theirs) / (mine + theirs), 1.0 if only ``mine`` is positive."""
    if theirs > 0:
        return (mine - theirs) / (mine + theirs)
    return 1.0 if mine > 0 else 0.0


def unit_value(unit_type: str) -> float:
    """Base combat value for a unit type."""
    return UNIT_VALUES.get(unit_type, DEFAULT_UNIT_VALUE)


def military_strength(units: Iterable[UnitSnapshot]) -> float:
    """Sum of unit values weighted by remaining health. Dead units count 0."""
    total = 0.0
    for unit in units:
        if not unit.is_alive:
            continue
        hp_ratio = unit.hp / (unit.max_hp or 1.0)
        total += unit_value(unit.type) * hp_ratio
    return total


def building_strength(buildings: Iterable[BuildingSnapshot]) -> float:
    """Defensive value of buildings weighted by remaining health."""
    total = 0.0
    for building in buildings:
        if building.hp <= 0:
            continue
        total += BUILDING_DEFENSE_VALUE * building.hp / (building.max_hp or 1.0)
    return total


def analyze_composition(units: list[UnitSnapshot]) -> Composition:
    counts = {UnitType.WORKER.value: 0, UnitType.SOLDIER.value: 0, UnitType.TANK.value: 0, UnitType.AIR_UNIT.value: 0}
    for unit in units:
        if unit.type in counts:
            counts[unit.type] += 1
    return Composition(
        workers=counts[UnitType.WORKER.value],
        soldiers=counts[UnitType.SOLDIER.value],
        tanks=counts[UnitType.TANK.value],
        air=counts[UnitType.AIR_UNIT.value],
        total=len(units),
    )


def calculate_spread(units: list[UnitSnapshot]) -> float:
    """Spatial spread: sqrt(bounding-box area) scaled by unit count."""
    if not units:
        return 0.0
    xs = [u.x for u in units]
    ys = [u.y for u in units]
    width = max(xs) - min(xs)
    height = max(ys) - min(ys)
    return math.sqrt(width * height) * len(units)


def estimate_income(workers: int) -> float:
    """Rough income per tick from the worker count."""
    return workers * INCOME_PER_WORKER


# =============================================================================
# Sub-evaluations
# =============================================================================


def evaluate_resources(
    me: PlayerSnapshot | None, enemies: list[PlayerSnapshot], workers: int
) -> ResourceAssessment:
    minerals = me.minerals if me else 0.0
    gas = me.gas if me else 0.0
    my_total = minerals + gas
    enemy_total = sum(p.minerals + p.gas for p in enemies) / max(len(enemies), 1)
    return ResourceAssessment(
        advantage=normalized_advantage(my_total, enemy_total),
        my_total=my_total,
        enemy_total=enemy_total,
        minerals=minerals,
        gas=gas,
        income=estimate_income(workers),
    )


def evaluate_military(
    my_units: list[UnitSnapshot],
    enemy_units: list[UnitSnapshot],
    my_buildings: list[BuildingSnapshot],
    enemy_buildings: list[BuildingSnapshot],
) -> MilitaryAssessment:
    total_mine = military_strength(my_units) + building_strength(my_buildings) * BUILDING_STRENGTH_WEIGHT
    total_enemy = military_strength(enemy_units) + building_strength(enemy_buildings) * BUILDING_STRENGTH_WEIGHT
    return MilitaryAssessment(
        advantage=normalized_advantage(total_mine, total_enemy),
        my_strength=total_mine,
        enemy_strength=total_enemy,
        unit_count=len(my_units),
        enemy_unit_count=len(enemy_units),
        army_size=sum(1 for u in my_units if not u.is_worker),
        enemy_army_size=sum(1 for u in enemy_units if not u.is_worker),
        composition=analyze_composition(my_units),
        enemy_composition=analyze_composition(enemy_units),
    )


def evaluate_economy(
    my_units: list[UnitSnapshot], my_buildings: list[BuildingSnapshot], me: PlayerSnapshot | None
) -> EconomyAssessment:
    workers = sum(1 for u in my_units if u.is_worker)
    bases = sum(1 for b in my_buildings if b.type == BuildingType.BASE.value)
    production = sum(1 for b in my_buildings if b.type in PRODUCTION_BUILDINGS)
    saturation = min(workers / max(bases * WORKERS_PER_BASE, 1), 1.0)
    minerals = me.minerals if me else 0.0
    return EconomyAssessment(
        worker_count=workers,
        base_count=bases,
        production_count=production,
        saturation=saturation,
        income_rate=estimate_income(workers),
        can_expand=minerals >= EXPANSION_MINERALS and bases < MAX_BASES,
    )


def evaluate_map_control(
    state: StateSnapshot,
    my_units: list[UnitSnapshot],
    enemy_units: list[UnitSnapshot],
    my_buildings: list[BuildingSnapshot],
) -> MapAssessment:
    bases = sum(1 for b in my_buildings if b.type == BuildingType.BASE.value)
    opportunities = max(0, MAX_BASES - bases)
    if state.map is None:
        return MapAssessment(control=0.5, expansion_opportunities=opportunities)

    my_spread = calculate_spread(my_units)
    enemy_spread = calculate_spread(enemy_units)
    total = my_spread + enemy_spread
    return MapAssessment(
        control=my_spread / total if total > 0 else 0.5,
        my_spread=my_spread,
        enemy_spread=enemy_spread,
        expansion_opportunities=opportunities,
    )


def evaluate_threats(
    my_units: list[UnitSnapshot],
    enemy_units: list[UnitSnapshot],
    my_buildings: list[BuildingSnapshot],
) -> ThreatAssessment:
    threats: list[Threat] = []

    for base in my_buildings:
        if base.type != BuildingType.BASE.value:
            continue
        distances = [
            (enemy, math.hypot(enemy.x - base.x, enemy.y - base.y)) for enemy in enemy_units
        ]
        nearby = [(enemy, d) for enemy, d in distances if d < THREAT_RADIUS]
        if not nearby:
            continue
        threats.append(
            Threat(
                kind="base_under_attack",
                strength=sum(unit_value(enemy.type) for enemy, _ in nearby),
                unit_count=len(nearby),
                distance=min(d for _, d in nearby),
                location=(base.x, base.y),
            )
        )

    enemy_army = sum(1 for u in enemy_units if not u.is_worker)
    my_army = sum(1 for u in my_units if not u.is_worker)
    if enemy_army > my_army * ARMY_DISADVANTAGE_RATIO:
        threats.append(
            Threat(
                kind="army_disadvantage",
                strength=float(enemy_army - my_army),
                ratio=enemy_army / max(my_army, 1),
            )
        )

    level = min(1.0, sum(t.strength for t in threats) / THREAT_NORMALIZER) if threats else 0.0
    return ThreatAssessment(level=level, threats=tuple(threats))


def evaluate_tech(me: PlayerSnapshot | None, enemies: list[PlayerSnapshot]) -> TechAssessment:
    my_tech = len(me.researched_techs) if me else 0
    enemy_tech = max((len(p.researched_techs) for p in enemies), default=0)
    minerals = me.minerals if me else 0.0
    gas = me.gas if me else 0.0
    return TechAssessment(
        advantage=(my_tech - enemy_tech) / max(my_tech + enemy_tech, 1),
        my_tech=my_tech,
        enemy_tech=enemy_tech,
        can_research=minerals >= 200 and gas >= 100,
    )


def evaluate_timing(tick: int) -> TimingAssessment:
    if tick < EARLY_GAME_TICKS:
        phase: Phase = "early"
    elif tick < MID_GAME_TICKS:
        phase = "mid"
    else:
        phase = "late"
    return TimingAssessment(tick=tick, phase=phase, progress=min(tick / FULL_GAME_TICKS, 1.0))


def evaluate_situation(state: StateSnapshot, player_id: int) -> SituationSummary:
    """Evaluate the complete situation for ``player_id``.

    Args:
        state: Snapshot to read (a mapping is validated into one)
        player_id: Player whose perspective to take

    Returns:
        SituationSummary with all seven assessments
    """
    state = StateSnapshot.coerce(state)
    me = state.player(player_id)
    enemies = state.opponents(player_id)

    my_units = state.units_of(player_id)
    enemy_units = state.enemy_units(player_id)
    my_buildings = state.buildings_of(player_id)
    enemy_buildings = state.enemy_buildings(player_id)
    workers = sum(1 for u in my_units if u.is_worker)

    return SituationSummary(
        resources=evaluate_resources(me, enemies, workers),
        military=evaluate_military(my_units, enemy_units, my_buildings, enemy_buildings),
        economy=evaluate_economy(my_units, my_buildings, me),
        map=evaluate_map_control(state, my_units, enemy_units, my_buildings),
        threat=evaluate_threats(my_units, enemy_units, my_buildings),
        tech=evaluate_tech(me, enemies),
        timing=evaluate_timing(state.tick),
    )
