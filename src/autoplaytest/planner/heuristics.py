"""Heuristic action evaluation shared by the planner and the agent.

Three layers, each a pure function of the snapshot:

1. ``base_action_score``: type-specific baseline discounted by affordability
2. ``heuristic_score``: baseline + 0.3 * ``future_value``, clamped to [0, 1]
3. ``enhanced_score``: heuristic + persona-agnostic ``situational_bonus``

``legal_actions`` builds the candidate list a player can choose from, with
the scoring hints persona modifiers read.
"""

from __future__ import annotations

from autoplaytest.evaluation.situation import SituationSummary, estimate_income
from autoplaytest.models.actions import (
    Action,
    ArmyAction,
    ArmyOrder,
    BuildBuilding,
    BuildingType,
    BuildUnit,
    GatherResources,
    Research,
    TimeHorizon,
    UnitType,
)
from autoplaytest.models.state import StateSnapshot, army_size, has_building, worker_count

FUTURE_VALUE_WEIGHT = 0.3
UNAFFORDABLE_DISCOUNT = 0.5
LOW_MINERALS_WORKER_DISCOUNT = 0.7

# Action costs offered by legal_actions
WORKER_COST = 50.0
SOLDIER_COST = 100.0
TANK_COST = 250.0
BARRACKS_COST = 100.0
FACTORY_COST = 200.0
BASE_COST = 400.0


def clamp(value: float, min_val: float = 0.0, max_val: float = 1.0) -> float:
    """Clamp a value to the specified range."""
    return max(min_val, min(max_val, value))


def _minerals(state: StateSnapshot, player_id: int) -> float:
    player = state.player(player_id)
    return player.minerals if player else 0.0


def _gas(state: StateSnapshot, player_id: int) -> float:
    player = state.player(player_id)
    return player.gas if player else 0.0


# =============================================================================
# Legal actions
# =============================================================================


def legal_actions(state: StateSnapshot, player_id: int) -> list[Action]:
    """List the actions ``player_id`` can take right now.

    Returns an empty list when the player is absent from the snapshot.
    """
    state = StateSnapshot.coerce(state)
    if state.player(player_id) is None:
        return []

    minerals = _minerals(state, player_id)
    gas = _gas(state, player_id)
    workers = worker_count(state, player_id)
    army = army_size(state, player_id)
    has_base = has_building(state, player_id, BuildingType.BASE.value)
    has_barracks = has_building(state, player_id, BuildingType.BARRACKS.value)
    has_factory = has_building(state, player_id, BuildingType.FACTORY.value)

    actions: list[Action] = []

    if workers > 0:
        actions.append(GatherResources())

    if has_base and minerals >= WORKER_COST:
        actions.append(
            BuildUnit(
                unit_type=UnitType.WORKER,
                cost=WORKER_COST,
                time_horizon=TimeHorizon.LONG,
                efficiency=0.8,
            )
        )

    if has_barracks and minerals >= SOLDIER_COST:
        actions.append(
            BuildUnit(
                unit_type=UnitType.SOLDIER,
                cost=SOLDIER_COST,
                time_horizon=TimeHorizon.SHORT,
                risk_level=0.3,
            )
        )

    if has_factory and minerals >= 150 and gas >= 100:
        actions.append(
            BuildUnit(
                unit_type=UnitType.TANK,
                cost=TANK_COST,
                time_horizon=TimeHorizon.MEDIUM,
                risk_level=0.2,
            )
        )

    if not has_barracks and minerals >= BARRACKS_COST:
        actions.append(
            BuildBuilding(
                building_type=BuildingType.BARRACKS,
                cost=BARRACKS_COST,
                time_horizon=TimeHorizon.MEDIUM,
                efficiency=0.7,
            )
        )

    if not has_factory and minerals >= 150 and gas >= 50:
        actions.append(
            BuildBuilding(
                building_type=BuildingType.FACTORY,
                cost=FACTORY_COST,
                time_horizon=TimeHorizon.LONG,
                efficiency=0.6,
            )
        )

    if minerals >= BASE_COST:
        actions.append(
            BuildBuilding(
                building_type=BuildingType.BASE,
                cost=BASE_COST,
                time_horizon=TimeHorizon.LONG,
                risk_level=0.5,
                novelty=0.6,
            )
        )

    if army > 0:
        actions.append(
            ArmyAction(
                action=ArmyOrder.ATTACK,
                army_size=army,
                risk_level=0.7,
                time_horizon=TimeHorizon.SHORT,
            )
        )
        actions.append(
            ArmyAction(
                action=ArmyOrder.DEFEND,
                army_size=army,
                risk_level=0.2,
                time_horizon=TimeHorizon.SHORT,
            )
        )

    if state.tech_available:
        actions.append(Research(time_horizon=TimeHorizon.LONG, efficiency=0.5, novelty=0.7))

    return actions


# =============================================================================
# Scoring
# =============================================================================


def base_action_score(state: StateSnapshot, player_id: int, action: Action) -> float:
    """Type-specific baseline value of an action, discounted by affordability."""
    minerals = _minerals(state, player_id)
    workers = worker_count(state, player_id)
    army = army_size(state, player_id)
    score = 0.0

    if isinstance(action, BuildUnit):
        if action.is_worker:
            # Diminishing returns past 8 and 12 workers
            score = 0.8 if workers < 8 else (0.5 if workers < 12 else 0.2)
            if minerals < 200:
                score *= LOW_MINERALS_WORKER_DISCOUNT
        elif action.unit_type == UnitType.TANK.value:
            score = 0.7 + (0.1 if army < 3 else 0.2)
        else:
            score = 0.6 + (0.2 if army < 5 else 0.0)
    elif isinstance(action, BuildBuilding):
        owned = has_building(state, player_id, action.building_type, complete_only=False)
        if action.building_type == BuildingType.BARRACKS.value:
            score = 0.3 if owned else 0.7
        elif action.building_type == BuildingType.FACTORY.value:
            score = 0.2 if owned else 0.8
        elif action.is_expansion:
            score = 0.7
        else:
            score = 0.4
    elif isinstance(action, ArmyAction):
        ratio = army / max(1, len(state.enemy_units(player_id)))
        if action.is_attack:
            score = 0.9 if ratio > 1.2 else (0.6 if ratio > 0.8 else 0.3)
        else:
            score = 0.7 if ratio < 0.8 else 0.4
    elif isinstance(action, GatherResources):
        score = 0.5
    elif isinstance(action, Research):
        score = 0.6

    cost = getattr(action, "cost", 0.0)
    if cost > minerals:
        score *= UNAFFORDABLE_DISCOUNT

    return score


def future_value(state: StateSnapshot, player_id: int, action: Action) -> float:
    """Rough income/security projection of an action."""
    if isinstance(action, BuildUnit):
        if action.is_worker:
            # Workers generate future income
            return estimate_income(worker_count(state, player_id)) * 5
        # Military units provide future security
        return 0.5 if _minerals(state, player_id) > 400 else 0.2
    if isinstance(action, BuildBuilding):
        # Buildings unlock production
        return 0.6
    return 0.0


def heuristic_score(state: StateSnapshot, player_id: int, action: Action) -> float:
    """Baseline plus weighted future value, clamped to [0, 1]."""
    base = base_action_score(state, player_id, action)
    return clamp(base + future_value(state, player_id, action) * FUTURE_VALUE_WEIGHT)


def situational_bonus(action: Action, situation: SituationSummary) -> float:
    """Persona-agnostic adjustment from the current situation."""
    bonus = 0.0

    if isinstance(action, BuildUnit):
        if action.is_worker:
            if situation.economy.saturation < 0.7:
                bonus += 0.3
            if situation.threat.level > 0.5:
                bonus -= 0.2
        elif situation.military.advantage < 0 or situation.threat.level > 0.3:
            bonus += 0.4
    elif isinstance(action, BuildBuilding):
        if action.is_expansion and situation.economy.can_expand:
            bonus += 0.5
    elif isinstance(action, ArmyAction):
        if action.is_attack and situation.military.advantage > 0.2:
            bonus += 0.3
        elif action.is_defend and situation.threat.level > 0.4:
            bonus += 0.4
    elif isinstance(action, Research):
        if situation.tech.can_research and situation.timing.phase != "early":
            bonus += 0.2

    return bonus


def enhanced_score(
    state: StateSnapshot, player_id: int, action: Action, situation: SituationSummary
) -> float:
    """Heuristic score plus situational bonus, clamped to [0, 1]."""
    return clamp(heuristic_score(state, player_id, action) + situational_bonus(action, situation))
