"""Shared pytest fixtures and markers for all tests."""

import pytest

AI_PLAYER = 2
ENEMY_PLAYER = 1

UNIT_TEMPLATES = {
    "worker": {"hp": 40, "maxHp": 40, "attack": 1, "defense": 0, "cost": {"minerals": 50}},
    "soldier": {"hp": 60, "maxHp": 60, "attack": 6, "defense": 2, "cost": {"minerals": 100}},
    "tank": {"hp": 150, "maxHp": 150, "attack": 15, "defense": 6, "cost": {"minerals": 150, "gas": 100}},
}

BUILDING_COSTS = {
    "base": {"minerals": 400},
    "barracks": {"minerals": 100},
    "factory": {"minerals": 150, "gas": 50},
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that run full playtest matches"
    )


def build_state(
    minerals=0.0,
    gas=0.0,
    workers=0,
    soldiers=0,
    tanks=0,
    buildings=("base",),
    enemy_soldiers=0,
    enemy_position=(10.0, 10.0),
    enemy_minerals=0.0,
    enemy_gas=0.0,
    tick=0,
    tech_available=False,
    researched=(),
    with_map=True,
):
    """Build a two-player snapshot from camelCase dictionaries, the way a simulation would send it.

    The AI side (player 2) sits around (54, 54), the enemy (player 1) around (10, 10).
    """
    from autoplaytest.models.state import StateSnapshot

    units = []
    for unit_type, count in (("WORKER", workers), ("SOLDIER", soldiers), ("TANK", tanks)):
        for _ in range(count):
            units.append(
                {"playerId": AI_PLAYER, "type": unit_type, "x": 50.0, "y": 50.0, **UNIT_TEMPLATES[unit_type.lower()]}
            )
    for _ in range(enemy_soldiers):
        units.append(
            {
                "playerId": ENEMY_PLAYER,
                "type": "SOLDIER",
                "x": enemy_position[0],
                "y": enemy_position[1],
                **UNIT_TEMPLATES["soldier"],
            }
        )

    building_list = [
        {"playerId": AI_PLAYER, "type": b.upper(), "x": 54.0, "y": 54.0, "cost": BUILDING_COSTS.get(b, {})}
        for b in buildings
    ]
    building_list.append(
        {"playerId": ENEMY_PLAYER, "type": "BASE", "x": 10.0, "y": 10.0, "cost": BUILDING_COSTS["base"]}
    )

    data = {
        "id": "test_game",
        "tick": tick,
        "players": {
            ENEMY_PLAYER: {"resources": {"minerals": enemy_minerals, "gas": enemy_gas}},
            AI_PLAYER: {
                "resources": {"minerals": minerals, "gas": gas},
                "researchedTechs": list(researched),
            },
        },
        "units": units,
        "buildings": building_list,
        "techAvailable": tech_available,
    }
    if with_map:
        data["map"] = {"width": 64, "height": 64}
    return StateSnapshot.model_validate(data)


@pytest.fixture
def make_state():
    """Provide the snapshot builder."""
    return build_state


@pytest.fixture
def rich_state():
    """A mid-game snapshot with more than five legal actions."""
    return build_state(
        minerals=500,
        gas=200,
        workers=4,
        soldiers=2,
        buildings=("base", "barracks"),
        tech_available=True,
        tick=1500,
    )


@pytest.fixture
def small_state():
    """A snapshot with exactly five legal actions."""
    return build_state(minerals=120, workers=3, soldiers=1, tick=200)
