"""测试生态系统：种群非负、灭绝不可逆、狩猎上限与稳定度。"""

import pytest

from mathworld.models.ecosystem import CreatureType, Species
from mathworld.models.location import Location, LocationType
from mathworld.models.world import Season
from mathworld.simulation.ecosystem import Ecosystem, stability_of
from mathworld.state.world_state import WorldState


def _world() -> WorldState:
    world = WorldState(seed=6)
    world.add_location(Location(id="wild", name="荒野", type=LocationType.WILDERNESS))
    world.add_location(Location(id="cave", name="地下城", type=LocationType.DUNGEON))
    world.add_location(Location(id="city", name="王都", type=LocationType.CITY))
    return world


def test_default_ecosystems():
    ecosystem = Ecosystem(_world())
    assert set(ecosystem.ecosystems) == {"wild", "cave"}
    assert "goblin" in ecosystem.ecosystems["cave"].species
    assert "goblin" not in ecosystem.ecosystems["wild"].species


def test_populations_never_negative():
    world = _world()
    ecosystem = Ecosystem(world)
    for _ in range(400):
        world.advance_time()
        ecosystem.update()
        for local in ecosystem.ecosystems.values():
            assert all(s.population >= 0 for s in local.species.values())
            assert 0.0 <= local.stability <= 1.0


def test_extinct_species_stay_extinct():
    world = _world()
    ecosystem = Ecosystem(world)
    species = ecosystem.ecosystems["wild"].species
    species["deer"].population = 0
    species["wolf"].population = 0
    for _ in range(50):
        ecosystem.update()
    assert species["deer"].population == 0
    assert species["wolf"].population == 0


def test_plant_growth_follows_season():
    world = _world()
    ecosystem = Ecosystem(world)
    grass = Species(id="grass", name="草", type=CreatureType.PLANT,
                    population=1000, growth_rate=0.1, carrying_capacity=2000)
    ecosystem.add_ecosystem(world.get_location("city"), [grass])

    ecosystem.update()
    assert grass.population == pytest.approx(1000 + 0.12 * 1000 * 0.5)

    world.update_global_state(season=Season.WINTER)
    before = grass.population
    ecosystem.update()
    expected = before + 0.05 * before * (1 - before / 2000)
    assert grass.population == pytest.approx(expected)


def test_stability_written_back_to_location():
    world = _world()
    ecosystem = Ecosystem(world)
    ecosystem.update()
    assert world.get_location("wild").stability == ecosystem.ecosystems["wild"].stability


def test_stability_formula():
    healthy = Species(id="a", name="甲", type=CreatureType.PREY,
                      population=50, growth_rate=0.1, carrying_capacity=100)
    rare = Species(id="b", name="乙", type=CreatureType.PREY,
                   population=5, growth_rate=0.1, carrying_capacity=100)
    assert stability_of([]) == 1.0
    assert stability_of([healthy]) == 1.0
    assert stability_of([healthy, rare]) == pytest.approx(0.75)


def test_hunt_is_capped_at_ten_percent():
    ecosystem = Ecosystem(_world())
    deer = ecosystem.ecosystems["wild"].species["deer"]
    result = ecosystem.hunt("wild", "deer", 50)
    assert result.success
    assert result.caught == 15
    assert deer.population == pytest.approx(135)

    assert not ecosystem.hunt("wild", "grass", 10).success
    assert not ecosystem.hunt("wild", "dragon", 1).success
    assert not ecosystem.hunt("city", "deer", 1).success


def test_info_and_summary():
    ecosystem = Ecosystem(_world())
    assert ecosystem.get_ecosystem_info("city") is None
    info = ecosystem.get_ecosystem_info("wild")
    assert {s.name for s in info.species} == {"草", "鹿", "狼"}
    summary = ecosystem.get_summary()
    assert summary.total_locations == 2


def test_lotka_volterra_step():
    """一步更新：食草动物按食物可得性增长并被捕食，捕食者按转化率增长并自然死亡，植物被啃食。"""
    world = WorldState(seed=6)
    world.add_location(Location(id="plain", name="平原", type=LocationType.CITY))
    ecosystem = Ecosystem(world)
    grass = Species(id="grass", name="草", type=CreatureType.PLANT,
                    population=500, growth_rate=0.0, carrying_capacity=2000)
    deer = Species(id="deer", name="鹿", type=CreatureType.PREY,
                   population=100, growth_rate=0.2, carrying_capacity=500)
    wolf = Species(id="wolf", name="狼", type=CreatureType.PREDATOR,
                   population=5, growth_rate=0.0, carrying_capacity=100,
                   predation_rate=0.01, conversion_rate=0.1, mortality_rate=0.05)
    ecosystem.add_ecosystem(world.get_location("plain"), [grass, deer, wolf])

    ecosystem.update()

    # 食物可得性 500/1000 = 0.5：增长 0.2·100·0.5 = 10，捕食 0.01·100·5 = 5
    assert deer.population == pytest.approx(105)
    # 每头食草动物啃食 0.01
    assert grass.population == pytest.approx(500 - 100 * 0.01)
    # 0.1·0.01·105·5 的增长，0.05·5 的死亡
    assert wolf.population == pytest.approx(5 + 0.1 * 0.01 * 105 * 5 - 0.05 * 5)


def test_hunt_removes_whole_animals():
    ecosystem = Ecosystem(_world())
    deer = ecosystem.ecosystems["wild"].species["deer"]
    deer.population = 159
    result = ecosystem.hunt("wild", "deer", 100)
    assert result.caught == 15
    assert deer.population == pytest.approx(144)
