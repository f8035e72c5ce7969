"""测试疾病传播：状态机单调性、必然传染、免疫期与死亡事件。"""

import random

from mathworld.models.character import create_character
from mathworld.models.disease import Disease, HealthState
from mathworld.models.event import EventType
from mathworld.simulation.disease import DiseaseSimulation, contact_factor
from mathworld.state.world_state import WorldState

ALLOWED_TRANSITIONS = {
    (HealthState.SUSCEPTIBLE, HealthState.EXPOSED),
    (HealthState.EXPOSED, HealthState.INFECTED),
    (HealthState.INFECTED, HealthState.RECOVERED),
    (HealthState.INFECTED, HealthState.DEAD),
    (HealthState.RECOVERED, HealthState.SUSCEPTIBLE),
    # 免疫到期后同一回合内再次被传染
    (HealthState.RECOVERED, HealthState.EXPOSED),
}


def _disease(**overrides) -> Disease:
    values = dict(
        id="test", name="测试病", transmission_rate=1.0, recovery_rate=0.0,
        mortality_rate=0.0, incubation_period=0, immunity_duration=0,
    )
    values.update(overrides)
    return Disease(**values)


def _world(count: int = 2) -> WorldState:
    world = WorldState(seed=12)
    for i in range(count):
        world.add_character(create_character(f"村民{i}", id=f"v{i}", location="village"))
    return world


def test_contact_factor_range():
    assert contact_factor(-1.0) == 0.5
    assert contact_factor(0.0) == 0.75
    assert contact_factor(1.0) == 1.0


def test_certain_transmission_exposes_neighbour_in_one_tick():
    """传染率 1.0 且信任 1.0 时，同地的易感者一回合内必然被感染。"""
    world = _world()
    world.relations.update_relation("v0", "v1", trust=1.0)
    sim = DiseaseSimulation(world, diseases=[_disease()])
    assert sim.infect("v0", "test")

    sim.update()
    assert sim.get_health_status("v0").state is HealthState.INFECTED
    assert sim.get_health_status("v1").state is HealthState.EXPOSED
    assert sim.get_health_status("v1").disease_id == "test"


def test_no_spread_across_locations():
    world = _world()
    world.add_character(create_character("远客", id="far", location="castle"))
    sim = DiseaseSimulation(world, diseases=[_disease()])
    sim.infect("v0", "test")
    for _ in range(3):
        sim.update()
    assert sim.get_health_status("far").state is HealthState.SUSCEPTIBLE


def test_state_transitions_are_monotonic():
    world = _world(12)
    disease = _disease(transmission_rate=0.4, recovery_rate=0.2, mortality_rate=0.05,
                       incubation_period=2, immunity_duration=5)
    sim = DiseaseSimulation(world, rng=random.Random(99), diseases=[disease])
    sim.start_outbreak("test")

    previous = {cid: s.state for cid, s in sim.statuses.items()}
    for _ in range(80):
        world.advance_time()
        sim.update()
        for character_id, status in sim.statuses.items():
            before = previous[character_id]
            if status.state is not before:
                assert (before, status.state) in ALLOWED_TRANSITIONS
            previous[character_id] = status.state


def test_immunity_expires():
    world = _world(1)
    sim = DiseaseSimulation(world, diseases=[_disease(immunity_duration=2)])
    sim.infect("v0", "test")
    sim.update()
    assert sim.treat("v0", effectiveness=1.0)
    status = sim.get_health_status("v0")
    assert status.state is HealthState.RECOVERED

    world.advance_time()
    sim.update()
    assert status.state is HealthState.RECOVERED

    world.advance_time()
    sim.update()
    assert status.state is HealthState.SUSCEPTIBLE
    assert status.disease_id is None


def test_permanent_immunity():
    world = _world(1)
    sim = DiseaseSimulation(world, diseases=[_disease()])
    sim.infect("v0", "test")
    sim.update()
    sim.treat("v0", effectiveness=1.0)
    for _ in range(20):
        world.advance_time()
        sim.update()
    assert sim.get_health_status("v0").state is HealthState.RECOVERED


def test_death_emits_event():
    world = _world(1)
    sim = DiseaseSimulation(world, diseases=[_disease(mortality_rate=1.0)])
    sim.infect("v0", "test")
    sim.update()
    sim.update()

    assert sim.get_health_status("v0").state is HealthState.DEAD
    deaths = [e for e in world.history if e.type == EventType.DEATH]
    assert len(deaths) == 1
    assert deaths[0].participants == ("v0",)
    assert world.get_character("v0") is not None
    assert sim.get_stats().dead == 1


def test_plague_flag_follows_infection_rate():
    world = _world(5)
    sim = DiseaseSimulation(world, diseases=[_disease(transmission_rate=0.0)])
    sim.update()
    assert not world.global_state.plague_active
    sim.infect("v0", "test")
    sim.update()
    assert world.global_state.plague_active


def test_interventions_reject_invalid_targets():
    world = _world()
    sim = DiseaseSimulation(world, diseases=[_disease()])
    assert not sim.start_outbreak("unknown")
    assert not sim.infect("ghost", "test")
    assert not sim.treat("v0")
    assert sim.infect("v0", "test")
    assert not sim.infect("v0", "test")


def test_stats_and_description():
    world = _world(4)
    sim = DiseaseSimulation(world, diseases=[_disease(transmission_rate=0.5, recovery_rate=0.25)])
    assert sim.describe() == "眼下没有疾病流行。"
    sim.infect("v0", "test")
    stats = sim.get_stats()
    assert stats.exposed == 1
    assert stats.susceptible == 3
    assert stats.r0 == 2.0
    assert "感染率" in sim.describe()


def test_new_characters_are_registered_on_update():
    world = _world(1)
    sim = DiseaseSimulation(world, diseases=[_disease()])
    world.add_character(create_character("新人", id="new", location="village"))
    sim.update()
    assert sim.get_health_status("new").state is HealthState.SUSCEPTIBLE


def test_add_disease_extends_catalogue():
    world = _world(1)
    sim = DiseaseSimulation(world)
    assert not sim.infect("v0", "test")
    sim.add_disease(_disease())
    assert sim.infect("v0", "test")
    assert "test" in sim.active_outbreaks
