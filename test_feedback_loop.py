"""测试反馈循环：行动落地、目击者评价、流言与环境阈值。"""

import pytest

from mathworld.config.settings import KernelConfig, RumorConfig
from mathworld.engine.feedback_loop import RUMOR_PREFIX, FeedbackLoop
from mathworld.engine.utility_ai import get_base_action
from mathworld.models.action import Choice
from mathworld.models.character import Personality, create_character
from mathworld.models.event import EventType
from mathworld.state.world_state import WorldState


def _world(config: KernelConfig | None = None, crowd: int = 0) -> WorldState:
    world = WorldState(config=config, seed=5)
    world.add_character(create_character("甲", id="a", location="town"))
    world.add_character(create_character("乙", id="b", location="town"))
    for i in range(crowd):
        world.add_character(create_character(f"路人{i}", id=f"p{i}", location="town"))
    return world


def test_trade_applies_effects_and_records_event():
    world = _world()
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("trade")), "a", "b")

    assert world.get_character("a").resources == 90
    assert world.relations.get_relation("a", "b").trust == pytest.approx(0.03)
    assert event.type == EventType.TRADE
    assert event.is_public
    assert event.participants == ("a", "b")
    assert event.location == "town"
    assert event.description == "甲对乙交易"
    assert len(event.effects) == 2
    assert world.get_event(event.id) is event
    assert event.id in world.relations.get_relation("a", "b").history
    assert event.id in world.relations.get_relation("b", "a").history


def test_witnesses_are_capped_and_exclude_actor():
    world = _world(crowd=7)
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("talk_friendly")), "a", "b")
    assert len(event.witnesses) == 5
    assert "a" not in event.witnesses
    assert not event.is_public


def test_unknown_actor_is_ignored():
    world = _world()
    loop = FeedbackLoop(world)
    assert loop.apply_choice(Choice.for_action(get_base_action("trade")), "ghost", "b") is None
    assert world.history == []


def test_unknown_target_keeps_self_effects_only():
    world = _world()
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("trade")), "a", "ghost")
    assert event.participants == ("a",)
    assert world.get_character("a").resources == 90
    assert not world.relations.has_relation("a", "ghost")


def test_betrayal_lowers_witness_trust_and_respect():
    world = _world()
    world.add_character(create_character("丙", id="c", location="town"))
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("betray")), "a", "b")

    assert event.type == EventType.BETRAYAL
    witness_view = world.relations.get_relation("c", "a")
    assert witness_view.trust == pytest.approx(-0.2)
    assert witness_view.respect == pytest.approx(-0.1)
    assert world.get_character("a").resources == 150


def test_combat_witness_depends_on_personality():
    world = _world()
    world.add_character(
        create_character(
            "骑士",
            id="k",
            location="town",
            personality=Personality(morality=0.8, courage=0.8),
        )
    )
    loop = FeedbackLoop(world)
    loop.apply_choice(Choice.for_action(get_base_action("attack")), "a", "b")
    relation = world.relations.get_relation("k", "a")
    assert relation.trust == pytest.approx(-0.1)
    assert relation.respect == pytest.approx(0.05)


def test_public_event_spreads_as_rumor():
    """远方的知情者以“传闻：”为前缀记住公开事件。"""
    config = KernelConfig(rumor=RumorConfig(base_probability=1.0))
    world = _world(config)
    world.add_character(create_character("远方", id="x", location="far"))
    world.relations.update_relation("a", "x", trust=1.0)
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("attack")), "a", "b")

    memories = world.get_character("x").memory
    assert len(memories) == 1
    assert memories[0].event_id == event.id
    assert memories[0].interpretation.startswith(RUMOR_PREFIX)
    assert all(not m.interpretation.startswith(RUMOR_PREFIX) for m in world.get_character("b").memory)


def test_thresholds_fire_only_on_crossing():
    world = _world()
    world.get_character("a").power = 50
    loop = FeedbackLoop(world)
    world.relations.update_relation("a", "b", trust=-0.5)
    world.relations.update_relation("b", "a", trust=-0.5)

    first = loop.check_thresholds()
    assert [e.type for e in first] == [EventType.BETRAYAL]
    assert first[0].participants == ()
    assert first[0].location == "global"
    assert loop.check_thresholds() == []

    world.relations.update_relation("a", "b", trust=0.5)
    world.relations.update_relation("b", "a", trust=0.5)
    assert loop.check_thresholds() == []

    world.relations.update_relation("a", "b", trust=-0.5)
    world.relations.update_relation("b", "a", trust=-0.5)
    assert [e.type for e in loop.check_thresholds()] == [EventType.BETRAYAL]


def test_power_vacuum_threshold():
    world = _world()
    world.relations.get_relation("a", "b")
    loop = FeedbackLoop(world)
    events = loop.check_thresholds()
    assert [e.description for e in events] == ["权力出现了真空"]


def test_accumulated_change_summary_is_qualitative():
    world = _world()
    loop = FeedbackLoop(world)
    loop.apply_choice(Choice.for_action(get_base_action("help")), "a", "b")

    summary = loop.get_accumulated_change_summary("a")
    assert "身边的人更加信任你了" in summary
    assert all(not any(ch.isdigit() for ch in line) for line in summary)
    assert loop.get_accumulated_change_summary("nobody") == []

    loop.reset_accumulated_changes()
    assert loop.get_accumulated_changes() == []


def test_trade_witness_trust_rises():
    world = _world()
    world.add_character(create_character("丙", id="c", location="town"))
    loop = FeedbackLoop(world)
    loop.apply_choice(Choice.for_action(get_base_action("trade")), "a", "b")
    assert world.relations.get_relation("c", "a").trust == pytest.approx(0.02)
    assert world.relations.get_relation("c", "b").trust == pytest.approx(0.02)


def test_inactive_characters_neither_act_nor_witness():
    world = _world()
    world.add_character(create_character("亡者", id="dead", location="town"))
    loop = FeedbackLoop(world, is_active=lambda character_id: character_id != "dead")

    event = loop.apply_choice(Choice.for_action(get_base_action("trade")), "a", "b")
    assert "dead" not in event.witnesses
    assert world.get_character("dead").memory == []
    assert not world.relations.has_relation("dead", "a")

    assert loop.apply_choice(Choice.for_action(get_base_action("trade")), "dead", "a") is None


def test_actor_without_location_has_no_witnesses():
    world = WorldState(seed=5)
    for character_id in ("a", "b", "c"):
        world.add_character(create_character(character_id, id=character_id))
    loop = FeedbackLoop(world)
    event = loop.apply_choice(Choice.for_action(get_base_action("talk_friendly")), "a", "b")
    assert event.witnesses == ()
    assert world.get_character("c").memory == []
