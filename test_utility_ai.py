"""测试效用 AI：条件判定、效用分解与随机选择。"""

import math
import random

import pytest
from pydantic import ValidationError

from mathworld.config.settings import KernelConfig, TargetBenefitMode, UtilityWeights
from mathworld.engine.utility_ai import BASE_ACTIONS, UtilityAI, compare, get_base_action
from mathworld.models.action import Action, ActionCategory, ActionWeights
from mathworld.models.character import create_character
from mathworld.models.effect import (
    TARGET,
    Condition,
    ConditionType,
    Effect,
    EffectType,
    Operator,
)
from mathworld.state.world_state import WorldState


def _world(config: KernelConfig | None = None) -> WorldState:
    world = WorldState(config=config, seed=3)
    world.add_character(create_character("甲", id="a", location="town"))
    world.add_character(create_character("乙", id="b", location="town"))
    return world


def test_failing_condition_gives_negative_infinity():
    """资源只有 5 时无法交易：效用为 −∞，分解全部为 0。"""
    world = _world()
    poor = world.get_character("a")
    poor.resources = 5
    ai = UtilityAI(world)

    result = ai.calculate_utility(poor, get_base_action("trade"), "b")
    assert result.utility == -math.inf
    assert not result.is_valid
    breakdown = result.breakdown
    assert breakdown.self_benefit == 0
    assert breakdown.target_benefit == 0
    assert breakdown.risk == 0
    assert breakdown.personality_fit == 0
    assert breakdown.emotional_fit == 0


def test_relation_condition_requires_target():
    world = _world()
    ai = UtilityAI(world)
    actor = world.get_character("a")
    betray = get_base_action("betray")

    assert ai.calculate_utility(actor, betray).utility == -math.inf
    assert ai.calculate_utility(actor, betray, "b").utility == -math.inf

    world.relations.update_relation("a", "b", trust=0.2)
    assert ai.calculate_utility(actor, betray, "b").is_valid


def test_event_and_custom_conditions_never_hold():
    world = _world()
    ai = UtilityAI(world)
    actor = world.get_character("a")
    for condition_type in (ConditionType.EVENT, ConditionType.CUSTOM):
        condition = Condition(type=condition_type, operator=Operator.EQ, value="anything")
        assert not ai.check_conditions(actor, (condition,), "b")


def test_location_condition_uses_string_equality():
    world = _world()
    ai = UtilityAI(world)
    actor = world.get_character("a")
    here = Condition(type=ConditionType.LOCATION, operator=Operator.EQ, value="town")
    there = Condition(type=ConditionType.LOCATION, operator=Operator.NE, value="town")
    assert ai.check_conditions(actor, (here,), None)
    assert not ai.check_conditions(actor, (there,), None)


def test_compare_strings_only_support_equality():
    assert compare("a", Operator.EQ, "a")
    assert compare("a", Operator.NE, "b")
    assert not compare("a", Operator.GT, "b")
    assert compare(3, Operator.GTE, 3)
    assert not compare(2, Operator.GT, 3)


def test_condition_field_is_validated():
    with pytest.raises(ValidationError):
        Condition(type=ConditionType.STAT, field="charisma", operator=Operator.GT, value=0.5)


def test_talk_friendly_utility_breakdown():
    """默认性格与情绪下友好交谈的效用可以逐项算出。"""
    world = _world()
    ai = UtilityAI(world)
    result = ai.calculate_utility(world.get_character("a"), get_base_action("talk_friendly"), "b")

    success = 0.9 * (0.5 + 0.5 * 0.5)
    risk = (1 - success) * 0.1
    personality_fit = 0.4 * 0.5 + 0.3 * 0.5
    emotional_fit = 0.5 * 0.3
    assert result.breakdown.risk == pytest.approx(risk)
    assert result.breakdown.personality_fit == pytest.approx(personality_fit)
    assert result.breakdown.emotional_fit == pytest.approx(emotional_fit)
    assert result.utility == pytest.approx(-risk + 0.3 * personality_fit + 0.2 * emotional_fit)


def _gift_action() -> Action:
    return Action(
        id="gift",
        name="赠礼",
        category=ActionCategory.PHYSICAL,
        effects=(
            Effect(type=EffectType.RESOURCE, target=TARGET, field="resources", change=100),
        ),
        weights=ActionWeights(self_benefit=0.0, target_benefit=1.0, risk_factor=0.0),
    )


def test_target_benefit_scaled_by_trust():
    world = _world()
    world.relations.update_relation("a", "b", trust=0.5)
    ai = UtilityAI(world)
    result = ai.calculate_utility(world.get_character("a"), _gift_action(), "b")
    assert result.breakdown.target_benefit == pytest.approx(0.5)

    world.relations.update_relation("a", "b", trust=-0.4)
    result = ai.calculate_utility(world.get_character("a"), _gift_action(), "b")
    assert result.breakdown.target_benefit == pytest.approx(-0.4)


def test_target_benefit_unscaled_mode():
    config = KernelConfig(utility=UtilityWeights(target_benefit_mode=TargetBenefitMode.UNSCALED))
    world = _world(config)
    ai = UtilityAI(world)
    result = ai.calculate_utility(world.get_character("a"), _gift_action(), "b")
    assert result.breakdown.target_benefit == pytest.approx(1.0)


def test_rank_actions_drops_invalid_and_sorts():
    world = _world()
    ai = UtilityAI(world)
    ranked = ai.rank_actions(world.get_character("a"), BASE_ACTIONS, "b")
    ids = [r.action.id for r in ranked]
    assert "betray" not in ids
    assert len(ids) == len(BASE_ACTIONS) - 1
    utilities = [r.utility for r in ranked]
    assert utilities == sorted(utilities, reverse=True)


def test_select_action_returns_none_without_options():
    world = _world()
    actor = world.get_character("a")
    actor.resources = 0
    actor.power = 0
    ai = UtilityAI(world)
    options = [get_base_action("trade"), get_base_action("help"), get_base_action("threaten")]
    assert ai.select_action(actor, options, "b") is None


def test_select_action_picks_from_top_k():
    world = _world()
    ai = UtilityAI(world, rng=random.Random(11))
    actor = world.get_character("a")
    top = {r.action.id for r in ai.rank_actions(actor, BASE_ACTIONS, "b")[:3]}
    for _ in range(50):
        chosen = ai.select_action(actor, BASE_ACTIONS, "b")
        assert chosen.action.id in top


def test_success_rate_is_clamped():
    world = _world()
    world.relations.update_relation("a", "b", trust=1.0)
    ai = UtilityAI(world)
    rate = ai.success_rate(world.get_character("a"), get_base_action("help"), "b")
    assert rate == pytest.approx(1.0)
