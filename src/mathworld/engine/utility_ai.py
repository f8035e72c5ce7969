"""基于期望效用的 NPC 决策。

U = 自身收益·w_self + 目标收益·w_target − 风险 + 0.3·性格契合 + 0.2·情绪契合，
前置条件不满足的行动效用为 −∞。
"""

from __future__ import annotations

import logging
import math
import random

from pydantic import BaseModel, Field

from mathworld.config.settings import KernelConfig, TargetBenefitMode
from mathworld.models.action import Action, ActionCategory, ActionWeights
from mathworld.models.character import Character
from mathworld.models.effect import (
    POWER_FIELD,
    SELF,
    SELF_TARGET,
    TARGET,
    Condition,
    ConditionType,
    Effect,
    EffectType,
    Operator,
)
from mathworld.models.event import EventType
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp, sigmoid

logger = logging.getLogger(__name__)


class UtilityBreakdown(BaseModel):
    """效用的各组成部分。"""

    self_benefit: float = 0.0
    target_benefit: float = 0.0
    risk: float = 0.0
    personality_fit: float = 0.0
    emotional_fit: float = 0.0


class UtilityResult(BaseModel):
    action: Action
    utility: float
    breakdown: UtilityBreakdown = Field(default_factory=UtilityBreakdown)

    @property
    def is_valid(self) -> bool:
        return self.utility > -math.inf


# ──────────────────────────────────────────
# 条件求值
# ──────────────────────────────────────────


def compare(left: float | str, operator: Operator, right: float | str) -> bool:
    """按运算符比较；字符串只支持相等/不等。"""
    if operator is Operator.EQ:
        return left == right
    if operator is Operator.NE:
        return left != right
    if isinstance(left, str) or isinstance(right, str):
        return False
    match operator:
        case Operator.GT:
            return left > right
        case Operator.LT:
            return left < right
        case Operator.GTE:
            return left >= right
        case Operator.LTE:
            return left <= right
        case _:
            return False


class UtilityAI:
    """效用评分器与随机行动选择器。"""

    def __init__(
        self,
        world: WorldState,
        config: KernelConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.world = world
        self.config = config or world.config
        self.rng = rng or world.rng

    def calculate_utility(
        self, character: Character, action: Action, target_id: str | None = None
    ) -> UtilityResult:
        """计算单个行动的效用。"""
        if not self.check_conditions(character, action.conditions, target_id):
            return UtilityResult(action=action, utility=-math.inf)

        weights = self.config.utility
        self_benefit = self._self_benefit(character, action.effects)
        target_benefit = (
            self._target_benefit(character, target_id, action.effects) if target_id else 0.0
        )
        success_rate = self.success_rate(character, action, target_id)
        risk = (1 - success_rate) * action.weights.risk_factor
        personality_fit = self._personality_fit(character, action.category)
        emotional_fit = self._emotional_fit(character, action.category)

        utility = (
            self_benefit * action.weights.self_benefit
            + target_benefit * action.weights.target_benefit
            - risk
            + personality_fit * weights.personality
            + emotional_fit * weights.emotion
        )
        return UtilityResult(
            action=action,
            utility=utility,
            breakdown=UtilityBreakdown(
                self_benefit=self_benefit,
                target_benefit=target_benefit,
                risk=risk,
                personality_fit=personality_fit,
                emotional_fit=emotional_fit,
            ),
        )

    def rank_actions(
        self, character: Character, actions: list[Action], target_id: str | None = None
    ) -> list[UtilityResult]:
        """可执行行动按效用降序排列。"""
        results = [self.calculate_utility(character, a, target_id) for a in actions]
        valid = [r for r in results if r.is_valid]
        valid.sort(key=lambda r: r.utility, reverse=True)
        return valid

    def select_action(
        self, character: Character, actions: list[Action], target_id: str | None = None
    ) -> UtilityResult | None:
        """在效用最高的前 k 个行动中按 sigmoid 权重随机抽取；无可行行动时返回 None。"""
        ranked = self.rank_actions(character, actions, target_id)
        if not ranked:
            return None

        weights = self.config.utility
        top = ranked[: weights.top_k]
        sample_weights = [max(weights.min_weight, sigmoid(r.utility)) for r in top]
        chosen = self.rng.choices(top, weights=sample_weights, k=1)[0]
        logger.debug(
            "%s 选择行动 %s（效用 %.3f）", character.name, chosen.action.id, chosen.utility
        )
        return chosen

    # ──────────────────────────────────────────
    # 条件
    # ──────────────────────────────────────────

    def check_conditions(
        self, character: Character, conditions: tuple[Condition, ...], target_id: str | None
    ) -> bool:
        return all(self._check_condition(character, c, target_id) for c in conditions)

    def _check_condition(
        self, character: Character, condition: Condition, target_id: str | None
    ) -> bool:
        match condition.type:
            case ConditionType.STAT:
                value: float | str = self._stat_value(character, condition.field)
            case ConditionType.RELATION:
                if not target_id:
                    return False
                relation = self.world.relations.find_relation(character.id, target_id)
                value = getattr(relation, condition.field) if relation else 0.0
            case ConditionType.RESOURCE:
                value = character.resources
            case ConditionType.LOCATION:
                value = character.location
            case _:
                return False
        return compare(value, condition.operator, condition.value)

    @staticmethod
    def _stat_value(character: Character, field: str) -> float:
        if field in type(character.personality).model_fields:
            return getattr(character.personality, field)
        if field in type(character.emotion).model_fields:
            return getattr(character.emotion, field)
        if field == POWER_FIELD:
            return character.power
        return character.resources

    # ──────────────────────────────────────────
    # 收益与风险
    # ──────────────────────────────────────────

    @staticmethod
    def _benefit_of(effects: tuple[Effect, ...], targets: set[str]) -> float:
        benefit = 0.0
        for effect in effects:
            if effect.target not in targets:
                continue
            match effect.type:
                case EffectType.RESOURCE:
                    benefit += effect.change * 0.01
                case EffectType.STAT:
                    benefit += effect.change * 0.1
                case EffectType.EMOTION:
                    if effect.field == "joy":
                        benefit += effect.change
                    elif effect.field == "fear":
                        benefit -= effect.change
        return benefit

    def _self_benefit(self, character: Character, effects: tuple[Effect, ...]) -> float:
        return self._benefit_of(effects, {SELF, character.id})

    def _target_benefit(
        self, character: Character, target_id: str, effects: tuple[Effect, ...]
    ) -> float:
        benefit = self._benefit_of(effects, {TARGET, target_id})
        if self.config.utility.target_benefit_mode is TargetBenefitMode.UNSCALED:
            return benefit
        return benefit * self._trust(character.id, target_id)

    def _trust(self, from_id: str, to_id: str) -> float:
        relation = self.world.relations.find_relation(from_id, to_id)
        return relation.trust if relation else 0.0

    def success_rate(
        self, character: Character, action: Action, target_id: str | None = None
    ) -> float:
        rate = action.base_success_rate
        personality = character.personality
        match action.category:
            case ActionCategory.DIALOGUE:
                rate *= 0.5 + personality.cunning * 0.5
            case ActionCategory.COMBAT:
                rate *= 0.5 + personality.courage * 0.5
            case ActionCategory.SOCIAL if target_id:
                rate *= 0.5 + (self._trust(character.id, target_id) + 1) * 0.25
        return clamp(rate, 0.0, 1.0)

    @staticmethod
    def _personality_fit(character: Character, category: ActionCategory) -> float:
        p = character.personality
        match category:
            case ActionCategory.COMBAT:
                return p.courage * 0.5 + p.ambition * 0.3 - p.morality * 0.2
            case ActionCategory.DIALOGUE:
                return p.cunning * 0.4 + p.loyalty * 0.3
            case ActionCategory.SOCIAL:
                return p.loyalty * 0.4 + p.morality * 0.3
            case ActionCategory.ECONOMIC:
                return p.ambition * 0.5 + p.cunning * 0.3
            case _:
                return 0.0

    @staticmethod
    def _emotional_fit(character: Character, category: ActionCategory) -> float:
        e = character.emotion
        fit = 0.0
        if category is ActionCategory.COMBAT:
            fit += e.anger * 0.5
        if e.fear > 0.5 and category is not ActionCategory.COMBAT:
            fit += 0.3
        if category in (ActionCategory.SOCIAL, ActionCategory.DIALOGUE):
            fit += e.trust * 0.3
        return fit


# ──────────────────────────────────────────
# 基础行动
# ──────────────────────────────────────────


def _relation_effect(field: str, change: float) -> Effect:
    return Effect(type=EffectType.RELATION, target=SELF_TARGET, field=field, change=change)


def _resource_effect(change: float) -> Effect:
    return Effect(type=EffectType.RESOURCE, target=SELF, field="resources", change=change)


BASE_ACTIONS: list[Action] = [
    Action(
        id="talk_friendly",
        name="友好交谈",
        category=ActionCategory.DIALOGUE,
        effects=(_relation_effect("trust", 0.05),),
        base_success_rate=0.9,
        weights=ActionWeights(self_benefit=0.3, target_benefit=0.5, risk_factor=0.1),
    ),
    Action(
        id="threaten",
        name="威胁",
        category=ActionCategory.DIALOGUE,
        conditions=(
            Condition(type=ConditionType.STAT, field="power", operator=Operator.GTE, value=5),
        ),
        effects=(_relation_effect("fear", 0.2), _relation_effect("trust", -0.1)),
        base_success_rate=0.7,
        weights=ActionWeights(self_benefit=0.7, target_benefit=-0.5, risk_factor=0.5),
    ),
    Action(
        id="trade",
        name="交易",
        category=ActionCategory.ECONOMIC,
        conditions=(Condition(type=ConditionType.RESOURCE, operator=Operator.GTE, value=10),),
        effects=(_resource_effect(-10), _relation_effect("trust", 0.03)),
        base_success_rate=0.95,
        weights=ActionWeights(self_benefit=0.4, target_benefit=0.4, risk_factor=0.2),
    ),
    Action(
        id="attack",
        name="攻击",
        category=ActionCategory.COMBAT,
        effects=(_relation_effect("trust", -0.5), _relation_effect("fear", 0.3)),
        base_success_rate=0.6,
        weights=ActionWeights(self_benefit=0.8, target_benefit=-1.0, risk_factor=0.8),
    ),
    Action(
        id="help",
        name="援助",
        category=ActionCategory.SOCIAL,
        conditions=(Condition(type=ConditionType.RESOURCE, operator=Operator.GTE, value=20),),
        effects=(
            _resource_effect(-20),
            _relation_effect("trust", 0.15),
            _relation_effect("debt", 20),
        ),
        base_success_rate=1.0,
        weights=ActionWeights(self_benefit=0.2, target_benefit=0.8, risk_factor=0.1),
    ),
    Action(
        id="betray",
        name="背叛",
        category=ActionCategory.SOCIAL,
        conditions=(
            Condition(type=ConditionType.RELATION, field="trust", operator=Operator.GT, value=0),
        ),
        effects=(_resource_effect(50), _relation_effect("trust", -0.8)),
        base_success_rate=0.5,
        weights=ActionWeights(self_benefit=1.0, target_benefit=-1.0, risk_factor=1.0),
        event_type=EventType.BETRAYAL,
    ),
]


def get_base_action(action_id: str) -> Action | None:
    return next((a for a in BASE_ACTIONS if a.id == action_id), None)
