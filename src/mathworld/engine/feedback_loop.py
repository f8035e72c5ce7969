"""反馈循环：把被选择的行动转化为世界变化，并传播其余波。

选择 → 效果 → 事件 → 目击者评价 → 流言，数值变化只以定性描述的形式对外呈现。
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass

from mathworld.config.settings import KernelConfig
from mathworld.engine.instability import leading_powers
from mathworld.models.action import ActionCategory, Choice
from mathworld.models.character import InterpretedEvent
from mathworld.models.effect import SELF, SELF_TARGET, TARGET, Effect
from mathworld.models.event import EventType, GameEvent
from mathworld.models.world import InstabilityType
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import new_id

logger = logging.getLogger(__name__)

RUMOR_PREFIX = "传闻："

_CATEGORY_EVENT_TYPES: dict[ActionCategory, EventType] = {
    ActionCategory.COMBAT: EventType.COMBAT,
    ActionCategory.ECONOMIC: EventType.TRADE,
    ActionCategory.SOCIAL: EventType.DIALOGUE,
}

_PUBLIC_CATEGORIES = frozenset({ActionCategory.COMBAT, ActionCategory.ECONOMIC})


@dataclass
class AccumulatedChange:
    """某个对象某个字段在本回合内的累计变化。"""

    target: str
    field: str
    total_change: float = 0.0
    change_count: int = 0
    last_timestamp: int = 0


@dataclass(frozen=True)
class Threshold:
    """环境阈值：条件成立的那一刻生成一个无参与者的全局事件。"""

    id: InstabilityType
    check: Callable[[WorldState], bool]
    event_type: EventType
    description: str


class FeedbackLoop:
    """行动落地与余波传播。"""

    def __init__(
        self,
        world: WorldState,
        config: KernelConfig | None = None,
        rng: random.Random | None = None,
        is_active: Callable[[str], bool] | None = None,
    ):
        self.world = world
        self.config = config or world.config
        self.rng = rng or world.rng
        # 判定角色能否行动、目击与听闻；默认所有角色都在场
        self.is_active = is_active or (lambda character_id: True)
        self._accumulated: dict[tuple[str, str], AccumulatedChange] = {}
        self._active_thresholds: set[InstabilityType] = set()
        self.thresholds = self._build_thresholds()

    def _build_thresholds(self) -> list[Threshold]:
        limits = self.config.thresholds

        def power_vacuum(world: WorldState) -> bool:
            powers = leading_powers(world, 1)
            return bool(powers) and powers[0] < limits.power_vacuum

        return [
            Threshold(
                id=InstabilityType.TRUST_COLLAPSE,
                check=lambda w: (
                    w.relations.get_stats().edge_count > 0
                    and w.relations.get_stats().avg_trust < limits.trust_collapse
                ),
                event_type=EventType.BETRAYAL,
                description="人与人之间的信任已经崩塌",
            ),
            Threshold(
                id=InstabilityType.FEAR_SPIKE,
                check=lambda w: w.relations.get_stats().avg_fear > limits.fear_spike,
                event_type=EventType.CUSTOM,
                description="恐惧笼罩了整个社会",
            ),
            Threshold(
                id=InstabilityType.POWER_VACUUM,
                check=power_vacuum,
                event_type=EventType.CUSTOM,
                description="权力出现了真空",
            ),
        ]

    # ──────────────────────────────────────────
    # 行动落地
    # ──────────────────────────────────────────

    def apply_choice(
        self, choice: Choice, actor_id: str, target_id: str | None = None
    ) -> GameEvent | None:
        """应用选项的全部效果并记录事件；行动者不存在或无法行动时返回 None。"""
        actor = self.world.get_character(actor_id)
        if actor is None or not self.is_active(actor_id):
            logger.debug("行动者不存在或无法行动，忽略选项 %s", choice.id)
            return None
        target = self.world.get_character(target_id) if target_id else None
        if target_id and target is None:
            logger.debug("目标 %s 不存在，只应用对行动者的效果", target_id)
            target_id = None

        applied: list[Effect] = []
        for effect in choice.action.effects:
            resolved = self._resolve(effect, actor_id, target_id)
            if resolved is None:
                continue
            if self.world.apply_effect(resolved):
                applied.append(resolved)
                self._track(resolved.target, resolved.field, resolved.change)

        action = choice.action
        text = choice.text or action.name
        description = f"{actor.name}对{target.name}{text}" if target else f"{actor.name}{text}"
        event = GameEvent(
            id=new_id("event"),
            type=action.event_type or _CATEGORY_EVENT_TYPES.get(action.category, EventType.CUSTOM),
            timestamp=self.world.time,
            participants=(actor_id, target_id) if target_id else (actor_id,),
            location=actor.location,
            description=description,
            effects=tuple(applied),
            is_public=action.category in _PUBLIC_CATEGORIES,
            witnesses=self._witnesses(actor.location, actor_id),
        )
        self.world.add_event(event)
        if target_id:
            self.world.relations.add_history(actor_id, target_id, event.id)
            self.world.relations.add_history(target_id, actor_id, event.id)

        self._propagate(event)
        logger.debug("事件 %s: %s", event.type.value, event.description)
        return event

    @staticmethod
    def _resolve(effect: Effect, actor_id: str, target_id: str | None) -> Effect | None:
        if effect.target == SELF:
            return effect.resolved(actor_id)
        if effect.target == TARGET:
            return effect.resolved(target_id) if target_id else None
        if effect.target == SELF_TARGET:
            return effect.resolved(f"{actor_id}:{target_id}") if target_id else None
        return effect

    def _witnesses(self, location_id: str, actor_id: str) -> tuple[str, ...]:
        if not location_id:
            return ()
        others = [
            c.id
            for c in self.world.get_characters_at(location_id)
            if c.id != actor_id and self.is_active(c.id)
        ]
        return tuple(others[: self.config.max_witnesses])

    # ──────────────────────────────────────────
    # 余波
    # ──────────────────────────────────────────

    def _propagate(self, event: GameEvent) -> None:
        for witness_id in event.witnesses:
            if witness_id in event.participants:
                continue
            for participant_id in event.participants:
                self._evaluate_witnessed(witness_id, participant_id, event)

        if event.is_public and event.participants:
            self._spread_rumor(event)

    def _evaluate_witnessed(self, witness_id: str, actor_id: str, event: GameEvent) -> None:
        witness = self.world.get_character(witness_id)
        if witness is None:
            return

        trust_change = 0.0
        respect_change = 0.0
        match event.type:
            case EventType.BETRAYAL:
                trust_change = -0.2
                respect_change = -0.1
            case EventType.COMBAT:
                if witness.personality.morality > 0.6:
                    trust_change = -0.1
                if witness.personality.courage > 0.6:
                    respect_change = 0.05
            case EventType.TRADE:
                trust_change = 0.02

        if trust_change or respect_change:
            self.world.relations.modify_relation(
                witness_id, actor_id, trust=trust_change, respect=respect_change
            )
            key = f"{witness_id}:{actor_id}"
            if trust_change:
                self._track(key, "trust", trust_change)
            if respect_change:
                self._track(key, "respect", respect_change)

    def _spread_rumor(self, event: GameEvent) -> None:
        rumor = self.config.rumor
        informed = self.world.relations.simulate_rumor_spread(
            event.participants[0],
            rumor.hops,
            lambda relation: rumor.base_probability + relation.trust * rumor.trust_weight,
            rng=self.rng,
        )
        already_know = set(event.participants) | set(event.witnesses)
        for character_id in sorted(informed - already_know):
            character = self.world.get_character(character_id)
            if character is None or not self.is_active(character_id):
                continue
            character.memory.append(
                InterpretedEvent(
                    event_id=event.id,
                    interpretation=f"{RUMOR_PREFIX}{event.description}",
                    timestamp=self.world.time,
                )
            )

    # ──────────────────────────────────────────
    # 环境阈值
    # ──────────────────────────────────────────

    def check_thresholds(self) -> list[GameEvent]:
        """检查环境阈值；只在条件由不成立变为成立时生成事件。"""
        triggered: list[GameEvent] = []
        for threshold in self.thresholds:
            if not threshold.check(self.world):
                self._active_thresholds.discard(threshold.id)
                continue
            if threshold.id in self._active_thresholds:
                continue
            self._active_thresholds.add(threshold.id)
            event = GameEvent(
                id=new_id("event"),
                type=threshold.event_type,
                timestamp=self.world.time,
                location="global",
                description=threshold.description,
                is_public=True,
            )
            self.world.add_event(event)
            triggered.append(event)
            logger.info("越过阈值 %s: %s", threshold.id.value, threshold.description)
        return triggered

    # ──────────────────────────────────────────
    # 累计变化
    # ──────────────────────────────────────────

    def _track(self, target: str, field: str, change: float) -> None:
        key = (target, field)
        entry = self._accumulated.get(key)
        if entry is None:
            entry = self._accumulated[key] = AccumulatedChange(target=target, field=field)
        entry.total_change += change
        entry.change_count += 1
        entry.last_timestamp = self.world.time

    def get_accumulated_changes(self) -> list[AccumulatedChange]:
        return list(self._accumulated.values())

    def get_accumulated_change_summary(self, character_id: str) -> list[str]:
        """把与角色相关的累计变化翻译成定性描述（不含数字）。"""
        summaries: list[str] = []
        for entry in self._accumulated.values():
            if character_id not in entry.target.split(":"):
                continue
            total = entry.total_change
            match entry.field:
                case "trust" if abs(total) > 0.1:
                    summaries.append(
                        "身边的人更加信任你了" if total > 0 else "人们看你的目光冷了下来"
                    )
                case "fear" if total > 0.1:
                    summaries.append("恐惧的阴影悄然蔓延")
                case "respect" if abs(total) > 0.1:
                    summaries.append("你的所作所为赢得了尊重" if total > 0 else "你的名声受损了")
        return summaries

    def reset_accumulated_changes(self) -> None:
        self._accumulated.clear()
