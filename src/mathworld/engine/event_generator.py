"""基于不稳定信号的概率性世界事件生成。"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from mathworld.config.settings import KernelConfig
from mathworld.engine.instability import detect_instability
from mathworld.models.character import Character
from mathworld.models.effect import POWER_FIELD, Effect, EffectType
from mathworld.models.event import EventType, GameEvent
from mathworld.models.world import InstabilityType
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp, new_id

logger = logging.getLogger(__name__)

ALLIANCE_TRUST_THRESHOLD = 0.4

_FORCED_DESCRIPTIONS: dict[EventType, str] = {
    EventType.WAR_DECLARED: "战鼓声响彻四方",
    EventType.PLAGUE: "瘟疫的阴影笼罩大地",
    EventType.NATURAL_DISASTER: "大自然发怒了",
    EventType.BETRAYAL: "有人的刀锋指向了背后",
    EventType.ALLIANCE: "两只手紧紧握在了一起",
    EventType.DEATH: "一个生命走到了尽头",
}


@dataclass(frozen=True)
class EventTrigger:
    """事件触发器：门槛条件 + 基础概率 + 修正项 + 事件构造。"""

    id: str
    name: str
    condition: Callable[[WorldState], bool]
    base_probability: float
    build: Callable[[WorldState], GameEvent]
    modifiers: tuple[Callable[[WorldState], float], ...] = field(default=())


def _location_of(world: WorldState, participants: Sequence[str]) -> str:
    for character_id in participants:
        character = world.get_character(character_id)
        if character is not None and character.location:
            return character.location
    return "global"


def _make_event(
    world: WorldState,
    event_type: EventType,
    participants: Sequence[str],
    description: str,
    *,
    is_public: bool = True,
    location: str | None = None,
) -> GameEvent:
    return GameEvent(
        id=new_id("event"),
        type=event_type,
        timestamp=world.time,
        participants=tuple(participants),
        location=location or _location_of(world, participants),
        description=description,
        is_public=is_public,
    )


# ──────────────────────────────────────────
# 内置触发器
# ──────────────────────────────────────────


def _top_two(world: WorldState) -> tuple[Character, Character] | None:
    ids = world.relations.get_most_influential(2)
    if len(ids) < 2:
        return None
    leader = world.get_character(ids[0])
    challenger = world.get_character(ids[1])
    if leader is None or challenger is None:
        return None
    return leader, challenger


def _power_challenge_possible(world: WorldState) -> bool:
    pair = _top_two(world)
    return pair is not None and pair[1].power >= pair[0].power * 0.7


def _challenger_ambition(world: WorldState) -> float:
    pair = _top_two(world)
    return pair[1].personality.ambition * 0.2 if pair else 0.0


def _build_power_challenge(world: WorldState) -> GameEvent:
    leader, challenger = _top_two(world)
    return _make_event(
        world,
        EventType.CUSTOM,
        [challenger.id, leader.id],
        f"{challenger.name}向{leader.name}的权力发起了挑战",
    )


def _would_betray(character: Character) -> bool:
    p = character.personality
    return p.ambition > 0.7 and p.loyalty < 0.3 and character.power > 20


def _build_betrayal_plot(world: WorldState) -> GameEvent:
    betrayer = next(c for c in world.get_all_characters() if _would_betray(c))
    return _make_event(
        world, EventType.BETRAYAL, [betrayer.id], "阴谋在暗处蠢蠢欲动", is_public=False
    )


def _build_alliance(world: WorldState) -> GameEvent:
    clusters = world.relations.get_clusters(ALLIANCE_TRUST_THRESHOLD)
    largest = max(clusters, key=len)
    return _make_event(world, EventType.ALLIANCE, largest, "新的同盟已经结成的消息不胫而走")


def _scandal_target(world: WorldState) -> Character | None:
    return next(
        (
            c
            for c in world.get_all_characters()
            if c.power > 30 and world.relations.get_enemies(c.id)
        ),
        None,
    )


def _build_scandal(world: WorldState) -> GameEvent:
    target = _scandal_target(world)
    return _make_event(world, EventType.CUSTOM, [target.id], f"关于{target.name}的秘密正在泄露")


def default_triggers() -> list[EventTrigger]:
    return [
        EventTrigger(
            id="power_challenge",
            name="权力挑战",
            condition=_power_challenge_possible,
            base_probability=0.1,
            modifiers=(_challenger_ambition,),
            build=_build_power_challenge,
        ),
        EventTrigger(
            id="betrayal_plot",
            name="背叛阴谋",
            condition=lambda w: any(_would_betray(c) for c in w.get_all_characters()),
            base_probability=0.05,
            modifiers=(lambda w: 0.1 if w.relations.get_stats().avg_trust < 0 else 0.0,),
            build=_build_betrayal_plot,
        ),
        EventTrigger(
            id="alliance_formation",
            name="结盟",
            condition=lambda w: bool(w.relations.get_clusters(ALLIANCE_TRUST_THRESHOLD)),
            base_probability=0.15,
            build=_build_alliance,
        ),
        EventTrigger(
            id="economic_crisis",
            name="经济危机",
            condition=lambda w: w.global_state.economy_index < 0.7,
            base_probability=0.2,
            modifiers=(lambda w: (1 - w.global_state.economy_index) * 0.3,),
            build=lambda w: _make_event(
                w, EventType.CUSTOM, [], "市场动荡，物价起伏不定", location="global"
            ),
        ),
        EventTrigger(
            id="scandal",
            name="丑闻",
            condition=lambda w: _scandal_target(w) is not None,
            base_probability=0.08,
            build=_build_scandal,
        ),
    ]


class EventGenerator:
    """每回合根据世界状况掷骰生成事件。"""

    def __init__(
        self,
        world: WorldState,
        config: KernelConfig | None = None,
        rng: random.Random | None = None,
        triggers: list[EventTrigger] | None = None,
        is_active: Callable[[str], bool] | None = None,
    ):
        self.world = world
        self.config = config or world.config
        self.rng = rng or world.rng
        self.is_active = is_active or (lambda character_id: True)
        self.triggers = triggers if triggers is not None else default_triggers()
        self._recent: set[str] = set()

    def detect_instability(self) -> list[InstabilityType]:
        return detect_instability(self.world, self.config.thresholds)

    def trigger_probability(self, trigger: EventTrigger, instability_count: int) -> float:
        """clamp(基础 + 修正, 0, 上限) × (1 + 系数·不稳定信号数)。"""
        probability = trigger.base_probability + sum(m(self.world) for m in trigger.modifiers)
        probability = clamp(probability, 0.0, self.config.trigger_probability_cap)
        return probability * (1 + self.config.instability_bonus * instability_count)

    def generate_events(self) -> list[GameEvent]:
        events: list[GameEvent] = []
        instabilities = self.detect_instability()

        for trigger in self.triggers:
            if trigger.id in self._recent or not trigger.condition(self.world):
                continue
            probability = self.trigger_probability(trigger, len(instabilities))
            if self.rng.random() >= probability:
                continue
            event = trigger.build(self.world)
            self.world.add_event(event)
            self._recent.add(trigger.id)
            events.append(event)
            logger.info("触发事件 [%s] %s", trigger.name, event.description)

        return events

    def clear_recent_events(self) -> None:
        """新回合开始时调用，允许触发器再次触发。"""
        self._recent.clear()

    def force_event(self, event_type: EventType, participants: Sequence[str] = ()) -> GameEvent:
        """无视条件与概率，直接生成一个事件。"""
        event = _make_event(
            self.world,
            event_type,
            participants,
            _FORCED_DESCRIPTIONS.get(event_type, "有什么东西改变了"),
        )
        self.world.add_event(event)
        logger.info("强制事件 %s: %s", event_type.value, event.description)
        return event

    def generate_npc_actions(self) -> None:
        """NPC 的自发小动作：野心家积累权力，狡诈者拉拢人心。"""
        npcs = [
            c
            for c in self.world.get_all_characters()
            if not c.is_player and self.is_active(c.id)
        ]
        for npc in npcs:
            if self.rng.random() >= self.config.npc_action_chance:
                continue
            if npc.personality.ambition > 0.7:
                self.world.apply_effect(
                    Effect(type=EffectType.STAT, target=npc.id, field=POWER_FIELD, change=1)
                )
            if npc.personality.cunning > 0.7 and self.rng.random() < 0.3:
                others = [c for c in npcs if c.id != npc.id]
                if others:
                    target = self.rng.choice(others)
                    self.world.relations.modify_relation(target.id, npc.id, trust=0.05)
