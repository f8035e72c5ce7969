"""世界状态：时间、角色、地点、事件历史与全局标志。

跨系统的角色/关系修改都经由 ``apply_effect`` 进入，未知的角色 ID 一律静默忽略。
"""

from __future__ import annotations

import logging
import random

from mathworld.config.settings import KernelConfig
from mathworld.models.character import Character, InterpretedEvent, add_memory, decay_emotions
from mathworld.models.effect import Effect, EffectType
from mathworld.models.event import GameEvent
from mathworld.models.location import Location
from mathworld.models.world import GlobalState, WorldSnapshot, season_for_day
from mathworld.state.relation_graph import RelationGraph
from mathworld.utils.numeric import clamp

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


class WorldState:
    """模拟世界的唯一共享状态。"""

    def __init__(
        self,
        config: KernelConfig | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ):
        self.config = config or KernelConfig()
        self.rng = rng or random.Random(seed)
        self.time = 0
        self.global_state = GlobalState()
        self.relations = RelationGraph()
        self._characters: dict[str, Character] = {}
        self._locations: dict[str, Location] = {}
        self._history: list[GameEvent] = []

    # ──────────────────────────────────────────
    # 角色与地点
    # ──────────────────────────────────────────

    def add_character(self, character: Character) -> None:
        self._characters[character.id] = character

    def get_character(self, character_id: str) -> Character | None:
        return self._characters.get(character_id)

    def get_all_characters(self) -> list[Character]:
        return list(self._characters.values())

    def get_characters_at(self, location_id: str) -> list[Character]:
        return [c for c in self._characters.values() if c.location == location_id]

    def remove_character(self, character_id: str) -> Character | None:
        """从世界中移除角色；关系边保留。"""
        return self._characters.pop(character_id, None)

    def move_character(self, character_id: str, location_id: str) -> bool:
        character = self._characters.get(character_id)
        if character is None or location_id not in self._locations:
            logger.debug("移动被忽略: %s -> %s", character_id, location_id)
            return False
        character.location = location_id
        return True

    def add_location(self, location: Location) -> None:
        self._locations[location.id] = location

    def get_location(self, location_id: str) -> Location | None:
        return self._locations.get(location_id)

    def get_all_locations(self) -> list[Location]:
        return list(self._locations.values())

    # ──────────────────────────────────────────
    # 时间
    # ──────────────────────────────────────────

    def advance_time(self) -> None:
        """推进一回合：日期、季节、情绪衰减。"""
        self.time += 1
        day = self.global_state.day_of_year + 1
        if day > DAYS_PER_YEAR:
            day = 1
        self.global_state.day_of_year = day
        season = season_for_day(day)
        if season != self.global_state.season:
            logger.info("季节变为 %s（第 %d 天）", season.value, day)
        self.global_state.season = season

        for character in self._characters.values():
            decay_emotions(character, self.config.emotion_retention)

    def update_global_state(self, **changes) -> None:
        """修改全局标志，例如 ``update_global_state(war_active=True)``。

        新值按 GlobalState 重新校验，越界或类型不符时抛出 ValidationError（ValueError 子类）。
        """
        for key in changes:
            if key not in GlobalState.model_fields:
                raise ValueError(f"未知的全局状态字段: {key}")
        self.global_state = GlobalState.model_validate(
            {**self.global_state.model_dump(), **changes}
        )

    # ──────────────────────────────────────────
    # 事件
    # ──────────────────────────────────────────

    def add_event(self, event: GameEvent) -> None:
        """追加事件，并在每个目击者的记忆里写下第一人称记录。"""
        self._history.append(event)
        for witness_id in event.witnesses:
            witness = self._characters.get(witness_id)
            if witness is None:
                continue
            add_memory(
                witness,
                InterpretedEvent(
                    event_id=event.id,
                    interpretation=event.description,
                    timestamp=self.time,
                ),
            )

    def get_event(self, event_id: str) -> GameEvent | None:
        return next((e for e in self._history if e.id == event_id), None)

    def get_recent_events(self, count: int = 10) -> list[GameEvent]:
        if count <= 0:
            return []
        return self._history[-count:]

    def get_events_by_participant(self, character_id: str) -> list[GameEvent]:
        return [e for e in self._history if character_id in e.participants]

    @property
    def history(self) -> list[GameEvent]:
        return list(self._history)

    # ──────────────────────────────────────────
    # 效果
    # ──────────────────────────────────────────

    def apply_effect(self, effect: Effect) -> bool:
        """应用一条效果，返回是否真正生效。"""
        match effect.type:
            case EffectType.EMOTION:
                applied = self._apply_emotion(effect)
            case EffectType.RELATION:
                applied = self._apply_relation(effect)
            case EffectType.RESOURCE:
                applied = self._apply_resource(effect)
            case EffectType.STAT:
                applied = self._apply_stat(effect)
            case _:
                applied = False
        if not applied:
            logger.debug("效果被忽略: %s %s -> %s", effect.type.value, effect.field, effect.target)
        return applied

    def _apply_emotion(self, effect: Effect) -> bool:
        character = self._characters.get(effect.target)
        if character is None:
            return False
        current = getattr(character.emotion, effect.field)
        value = current + effect.change if effect.is_relative else effect.change
        setattr(character.emotion, effect.field, clamp(value, 0.0, 1.0))
        return True

    def _apply_relation(self, effect: Effect) -> bool:
        from_id, sep, to_id = effect.target.partition(":")
        if not sep or not from_id or not to_id:
            return False
        if from_id not in self._characters or to_id not in self._characters:
            return False
        if effect.is_relative:
            self.relations.modify_relation(from_id, to_id, **{effect.field: effect.change})
        else:
            self.relations.update_relation(from_id, to_id, **{effect.field: effect.change})
        return True

    def _apply_resource(self, effect: Effect) -> bool:
        character = self._characters.get(effect.target)
        if character is None:
            return False
        amount = round(effect.change)
        character.resources = character.resources + amount if effect.is_relative else amount
        return True

    def _apply_stat(self, effect: Effect) -> bool:
        character = self._characters.get(effect.target)
        if character is None:
            return False
        amount = round(effect.change)
        character.power = character.power + amount if effect.is_relative else amount
        return True

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            time=self.time,
            global_state=self.global_state.model_copy(),
            character_count=len(self._characters),
            location_count=len(self._locations),
            event_count=len(self._history),
            recent_event_ids=[e.id for e in self.get_recent_events(5)],
        )
