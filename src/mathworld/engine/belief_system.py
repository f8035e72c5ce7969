"""信念与主观解读。

人依据信念而非事实行事：同一事件在不同角色眼中有不同含义，后来的证据还会改写旧记忆。
"""

from __future__ import annotations

import logging
from enum import Enum

from mathworld.models.character import (
    Character,
    EmotionField,
    InterpretedEvent,
    add_memory,
    belief_key,
    update_emotion,
)
from mathworld.models.event import EventType, GameEvent
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp

logger = logging.getLogger(__name__)

DEFAULT_BELIEF = 0.5
DEFAULT_STRENGTH = 0.1
RECONSTRUCT_WINDOW = 10

GOOD_INTENT_NOTE = "（想必是出于好意）"
DECEIVED_NOTE = "（原来是被骗了！）"
HEARSAY_PREFIX = "据传闻，"
_BETRAYAL_WORDS = ("背叛", "谎言", "欺骗")


class InterpretationBias(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    SUSPICIOUS = "suspicious"
    FEARFUL = "fearful"
    NEUTRAL = "neutral"


class Claim(str, Enum):
    """角色之间传递的说法。"""

    TRUSTWORTHY = "trustworthy"
    DANGEROUS = "dangerous"
    LIAR = "liar"
    ALLY = "ally"


_BIAS_NOTES: dict[InterpretationBias, str] = {
    InterpretationBias.POSITIVE: GOOD_INTENT_NOTE,
    InterpretationBias.NEGATIVE: "（分明居心不良）",
    InterpretationBias.SUSPICIOUS: "（其中必有隐情）",
    InterpretationBias.FEARFUL: "（有危险的事正在发生）",
    InterpretationBias.NEUTRAL: "",
}

# 说法 → (信念特质, 证据)
_CLAIM_EVIDENCE: dict[Claim, tuple[str, float]] = {
    Claim.TRUSTWORTHY: ("trustworthy", 0.5),
    Claim.DANGEROUS: ("dangerous", 0.5),
    Claim.LIAR: ("honest", -0.5),
    Claim.ALLY: ("ally", 0.5),
}


def shift_belief(current: float, evidence: float, strength: float) -> float:
    """越接近 0.5 越容易被说服，越接近确信越难动摇。"""
    updated = current + evidence * strength * (1 - abs(current - 0.5) * 2)
    return clamp(updated, 0.0, 1.0)


class BeliefSystem:
    """角色的主观概率与事件解读。"""

    def __init__(self, world: WorldState):
        self.world = world

    # ──────────────────────────────────────────
    # 信念
    # ──────────────────────────────────────────

    def get_belief(self, character: Character, subject_id: str, trait: str) -> float:
        return character.beliefs.get(belief_key(subject_id, trait), DEFAULT_BELIEF)

    def update_belief(
        self,
        character: Character,
        subject_id: str,
        trait: str,
        evidence: float,
        strength: float = DEFAULT_STRENGTH,
    ) -> float:
        key = belief_key(subject_id, trait)
        current = character.beliefs.get(key, DEFAULT_BELIEF)
        character.beliefs[key] = shift_belief(current, evidence, strength)
        return character.beliefs[key]

    def share_information(
        self, speaker: Character, listener: Character, about_id: str, claim: Claim
    ) -> float:
        """说话者向听者传递关于某人的说法；可信度取决于听者对说话者的信任。"""
        relation = self.world.relations.find_relation(listener.id, speaker.id)
        trust = relation.trust if relation else 0.0
        credibility = (trust + 1) / 2
        trait, evidence = _CLAIM_EVIDENCE[Claim(claim)]
        return self.update_belief(listener, about_id, trait, evidence, credibility * 0.15)

    # ──────────────────────────────────────────
    # 事件解读
    # ──────────────────────────────────────────

    def determine_bias(self, character: Character, event: GameEvent) -> InterpretationBias:
        if character.emotion.fear > 0.5:
            return InterpretationBias.FEARFUL
        if character.emotion.anger > 0.5:
            return InterpretationBias.NEGATIVE

        others = [p for p in event.participants if p != character.id]
        trusts = []
        for participant_id in others:
            relation = self.world.relations.find_relation(character.id, participant_id)
            trusts.append(relation.trust if relation else 0.0)
        avg_trust = sum(trusts) / max(1, len(trusts))

        if avg_trust < -0.3:
            return InterpretationBias.SUSPICIOUS
        if avg_trust > 0.3:
            return InterpretationBias.POSITIVE
        return InterpretationBias.NEUTRAL

    def interpret_event(
        self, character: Character, event: GameEvent, is_direct_witness: bool = True
    ) -> InterpretedEvent:
        """从角色视角解读事件（不修改角色）。"""
        bias = self.determine_bias(character, event)
        prefix = "" if is_direct_witness else HEARSAY_PREFIX
        return InterpretedEvent(
            event_id=event.id,
            interpretation=f"{prefix}{event.description}{_BIAS_NOTES[bias]}",
            emotional_impact=self._emotional_impact(character, event, bias),
            timestamp=self.world.time,
        )

    def record_interpretation(
        self, character: Character, event: GameEvent, is_direct_witness: bool = True
    ) -> InterpretedEvent:
        """解读事件、写入记忆并作用情绪影响。"""
        memory = self.interpret_event(character, event, is_direct_witness)
        add_memory(character, memory)
        return memory

    @staticmethod
    def _emotional_impact(
        character: Character, event: GameEvent, bias: InterpretationBias
    ) -> dict[EmotionField, float]:
        timid = character.personality.courage < 0.5
        impact: dict[EmotionField, float] = {}
        match event.type:
            case EventType.BETRAYAL:
                impact[EmotionField.TRUST] = -0.2
                impact[EmotionField.ANGER] = 0.3 if bias is InterpretationBias.NEGATIVE else 0.1
            case EventType.COMBAT:
                impact[EmotionField.FEAR] = 0.2 if timid else 0.0
            case EventType.ALLIANCE:
                impact[EmotionField.JOY] = 0.1 if bias is InterpretationBias.POSITIVE else 0.0
                impact[EmotionField.FEAR] = 0.1 if bias is InterpretationBias.FEARFUL else -0.05
            case EventType.DEATH:
                impact[EmotionField.FEAR] = 0.15
                impact[EmotionField.DESPAIR] = 0.1
            case EventType.PLAGUE | EventType.NATURAL_DISASTER:
                impact[EmotionField.FEAR] = 0.3
            case EventType.WAR_DECLARED:
                impact[EmotionField.FEAR] = 0.4 if timid else 0.1

        if bias is InterpretationBias.FEARFUL:
            impact[EmotionField.FEAR] = impact.get(EmotionField.FEAR, 0.0) + 0.1
        return impact

    def reconstruct_memory(self, character: Character, new_evidence: str) -> int:
        """新证据揭示背叛或谎言时，把近期"好意"的记忆改写为受骗，返回改写条数。"""
        if not any(word in new_evidence for word in _BETRAYAL_WORDS):
            return 0

        rewritten = 0
        for memory in character.memory[-RECONSTRUCT_WINDOW:]:
            if GOOD_INTENT_NOTE not in memory.interpretation:
                continue
            memory.interpretation = memory.interpretation.replace(GOOD_INTENT_NOTE, DECEIVED_NOTE)
            impact = memory.emotional_impact
            impact[EmotionField.ANGER] = impact.get(EmotionField.ANGER, 0.0) + 0.2
            update_emotion(character, {EmotionField.ANGER: 0.2})
            rewritten += 1

        if rewritten:
            logger.debug("%s 改写了 %d 条记忆", character.name, rewritten)
        return rewritten

    def get_perception(self, character: Character, target_id: str) -> str:
        """角色对某人的整体印象。"""
        target = self.world.get_character(target_id)
        if target is None:
            return "不认识"

        relation = self.world.relations.find_relation(character.id, target_id)
        impressions: list[str] = []
        if relation is not None:
            if relation.trust > 0.5:
                impressions.append("值得信赖的人")
            elif relation.trust < -0.3:
                impressions.append("不可信的家伙")
            if relation.fear > 0.5:
                impressions.append("令人畏惧的存在")
            if relation.respect > 0.5:
                impressions.append("值得尊敬的人物")
            elif relation.respect < -0.3:
                impressions.append("可鄙之人")

        honest = self.get_belief(character, target_id, "honest")
        if honest > 0.7:
            impressions.append("诚实的人")
        elif honest < 0.3:
            impressions.append("骗子")
        if self.get_belief(character, target_id, "dangerous") > 0.7:
            impressions.append("危险人物")

        return "、".join(impressions) if impressions else "没有特别的印象"
