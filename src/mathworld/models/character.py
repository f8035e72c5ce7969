"""角色相关数据模型与基础操作。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mathworld.utils.numeric import clamp, new_id


class PersonalityField(str, Enum):
    """性格维度。"""

    AMBITION = "ambition"
    LOYALTY = "loyalty"
    MORALITY = "morality"
    COURAGE = "courage"
    CUNNING = "cunning"


class EmotionField(str, Enum):
    """情绪维度。"""

    TRUST = "trust"
    FEAR = "fear"
    ANGER = "anger"
    JOY = "joy"
    DESPAIR = "despair"


# 每回合衰减的情绪（信任不衰减）
DECAYING_EMOTIONS: tuple[EmotionField, ...] = (
    EmotionField.ANGER,
    EmotionField.FEAR,
    EmotionField.JOY,
    EmotionField.DESPAIR,
)


class Personality(BaseModel):
    """角色性格（静态，内核从不修改）。"""

    model_config = ConfigDict(frozen=True)

    ambition: float = Field(default=0.5, ge=0.0, le=1.0, description="野心")
    loyalty: float = Field(default=0.5, ge=0.0, le=1.0, description="忠诚")
    morality: float = Field(default=0.5, ge=0.0, le=1.0, description="道德")
    courage: float = Field(default=0.5, ge=0.0, le=1.0, description="勇气")
    cunning: float = Field(default=0.5, ge=0.0, le=1.0, description="狡诈")


class Emotion(BaseModel):
    """角色当前情绪，所有分量始终位于 [0, 1]。"""

    trust: float = Field(default=0.5, ge=0.0, le=1.0, description="信任")
    fear: float = Field(default=0.0, ge=0.0, le=1.0, description="恐惧")
    anger: float = Field(default=0.0, ge=0.0, le=1.0, description="愤怒")
    joy: float = Field(default=0.3, ge=0.0, le=1.0, description="喜悦")
    despair: float = Field(default=0.0, ge=0.0, le=1.0, description="绝望")


class InterpretedEvent(BaseModel):
    """角色记忆中的一条主观事件记录。"""

    event_id: str = Field(description="对应的事件 ID")
    interpretation: str = Field(description="角色对事件的理解")
    emotional_impact: dict[EmotionField, float] = Field(
        default_factory=dict, description="事件带来的情绪变化"
    )
    timestamp: int = Field(default=0, description="记录时的回合数")


class Character(BaseModel):
    """模拟中的一个角色。"""

    id: str = Field(description="角色唯一 ID")
    name: str = Field(description="角色名称")
    title: str = Field(default="", description="头衔")
    personality: Personality = Field(default_factory=Personality, description="性格")
    emotion: Emotion = Field(default_factory=Emotion, description="情绪")
    location: str = Field(default="", description="所在地点 ID")
    resources: int = Field(default=100, description="资源（整数）")
    power: int = Field(default=10, description="权力（整数）")
    memory: list[InterpretedEvent] = Field(default_factory=list, description="按时间排列的记忆")
    beliefs: dict[str, float] = Field(
        default_factory=dict, description="信念表，键为 'subject:trait'，值为 [0, 1] 的概率"
    )
    is_player: bool = Field(default=False, description="是否为玩家角色")


# ──────────────────────────────────────────
# 性格预设
# ──────────────────────────────────────────

PERSONALITY_PRESETS: dict[str, Personality] = {
    "noble": Personality(ambition=0.7, loyalty=0.6, morality=0.6, courage=0.7, cunning=0.5),
    "merchant": Personality(ambition=0.8, loyalty=0.4, morality=0.5, courage=0.3, cunning=0.8),
    "soldier": Personality(ambition=0.4, loyalty=0.8, morality=0.5, courage=0.9, cunning=0.3),
    "schemer": Personality(ambition=0.9, loyalty=0.2, morality=0.2, courage=0.4, cunning=0.9),
    "peasant": Personality(ambition=0.3, loyalty=0.6, morality=0.6, courage=0.4, cunning=0.3),
}


def create_character(
    name: str,
    *,
    id: str | None = None,
    title: str = "",
    preset: str | None = None,
    personality: Personality | dict | None = None,
    emotion: Emotion | dict | None = None,
    location: str = "",
    resources: int = 100,
    power: int = 10,
    is_player: bool = False,
) -> Character:
    """按默认值构造角色。

    ``preset`` 给出性格基线，``personality`` 中显式给出的维度会覆盖预设。
    """
    base: dict[str, float] = {}
    if preset is not None:
        if preset not in PERSONALITY_PRESETS:
            raise ValueError(f"未知的性格预设: {preset}")
        base = PERSONALITY_PRESETS[preset].model_dump()
    if isinstance(personality, Personality):
        base.update(personality.model_dump())
    elif personality:
        base.update(personality)

    if isinstance(emotion, Emotion):
        emotion_model = emotion.model_copy()
    else:
        emotion_model = Emotion.model_validate(emotion or {})

    return Character(
        id=id or new_id("char"),
        name=name,
        title=title,
        personality=Personality.model_validate(base),
        emotion=emotion_model,
        location=location,
        resources=resources,
        power=power,
        is_player=is_player,
    )


# ──────────────────────────────────────────
# 情绪与记忆
# ──────────────────────────────────────────


def update_emotion(character: Character, changes: dict[EmotionField, float]) -> None:
    """按增量修改情绪并截断到 [0, 1]。"""
    for field, delta in changes.items():
        name = EmotionField(field).value
        current = getattr(character.emotion, name)
        setattr(character.emotion, name, clamp(current + delta, 0.0, 1.0))


def decay_emotions(character: Character, retention: float) -> None:
    """情绪随时间回落；信任保持不变。"""
    for field in DECAYING_EMOTIONS:
        current = getattr(character.emotion, field.value)
        setattr(character.emotion, field.value, current * retention)


def add_memory(character: Character, memory: InterpretedEvent) -> None:
    """写入一条记忆，并把其中的情绪影响作用到角色身上。"""
    character.memory.append(memory)
    if memory.emotional_impact:
        update_emotion(character, memory.emotional_impact)


def dominant_emotion(character: Character) -> EmotionField:
    """返回当前最强烈的情绪（并列时取维度顺序靠前者）。"""
    return max(EmotionField, key=lambda f: getattr(character.emotion, f.value))


def memories_about(character: Character, event_ids: set[str]) -> list[InterpretedEvent]:
    """筛选与给定事件相关的记忆。"""
    return [m for m in character.memory if m.event_id in event_ids]


def belief_key(subject_id: str, trait: str) -> str:
    return f"{subject_id}:{trait}"
