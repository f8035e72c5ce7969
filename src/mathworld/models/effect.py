"""条件与效果模型。

条件和效果的 ``field`` 在构造时按类型校验，拼错的字段名会直接抛出 ValidationError。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mathworld.models.character import EmotionField, PersonalityField
from mathworld.models.relation import RelationField


class ConditionType(str, Enum):
    STAT = "stat"
    RELATION = "relation"
    RESOURCE = "resource"
    LOCATION = "location"
    EVENT = "event"  # 无法求值，恒为 False
    CUSTOM = "custom"  # 同上


class Operator(str, Enum):
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    EQ = "=="
    NE = "!="


class EffectType(str, Enum):
    EMOTION = "emotion"
    RELATION = "relation"
    RESOURCE = "resource"
    STAT = "stat"


# 效果目标的符号写法，由 FeedbackLoop 解析
SELF = "self"
TARGET = "target"
SELF_TARGET = "self:target"

RESOURCES_FIELD = "resources"
POWER_FIELD = "power"

_STAT_CONDITION_FIELDS: frozenset[str] = frozenset(
    [f.value for f in PersonalityField]
    + [f.value for f in EmotionField]
    + [POWER_FIELD, RESOURCES_FIELD]
)
_RELATION_FIELDS: frozenset[str] = frozenset(f.value for f in RelationField)
_EFFECT_FIELDS: dict[EffectType, frozenset[str]] = {
    EffectType.EMOTION: frozenset(f.value for f in EmotionField),
    EffectType.RELATION: _RELATION_FIELDS,
    EffectType.RESOURCE: frozenset({RESOURCES_FIELD}),
    EffectType.STAT: frozenset({POWER_FIELD}),
}


class Condition(BaseModel):
    """行动的前置条件。"""

    model_config = ConfigDict(frozen=True)

    type: ConditionType = Field(description="条件类型")
    operator: Operator = Field(description="比较运算符")
    value: float | str = Field(description="比较值；地点条件使用地点 ID")
    field: str | None = Field(default=None, description="stat / relation 条件所读的字段")

    @model_validator(mode="after")
    def _check_field(self) -> Condition:
        match self.type:
            case ConditionType.STAT:
                if self.field not in _STAT_CONDITION_FIELDS:
                    raise ValueError(f"stat 条件的字段无效: {self.field!r}")
            case ConditionType.RELATION:
                if self.field not in _RELATION_FIELDS:
                    raise ValueError(f"relation 条件的字段无效: {self.field!r}")
            case ConditionType.RESOURCE:
                if self.field not in (None, RESOURCES_FIELD):
                    raise ValueError(f"resource 条件的字段无效: {self.field!r}")
        return self


class Effect(BaseModel):
    """对世界状态的一次修改。"""

    model_config = ConfigDict(frozen=True)

    type: EffectType = Field(description="效果类型")
    target: str = Field(
        description="作用对象：角色 ID，或关系键 'fromId:toId'；模板中可用 self / target / self:target"
    )
    field: str = Field(description="被修改的字段")
    change: float = Field(description="变化量（相对）或新值（绝对）")
    is_relative: bool = Field(default=True, description="True 为增量，False 为覆盖")

    @model_validator(mode="after")
    def _check_field(self) -> Effect:
        allowed = _EFFECT_FIELDS[self.type]
        if self.field not in allowed:
            raise ValueError(
                f"{self.type.value} 效果的字段无效: {self.field!r}，可选 {sorted(allowed)}"
            )
        return self

    def resolved(self, target: str) -> Effect:
        """返回替换了作用对象的副本。"""
        return self.model_copy(update={"target": target})
