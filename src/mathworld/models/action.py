"""行动模板与选项模型。"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mathworld.models.effect import Condition, Effect
from mathworld.models.event import EventType


class ActionCategory(str, Enum):
    DIALOGUE = "dialogue"
    PHYSICAL = "physical"
    SOCIAL = "social"
    ECONOMIC = "economic"
    COMBAT = "combat"


class ActionWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    self_benefit: float = Field(default=0.5, description="自身收益权重")
    target_benefit: float = Field(default=0.0, description="目标收益权重")
    risk_factor: float = Field(default=0.5, description="风险系数")


class Action(BaseModel):
    """行动模板（不可变）。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="行动 ID")
    name: str = Field(description="行动名称")
    category: ActionCategory = Field(description="行动类别")
    conditions: tuple[Condition, ...] = Field(default=(), description="前置条件")
    effects: tuple[Effect, ...] = Field(default=(), description="效果模板")
    base_success_rate: float = Field(default=1.0, ge=0.0, le=1.0, description="基础成功率")
    weights: ActionWeights = Field(default_factory=ActionWeights, description="效用权重")
    event_type: EventType | None = Field(
        default=None, description="显式指定的事件类型；为空时按类别映射"
    )


class Choice(BaseModel):
    """呈现给决策者的一个选项。"""

    id: str = Field(description="选项 ID")
    text: str = Field(default="", description="选项文本")
    action: Action = Field(description="对应的行动")
    context: dict[str, Any] = Field(default_factory=dict, description="附加上下文")
    calculated_success: float | None = Field(default=None, description="计算出的成功率")
    calculated_utility: float | None = Field(default=None, description="计算出的效用")

    @classmethod
    def for_action(cls, action: Action, **kwargs: Any) -> Choice:
        return cls(id=f"choice_{action.id}", text=action.name, action=action, **kwargs)
