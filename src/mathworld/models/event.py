"""世界事件模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mathworld.models.effect import Effect


class EventType(str, Enum):
    DIALOGUE = "dialogue"
    TRADE = "trade"
    COMBAT = "combat"
    BETRAYAL = "betrayal"
    ALLIANCE = "alliance"
    DEATH = "death"
    DISCOVERY = "discovery"
    NATURAL_DISASTER = "natural_disaster"
    PLAGUE = "plague"
    WAR_DECLARED = "war_declared"
    CUSTOM = "custom"


class GameEvent(BaseModel):
    """已发生的事件，创建后不可修改。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="事件 ID")
    type: EventType = Field(description="事件类型")
    timestamp: int = Field(description="发生时的回合数")
    participants: tuple[str, ...] = Field(default=(), description="参与者角色 ID")
    location: str = Field(default="global", description="发生地点 ID，全局事件为 'global'")
    description: str = Field(default="", description="事件描述")
    effects: tuple[Effect, ...] = Field(default=(), description="已应用的效果")
    is_public: bool = Field(default=False, description="是否公开（会引发流言）")
    witnesses: tuple[str, ...] = Field(default=(), description="目击者角色 ID")
