"""世界全局状态模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


def season_for_day(day_of_year: int) -> Season:
    """1–90 春，91–180 夏，181–270 秋，其余为冬。"""
    if day_of_year <= 90:
        return Season.SPRING
    if day_of_year <= 180:
        return Season.SUMMER
    if day_of_year <= 270:
        return Season.AUTUMN
    return Season.WINTER


class GlobalState(BaseModel):
    """全局标志。"""

    war_active: bool = Field(default=False, description="是否处于战争状态")
    economy_index: float = Field(default=1.0, description="经济指数，1.0 为正常")
    plague_active: bool = Field(default=False, description="是否爆发瘟疫（由疾病模拟维护）")
    season: Season = Field(default=Season.SPRING, description="当前季节")
    day_of_year: int = Field(default=1, ge=1, le=365, description="一年中的第几天")


class InstabilityType(str, Enum):
    POWER_IMBALANCE = "power_imbalance"
    RESOURCE_SCARCITY = "resource_scarcity"
    TRUST_COLLAPSE = "trust_collapse"
    INFORMATION_ASYMMETRY = "information_asymmetry"
    FEAR_SPIKE = "fear_spike"
    POWER_VACUUM = "power_vacuum"


class WorldSnapshot(BaseModel):
    """世界状态的只读摘要。"""

    time: int
    global_state: GlobalState
    character_count: int
    location_count: int
    event_count: int
    recent_event_ids: list[str] = Field(default_factory=list)
