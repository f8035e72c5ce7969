"""地点模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class LocationType(str, Enum):
    CITY = "city"
    VILLAGE = "village"
    WILDERNESS = "wilderness"
    DUNGEON = "dungeon"
    CASTLE = "castle"


# 室内地点不受天气影响
INDOOR_LOCATION_TYPES: frozenset[LocationType] = frozenset({LocationType.DUNGEON})


class Location(BaseModel):
    """世界中的一个地点。"""

    id: str = Field(description="地点唯一 ID")
    name: str = Field(description="地点名称")
    type: LocationType = Field(description="地点类型")
    resources: float = Field(default=0.0, description="地点资源总量")
    population: int = Field(default=0, ge=0, description="人口")
    stability: float = Field(default=0.5, ge=0.0, le=1.0, description="稳定度（由生态系统重算）")
    connected_to: list[str] = Field(default_factory=list, description="相连地点 ID（有序）")
    danger_level: float = Field(default=0.0, ge=0.0, le=1.0, description="危险程度")
    owner: str | None = Field(default=None, description="领主角色 ID")
