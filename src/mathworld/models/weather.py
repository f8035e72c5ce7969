"""天气系统数据模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class WeatherType(str, Enum):
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    STORM = "storm"
    SNOW = "snow"
    FOG = "fog"


class WeatherState(BaseModel):
    type: WeatherType = Field(default=WeatherType.CLEAR, description="天气类型")
    temperature: float = Field(default=20.0, description="气温（摄氏度）")
    humidity: float = Field(default=0.5, description="湿度 [0, 1]")
    wind_speed: float = Field(default=10.0, description="风速 km/h")
    visibility: float = Field(default=1.0, description="能见度 [0, 1]")
    duration: int = Field(default=3, description="当前天气剩余回合数")


class WeatherEffects(BaseModel):
    """天气对玩法的影响系数。"""

    combat_modifier: float = 1.0
    travel_modifier: float = 1.0
    visibility_modifier: float = 1.0
    health_risk: bool = False


class WeatherSummary(BaseModel):
    global_type: WeatherType
    temperature: float
    forecast: list[WeatherType]
