"""天气模拟：六状态马尔可夫链 + 季节修正 + 正弦气温。"""

from __future__ import annotations

import logging
import math
import random

from mathworld.models.location import INDOOR_LOCATION_TYPES
from mathworld.models.weather import WeatherEffects, WeatherState, WeatherSummary, WeatherType
from mathworld.models.world import Season
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp

logger = logging.getLogger(__name__)

W = WeatherType

TRANSITIONS: dict[WeatherType, dict[WeatherType, float]] = {
    W.CLEAR: {W.CLEAR: 0.6, W.CLOUDY: 0.3, W.RAIN: 0.05, W.STORM: 0.01, W.SNOW: 0.02, W.FOG: 0.02},
    W.CLOUDY: {W.CLEAR: 0.3, W.CLOUDY: 0.4, W.RAIN: 0.2, W.STORM: 0.05, W.SNOW: 0.03, W.FOG: 0.02},
    W.RAIN: {W.CLEAR: 0.1, W.CLOUDY: 0.3, W.RAIN: 0.4, W.STORM: 0.15, W.SNOW: 0.02, W.FOG: 0.03},
    W.STORM: {W.CLEAR: 0.05, W.CLOUDY: 0.2, W.RAIN: 0.5, W.STORM: 0.2, W.SNOW: 0.02, W.FOG: 0.03},
    W.SNOW: {W.CLEAR: 0.2, W.CLOUDY: 0.3, W.RAIN: 0.05, W.STORM: 0.02, W.SNOW: 0.4, W.FOG: 0.03},
    W.FOG: {W.CLEAR: 0.4, W.CLOUDY: 0.3, W.RAIN: 0.1, W.STORM: 0.02, W.SNOW: 0.03, W.FOG: 0.15},
}

# 季节 → (基础气温, 振幅)
SEASONAL_TEMPERATURE: dict[Season, tuple[float, float]] = {
    Season.SPRING: (15.0, 10.0),
    Season.SUMMER: (25.0, 8.0),
    Season.AUTUMN: (12.0, 12.0),
    Season.WINTER: (-2.0, 15.0),
}

TEMPERATURE_OFFSET: dict[WeatherType, float] = {
    W.RAIN: -3.0,
    W.STORM: -5.0,
    W.SNOW: -10.0,
    W.CLEAR: 2.0,
}

# 天气类型 → (湿度范围, 风速范围, 能见度)
_PROPERTIES: dict[WeatherType, tuple[tuple[float, float], tuple[float, float], float]] = {
    W.CLEAR: ((0.3, 0.5), (5, 15), 1.0),
    W.CLOUDY: ((0.5, 0.7), (10, 20), 0.8),
    W.RAIN: ((0.7, 0.9), (15, 30), 0.5),
    W.STORM: ((0.8, 1.0), (40, 80), 0.2),
    W.SNOW: ((0.6, 0.8), (10, 25), 0.4),
    W.FOG: ((0.9, 1.0), (0, 5), 0.1),
}

_DESCRIPTIONS: dict[WeatherType, str] = {
    W.CLEAR: "晴空万里。",
    W.CLOUDY: "云层遮住了天空。",
    W.RAIN: "正下着雨。",
    W.STORM: "暴风雨肆虐。",
    W.SNOW: "雪花纷飞。",
    W.FOG: "浓雾弥漫。",
}

MIN_DURATION = 2
MAX_DURATION = 6
INDOOR_TEMPERATURE = 15.0


def _temperature_word(temperature: float) -> str:
    if temperature > 30:
        return "酷热"
    if temperature > 20:
        return "温暖"
    if temperature > 10:
        return "凉爽"
    if temperature > 0:
        return "寒冷"
    return "冰冻刺骨"


class Weather:
    """全局天气状态与各地的局部变化。"""

    def __init__(self, world: WorldState, rng: random.Random | None = None):
        self.world = world
        self.rng = rng or world.rng
        self.global_weather = WeatherState()
        self.local_weather: dict[str, WeatherState] = {
            loc.id: self.global_weather.model_copy() for loc in world.get_all_locations()
        }

    def update(self) -> None:
        self._update_global()
        for location_id, weather in self.local_weather.items():
            self._update_local(location_id, weather)

    def transition_weights(self, current: WeatherType) -> dict[WeatherType, float]:
        """当前季节修正后的转移权重（未归一化）。"""
        weights = dict(TRANSITIONS[current])
        season = self.world.global_state.season
        if season is Season.WINTER:
            weights[W.SNOW] *= 3
            weights[W.RAIN] *= 0.5
        elif season is Season.SUMMER:
            weights[W.SNOW] = 0.0
            weights[W.STORM] *= 1.5
        return weights

    def next_weather_type(self, current: WeatherType) -> WeatherType:
        weights = self.transition_weights(current)
        return self.rng.choices(list(weights), weights=list(weights.values()), k=1)[0]

    def _update_global(self) -> None:
        weather = self.global_weather
        weather.duration -= 1
        if weather.duration <= 0:
            previous = weather.type
            weather.type = self.next_weather_type(previous)
            weather.duration = self.rng.randint(MIN_DURATION, MAX_DURATION)
            if weather.type is not previous:
                logger.debug("天气由 %s 转为 %s", previous.value, weather.type.value)

        weather.temperature = self._temperature(weather.type)
        humidity, wind, visibility = _PROPERTIES[weather.type]
        weather.humidity = self.rng.uniform(*humidity)
        weather.wind_speed = self.rng.uniform(*wind)
        weather.visibility = visibility

    def _temperature(self, weather_type: WeatherType) -> float:
        state = self.world.global_state
        base, amplitude = SEASONAL_TEMPERATURE[state.season]
        annual = amplitude * math.sin(2 * math.pi * state.day_of_year / 365)
        daily = self.rng.uniform(-5, 5)
        return base + annual + daily + TEMPERATURE_OFFSET.get(weather_type, 0.0)

    def _update_local(self, location_id: str, weather: WeatherState) -> None:
        location = self.world.get_location(location_id)
        if location is None:
            return
        source = self.global_weather
        weather.type = source.type
        weather.duration = source.duration
        weather.temperature = source.temperature + self.rng.uniform(-3, 3)
        weather.humidity = clamp(source.humidity + self.rng.uniform(-0.1, 0.1), 0.0, 1.0)
        weather.wind_speed = max(0.0, source.wind_speed + self.rng.uniform(-5, 5))
        weather.visibility = clamp(source.visibility + self.rng.uniform(-0.1, 0.1), 0.0, 1.0)

        if location.type in INDOOR_LOCATION_TYPES:
            weather.type = W.CLEAR
            weather.wind_speed = 0.0
            weather.temperature = INDOOR_TEMPERATURE

    # ──────────────────────────────────────────
    # 查询
    # ──────────────────────────────────────────

    def get_weather(self, location_id: str | None = None) -> WeatherState:
        """地点天气；未知地点返回全局天气。"""
        if location_id is None:
            return self.global_weather
        return self.local_weather.get(location_id, self.global_weather)

    def get_effects(self, location_id: str | None = None) -> WeatherEffects:
        weather = self.get_weather(location_id)
        effects = WeatherEffects(visibility_modifier=weather.visibility)
        match weather.type:
            case W.RAIN:
                effects.combat_modifier, effects.travel_modifier = 0.9, 0.8
            case W.STORM:
                effects.combat_modifier, effects.travel_modifier = 0.7, 0.5
                effects.health_risk = True
            case W.SNOW:
                effects.combat_modifier, effects.travel_modifier = 0.85, 0.6
                effects.health_risk = weather.temperature < -10
            case W.FOG:
                effects.combat_modifier, effects.travel_modifier = 0.9, 0.7
        if weather.temperature > 35 or weather.temperature < -15:
            effects.health_risk = True
        return effects

    def describe(self, location_id: str | None = None) -> str:
        weather = self.get_weather(location_id)
        word = _temperature_word(weather.temperature)
        return f"{_DESCRIPTIONS[weather.type]}天气{word}。（{weather.temperature:.0f}°C）"

    def get_summary(self) -> WeatherSummary:
        """当前全局天气与接下来三次转移的预报（会消耗随机数）。"""
        forecast: list[WeatherType] = []
        current = self.global_weather.type
        for _ in range(3):
            current = self.next_weather_type(current)
            forecast.append(current)
        return WeatherSummary(
            global_type=self.global_weather.type,
            temperature=self.global_weather.temperature,
            forecast=forecast,
        )
