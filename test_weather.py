"""测试天气：季节修正、室内天气与天气效果。"""

import math
import random

import pytest

from mathworld.models.location import Location, LocationType
from mathworld.models.weather import WeatherType
from mathworld.models.world import Season
from mathworld.simulation.weather import (
    SEASONAL_TEMPERATURE,
    TEMPERATURE_OFFSET,
    TRANSITIONS,
    Weather,
)
from mathworld.state.world_state import WorldState


def _world() -> WorldState:
    world = WorldState(seed=10)
    world.add_location(Location(id="field", name="田野", type=LocationType.WILDERNESS))
    world.add_location(Location(id="cave", name="地下城", type=LocationType.DUNGEON))
    return world


def test_summer_never_snows():
    world = _world()
    world.update_global_state(season=Season.SUMMER, day_of_year=120)
    weather = Weather(world, rng=random.Random(1))
    for current in WeatherType:
        assert weather.transition_weights(current)[WeatherType.SNOW] == 0.0
    for _ in range(300):
        assert weather.next_weather_type(WeatherType.SNOW) is not WeatherType.SNOW


def test_winter_favours_snow():
    world = _world()
    world.update_global_state(season=Season.WINTER, day_of_year=300)
    weights = Weather(world).transition_weights(WeatherType.CLOUDY)
    base = TRANSITIONS[WeatherType.CLOUDY]
    assert weights[WeatherType.SNOW] == base[WeatherType.SNOW] * 3
    assert weights[WeatherType.RAIN] == base[WeatherType.RAIN] * 0.5


def test_indoor_locations_are_sheltered():
    world = _world()
    weather = Weather(world)
    weather.global_weather.type = WeatherType.STORM
    weather.global_weather.duration = 5
    weather.update()
    cave = weather.get_weather("cave")
    assert cave.type is WeatherType.CLEAR
    assert cave.wind_speed == 0.0
    assert cave.temperature == 15.0
    assert weather.get_weather("field").type is WeatherType.STORM


def test_duration_and_ranges():
    world = _world()
    weather = Weather(world)
    for _ in range(60):
        world.advance_time()
        weather.update()
        state = weather.get_weather()
        assert 1 <= state.duration <= 6
        for local in weather.local_weather.values():
            assert 0.0 <= local.humidity <= 1.0
            assert 0.0 <= local.visibility <= 1.0
            assert local.wind_speed >= 0.0


def test_unknown_location_falls_back_to_global():
    weather = Weather(_world())
    assert weather.get_weather("moon") is weather.global_weather


def test_storm_effects():
    weather = Weather(_world())
    weather.global_weather.type = WeatherType.STORM
    weather.global_weather.temperature = 10.0
    effects = weather.get_effects()
    assert effects.combat_modifier == 0.7
    assert effects.travel_modifier == 0.5
    assert effects.health_risk


def test_extreme_temperature_is_a_health_risk():
    weather = Weather(_world())
    weather.global_weather.temperature = 40.0
    assert weather.get_effects().health_risk
    assert "酷热" in weather.describe()


def test_summary_forecast():
    summary = Weather(_world()).get_summary()
    assert len(summary.forecast) == 3
    assert summary.global_type is WeatherType.CLEAR


class MidpointRandom(random.Random):
    """uniform 返回区间中点，去掉温度噪声。"""

    def uniform(self, a, b):
        return (a + b) / 2


def _expected_temperature(world: WorldState, weather_type: WeatherType) -> float:
    state = world.global_state
    base, amplitude = SEASONAL_TEMPERATURE[state.season]
    annual = amplitude * math.sin(2 * math.pi * state.day_of_year / 365)
    return base + annual + TEMPERATURE_OFFSET.get(weather_type, 0.0)


def test_temperature_formula_without_noise():
    """气温 = 季节基础 + 振幅·sin(2π·日/365) + 天气修正。"""
    world = _world()
    world.update_global_state(season=Season.SUMMER, day_of_year=120)
    weather = Weather(world, rng=MidpointRandom())
    weather.global_weather.type = WeatherType.STORM
    weather.global_weather.duration = 5
    weather.update()

    expected = 25.0 + 8.0 * math.sin(2 * math.pi * 120 / 365) - 5.0
    assert weather.get_weather().temperature == pytest.approx(expected)
    assert weather.get_weather("field").temperature == pytest.approx(expected)


def test_temperature_noise_is_bounded():
    world = _world()
    weather = Weather(world, rng=random.Random(21))
    for _ in range(200):
        world.advance_time()
        weather.update()
        state = weather.get_weather()
        assert abs(state.temperature - _expected_temperature(world, state.type)) <= 5.0 + 1e-9


def test_weather_regime_lasts_at_least_two_ticks():
    """新天气抽出后持续 2~6 回合，其间类型不变。"""
    weather = Weather(_world(), rng=random.Random(5))
    for _ in range(200):
        before_type = weather.global_weather.type
        before = weather.global_weather.duration
        weather.update()
        after = weather.global_weather
        if before <= 1:
            assert 2 <= after.duration <= 6
        else:
            assert after.duration == before - 1
            assert after.type is before_type
