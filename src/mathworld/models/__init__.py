"""Pydantic 数据模型。"""

from mathworld.models.action import Action, ActionCategory, ActionWeights, Choice
from mathworld.models.character import (
    Character,
    Emotion,
    EmotionField,
    InterpretedEvent,
    Personality,
    PersonalityField,
    create_character,
)
from mathworld.models.disease import Disease, HealthState, HealthStatus, PlagueStats
from mathworld.models.economy import Goods, Market
from mathworld.models.ecosystem import CreatureType, Species
from mathworld.models.effect import Condition, ConditionType, Effect, EffectType, Operator
from mathworld.models.event import EventType, GameEvent
from mathworld.models.location import Location, LocationType
from mathworld.models.relation import Relation, RelationField
from mathworld.models.weather import WeatherState, WeatherType
from mathworld.models.world import GlobalState, InstabilityType, Season

__all__ = [
    "Action",
    "ActionCategory",
    "ActionWeights",
    "Character",
    "Choice",
    "Condition",
    "ConditionType",
    "CreatureType",
    "Disease",
    "Effect",
    "EffectType",
    "Emotion",
    "EmotionField",
    "EventType",
    "GameEvent",
    "GlobalState",
    "Goods",
    "HealthState",
    "HealthStatus",
    "InstabilityType",
    "InterpretedEvent",
    "Location",
    "LocationType",
    "Market",
    "Operator",
    "Personality",
    "PersonalityField",
    "PlagueStats",
    "Relation",
    "RelationField",
    "Season",
    "Species",
    "WeatherState",
    "WeatherType",
    "create_character",
]
