"""疾病（SEIR+D）数据模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class HealthState(str, Enum):
    SUSCEPTIBLE = "susceptible"
    EXPOSED = "exposed"
    INFECTED = "infected"
    RECOVERED = "recovered"
    DEAD = "dead"


class Disease(BaseModel):
    """疾病参数。"""

    id: str = Field(description="疾病 ID")
    name: str = Field(description="疾病名称")
    transmission_rate: float = Field(ge=0.0, le=1.0, description="单次接触的传染概率")
    recovery_rate: float = Field(ge=0.0, le=1.0, description="每回合康复概率")
    mortality_rate: float = Field(ge=0.0, le=1.0, description="每回合致死概率")
    incubation_period: int = Field(default=1, ge=0, description="潜伏期（回合）")
    immunity_duration: int = Field(default=0, ge=0, description="免疫持续回合数，0 为永久")


class HealthStatus(BaseModel):
    """某个角色的健康状态。"""

    character_id: str
    state: HealthState = HealthState.SUSCEPTIBLE
    disease_id: str | None = None
    exposed_turn: int | None = None
    infected_turn: int | None = None
    recovered_turn: int | None = None


class PlagueStats(BaseModel):
    susceptible: int = 0
    exposed: int = 0
    infected: int = 0
    recovered: int = 0
    dead: int = 0
    r0: float = 0.0
