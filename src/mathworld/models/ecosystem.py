"""生态系统数据模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class CreatureType(str, Enum):
    PLANT = "plant"
    PREY = "prey"
    PREDATOR = "predator"


class Species(BaseModel):
    """一个物种种群。"""

    id: str = Field(description="物种 ID")
    name: str = Field(description="物种名称")
    type: CreatureType = Field(description="营养级")
    population: float = Field(ge=0.0, description="种群数量（植物为生物量）")
    growth_rate: float = Field(description="内禀增长率 r")
    carrying_capacity: float = Field(gt=0.0, description="环境容纳量 K")
    predation_rate: float | None = Field(default=None, description="捕食率 a（捕食者）")
    conversion_rate: float | None = Field(default=None, description="转化效率 b（捕食者）")
    mortality_rate: float | None = Field(default=None, description="死亡率 m（捕食者）")


class LocalEcosystem(BaseModel):
    location_id: str
    species: dict[str, Species] = Field(default_factory=dict)
    stability: float = Field(default=1.0, ge=0.0, le=1.0)


class SpeciesInfo(BaseModel):
    name: str
    population: int
    type: CreatureType


class EcosystemInfo(BaseModel):
    species: list[SpeciesInfo]
    stability: float


class HuntResult(BaseModel):
    success: bool
    caught: int = 0


class EcosystemSummary(BaseModel):
    total_locations: int
    avg_stability: float
    endangered_species: list[str]
