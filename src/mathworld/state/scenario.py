"""场景定义：从 YAML 或内置默认值构建初始世界。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from mathworld.config.settings import KernelConfig
from mathworld.models.character import create_character
from mathworld.models.location import Location, LocationType
from mathworld.state.world_state import WorldState

logger = logging.getLogger(__name__)


class CharacterSpec(BaseModel):
    """场景文件中的角色条目。"""

    id: str = Field(description="角色 ID")
    name: str = Field(description="角色名称")
    title: str = Field(default="", description="头衔")
    preset: str | None = Field(default=None, description="性格预设: noble/merchant/soldier/schemer/peasant")
    personality: dict[str, float] = Field(default_factory=dict, description="覆盖预设的性格维度")
    emotion: dict[str, float] = Field(default_factory=dict, description="初始情绪")
    location: str = Field(default="", description="初始地点 ID")
    resources: int = Field(default=100, description="初始资源")
    power: int = Field(default=10, description="初始权力")
    is_player: bool = Field(default=False, description="是否为玩家")


class RelationSpec(BaseModel):
    """场景文件中的初始关系（有向）。"""

    source: str = Field(alias="from", description="关系起点角色 ID")
    target: str = Field(alias="to", description="关系终点角色 ID")
    trust: float = 0.0
    fear: float = 0.0
    respect: float = 0.0
    debt: float = 0.0
    secret_shared: bool = False


class Scenario(BaseModel):
    """一个完整的初始场景。"""

    name: str = Field(description="场景名称")
    description: str = Field(default="", description="场景简介")
    seed: int | None = Field(default=None, description="默认随机种子")
    config: KernelConfig = Field(default_factory=KernelConfig, description="内核配置覆盖")
    global_state: dict[str, Any] = Field(default_factory=dict, description="全局状态覆盖")
    locations: list[Location] = Field(default_factory=list, description="地点列表")
    characters: list[CharacterSpec] = Field(default_factory=list, description="角色列表")
    relations: list[RelationSpec] = Field(default_factory=list, description="初始关系")


def load_scenario_from_yaml(path: str | Path) -> Scenario:
    """从 YAML 文件加载场景。"""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    scenario = Scenario.model_validate(data)
    logger.info(
        "已加载场景 %s：%d 个地点，%d 个角色",
        scenario.name,
        len(scenario.locations),
        len(scenario.characters),
    )
    return scenario


def build_world(scenario: Scenario, seed: int | None = None) -> WorldState:
    """根据场景构建世界；显式 seed 优先于场景自带的 seed。"""
    world = WorldState(
        config=scenario.config,
        seed=seed if seed is not None else scenario.seed,
    )
    if scenario.global_state:
        world.update_global_state(**scenario.global_state)

    for location in scenario.locations:
        world.add_location(location.model_copy(deep=True))

    for spec in scenario.characters:
        if spec.location and world.get_location(spec.location) is None:
            logger.warning("角色 %s 的初始地点 %s 不存在", spec.id, spec.location)
        world.add_character(
            create_character(
                spec.name,
                id=spec.id,
                title=spec.title,
                preset=spec.preset,
                personality=spec.personality,
                emotion=spec.emotion,
                location=spec.location,
                resources=spec.resources,
                power=spec.power,
                is_player=spec.is_player,
            )
        )

    for rel in scenario.relations:
        world.relations.update_relation(
            rel.source,
            rel.target,
            trust=rel.trust,
            fear=rel.fear,
            respect=rel.respect,
            debt=rel.debt,
            secret_shared=rel.secret_shared,
        )
    return world


def default_scenario() -> Scenario:
    """内置的小王国：王都、边境村庄、荒野与地下城。"""
    return Scenario(
        name="边境王国",
        description="国王、商人与一名初出茅庐的冒险者",
        locations=[
            Location(id="capital", name="王都", type=LocationType.CITY, resources=1000,
                     population=50000, stability=0.8,
                     connected_to=["village1", "castle"], owner="king"),
            Location(id="village1", name="边境村庄", type=LocationType.VILLAGE, resources=200,
                     population=500, stability=0.6, connected_to=["capital", "wilderness"]),
            Location(id="castle", name="王城", type=LocationType.CASTLE, resources=500,
                     population=300, stability=0.9, connected_to=["capital"], owner="king"),
            Location(id="wilderness", name="荒野", type=LocationType.WILDERNESS, resources=300,
                     population=0, stability=0.7, connected_to=["village1", "dungeon"],
                     danger_level=0.4),
            Location(id="dungeon", name="古老地下城", type=LocationType.DUNGEON, resources=100,
                     population=0, stability=0.5, connected_to=["wilderness"],
                     danger_level=0.8),
        ],
        characters=[
            CharacterSpec(id="king", name="国王", title="国王", preset="noble",
                          location="capital", resources=10000, power=100),
            CharacterSpec(id="merchant", name="马可", title="商人", preset="merchant",
                          location="capital", resources=5000, power=30),
            CharacterSpec(id="player", name="冒险者", preset="peasant",
                          personality={"courage": 0.7, "ambition": 0.6},
                          location="village1", resources=100, power=10, is_player=True),
        ],
        relations=[
            RelationSpec.model_validate({"from": "king", "to": "merchant", "trust": 0.3, "respect": 0.2}),
            RelationSpec.model_validate({"from": "merchant", "to": "king", "trust": 0.2, "fear": 0.3}),
        ],
    )


def create_default_world(seed: int | None = None) -> WorldState:
    return build_world(default_scenario(), seed=seed)
