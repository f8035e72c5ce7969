"""世界状态与关系图。"""

from mathworld.state.relation_graph import GraphStats, RelationGraph
from mathworld.state.scenario import (
    Scenario,
    build_world,
    create_default_world,
    default_scenario,
    load_scenario_from_yaml,
)
from mathworld.state.world_state import WorldState

__all__ = [
    "GraphStats",
    "RelationGraph",
    "Scenario",
    "WorldState",
    "build_world",
    "create_default_world",
    "default_scenario",
    "load_scenario_from_yaml",
]
