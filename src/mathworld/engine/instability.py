"""世界不稳定信号检测。

事件生成器与反馈循环的环境阈值共用同一组阈值配置。
"""

from __future__ import annotations

from mathworld.config.settings import InstabilityThresholds
from mathworld.models.world import InstabilityType
from mathworld.state.world_state import WorldState


def leading_powers(world: WorldState, count: int = 2) -> list[int]:
    """按中心度排名前 count 名角色的权力值（跳过已不在世界中的 ID）。"""
    powers: list[int] = []
    for character_id in world.relations.get_most_influential(count):
        character = world.get_character(character_id)
        if character is not None:
            powers.append(character.power)
    return powers


def average_resources(world: WorldState) -> float | None:
    characters = world.get_all_characters()
    if not characters:
        return None
    return sum(c.resources for c in characters) / len(characters)


def detect_instability(
    world: WorldState, thresholds: InstabilityThresholds | None = None
) -> list[InstabilityType]:
    """返回当前成立的不稳定信号。"""
    thresholds = thresholds or world.config.thresholds
    found: list[InstabilityType] = []
    stats = world.relations.get_stats()

    powers = leading_powers(world, 2)
    if len(powers) == 2 and powers[0] > powers[1] * thresholds.power_ratio:
        found.append(InstabilityType.POWER_IMBALANCE)

    avg_resources = average_resources(world)
    if avg_resources is not None and avg_resources < thresholds.resource_scarcity:
        found.append(InstabilityType.RESOURCE_SCARCITY)

    if stats.edge_count and stats.avg_trust < thresholds.trust_collapse:
        found.append(InstabilityType.TRUST_COLLAPSE)

    clusters = world.relations.get_clusters(thresholds.cluster_threshold)
    if len(clusters) > thresholds.max_clusters:
        found.append(InstabilityType.INFORMATION_ASYMMETRY)

    if stats.avg_fear > thresholds.fear_spike:
        found.append(InstabilityType.FEAR_SPIKE)

    return found
