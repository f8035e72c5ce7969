"""有向加权社交关系图。

边 A→B 表示 A 对 B 的看法，关系不对称，首次访问时以零值惰性创建，之后永不删除。
"""

from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Callable, Iterator

from pydantic import BaseModel

from mathworld.models.relation import Relation
from mathworld.utils.numeric import clamp

logger = logging.getLogger(__name__)

# 视为"敌人"的信任上限
ENEMY_TRUST_THRESHOLD = -0.3


class GraphStats(BaseModel):
    node_count: int
    edge_count: int
    avg_trust: float
    avg_fear: float


def _clamp_relation(relation: Relation) -> None:
    relation.trust = clamp(relation.trust, -1.0, 1.0)
    relation.fear = clamp(relation.fear, 0.0, 1.0)
    relation.respect = clamp(relation.respect, -1.0, 1.0)


class RelationGraph:
    """角色关系网络：维护关系并提供派系、中心度、流言扩散等分析。"""

    def __init__(self) -> None:
        self._edges: dict[str, dict[str, Relation]] = {}

    # ──────────────────────────────────────────
    # 读写
    # ──────────────────────────────────────────

    def get_relation(self, from_id: str, to_id: str) -> Relation:
        """读取 from→to 的关系，不存在时创建默认关系。"""
        edges = self._edges.setdefault(from_id, {})
        if to_id not in edges:
            edges[to_id] = Relation()
        return edges[to_id]

    def find_relation(self, from_id: str, to_id: str) -> Relation | None:
        """只读查询，不会创建边。"""
        return self._edges.get(from_id, {}).get(to_id)

    def has_relation(self, from_id: str, to_id: str) -> bool:
        return self.find_relation(from_id, to_id) is not None

    def update_relation(
        self,
        from_id: str,
        to_id: str,
        *,
        trust: float | None = None,
        fear: float | None = None,
        respect: float | None = None,
        debt: float | None = None,
        secret_shared: bool | None = None,
    ) -> Relation:
        """覆盖写入给定字段，随后截断。"""
        relation = self.get_relation(from_id, to_id)
        if trust is not None:
            relation.trust = trust
        if fear is not None:
            relation.fear = fear
        if respect is not None:
            relation.respect = respect
        if debt is not None:
            relation.debt = debt
        if secret_shared is not None:
            relation.secret_shared = secret_shared
        _clamp_relation(relation)
        return relation

    def modify_relation(
        self,
        from_id: str,
        to_id: str,
        *,
        trust: float = 0.0,
        fear: float = 0.0,
        respect: float = 0.0,
        debt: float = 0.0,
    ) -> Relation:
        """按增量修改，随后截断。"""
        relation = self.get_relation(from_id, to_id)
        relation.trust += trust
        relation.fear += fear
        relation.respect += respect
        relation.debt += debt
        _clamp_relation(relation)
        return relation

    def add_history(self, from_id: str, to_id: str, event_id: str) -> None:
        self.get_relation(from_id, to_id).history.append(event_id)

    def iter_edges(self) -> Iterator[tuple[str, str, Relation]]:
        for from_id, edges in self._edges.items():
            for to_id, relation in edges.items():
                yield from_id, to_id, relation

    def nodes(self) -> list[str]:
        """图中出现过的所有角色（按首次出现顺序）。"""
        seen: dict[str, None] = {}
        for from_id, to_id, _ in self.iter_edges():
            seen.setdefault(from_id, None)
            seen.setdefault(to_id, None)
        return list(seen)

    # ──────────────────────────────────────────
    # 查询
    # ──────────────────────────────────────────

    def get_friends(self, character_id: str) -> list[str]:
        """信任 > 0 的出边目标。"""
        edges = self._edges.get(character_id, {})
        return [to_id for to_id, rel in edges.items() if rel.trust > 0]

    def get_enemies(self, character_id: str) -> list[str]:
        edges = self._edges.get(character_id, {})
        return [to_id for to_id, rel in edges.items() if rel.trust < ENEMY_TRUST_THRESHOLD]

    def get_mutual_friends(self, a: str, b: str) -> list[str]:
        b_friends = set(self.get_friends(b))
        return [f for f in self.get_friends(a) if f in b_friends]

    def get_relation_heat(self, from_id: str, to_id: str) -> float:
        """整体好感度：trust + 0.5·respect − 0.3·fear。"""
        relation = self.find_relation(from_id, to_id) or Relation()
        return relation.trust + relation.respect * 0.5 - relation.fear * 0.3

    def _mutually_trusted(self, a: str, b: str, threshold: float) -> bool:
        ab = self.find_relation(a, b)
        ba = self.find_relation(b, a)
        return ab is not None and ba is not None and ab.trust > threshold and ba.trust > threshold

    def get_clusters(self, threshold: float = 0.3) -> list[list[str]]:
        """按双向信任均高于阈值的边求连通分量，丢弃单人分量。"""
        visited: set[str] = set()
        clusters: list[list[str]] = []

        for node in self.nodes():
            if node in visited:
                continue
            cluster: list[str] = []
            queue = deque([node])
            visited.add(node)
            while queue:
                current = queue.popleft()
                cluster.append(current)
                for neighbour in self._edges.get(current, {}):
                    if neighbour in visited:
                        continue
                    if self._mutually_trusted(current, neighbour, threshold):
                        visited.add(neighbour)
                        queue.append(neighbour)
            if len(cluster) > 1:
                clusters.append(cluster)

        return clusters

    def get_centrality(self, character_id: str) -> int:
        """出度 + 入度。"""
        out_degree = len(self._edges.get(character_id, {}))
        in_degree = sum(1 for edges in self._edges.values() if character_id in edges)
        return out_degree + in_degree

    def get_most_influential(self, limit: int = 5) -> list[str]:
        """按中心度降序返回前 limit 名（同分保持首次出现顺序）。"""
        ranked = sorted(self.nodes(), key=self.get_centrality, reverse=True)
        return ranked[:limit]

    def simulate_rumor_spread(
        self,
        source: str,
        turns: int,
        spread_probability: Callable[[Relation], float],
        rng: random.Random | None = None,
    ) -> set[str]:
        """从 source 出发的有界扩散，返回所有知情者（含 source）。"""
        rng = rng or random.Random()
        informed: set[str] = {source}
        frontier: list[str] = [source]

        for _ in range(turns):
            newly_informed: list[str] = []
            for person in frontier:
                for target, relation in self._edges.get(person, {}).items():
                    if target in informed:
                        continue
                    if rng.random() < spread_probability(relation):
                        informed.add(target)
                        newly_informed.append(target)
            if not newly_informed:
                break
            frontier = newly_informed

        logger.debug("流言从 %s 扩散到 %d 人", source, len(informed))
        return informed

    def get_stats(self) -> GraphStats:
        edge_count = 0
        total_trust = 0.0
        total_fear = 0.0
        for _, _, relation in self.iter_edges():
            edge_count += 1
            total_trust += relation.trust
            total_fear += relation.fear
        return GraphStats(
            node_count=len(self.nodes()),
            edge_count=edge_count,
            avg_trust=total_trust / edge_count if edge_count else 0.0,
            avg_fear=total_fear / edge_count if edge_count else 0.0,
        )
