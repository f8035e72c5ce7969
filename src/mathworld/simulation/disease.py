"""疾病传播模拟（SEIR + 死亡），接触强度取决于社交关系。"""

from __future__ import annotations

import logging
import random

from mathworld.models.disease import Disease, HealthState, HealthStatus, PlagueStats
from mathworld.models.event import EventType, GameEvent
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import new_id

logger = logging.getLogger(__name__)

PLAGUE_THRESHOLD = 0.1

DEFAULT_DISEASES: list[Disease] = [
    Disease(id="common_cold", name="风寒", transmission_rate=0.3, recovery_rate=0.5,
            mortality_rate=0.001, incubation_period=1, immunity_duration=30),
    Disease(id="plague", name="黑死病", transmission_rate=0.5, recovery_rate=0.1,
            mortality_rate=0.3, incubation_period=3, immunity_duration=365),
    Disease(id="fever", name="热病", transmission_rate=0.7, recovery_rate=0.1,
            mortality_rate=0.02, incubation_period=1, immunity_duration=60),
]


def contact_factor(trust: float) -> float:
    """关系越亲密接触越多：0.5 + 0.25·(trust + 1)，取值 [0.5, 1]。"""
    return 0.5 + (trust + 1) * 0.25


class DiseaseSimulation:
    """维护每个角色的健康状态并推进疫情。"""

    def __init__(
        self,
        world: WorldState,
        rng: random.Random | None = None,
        diseases: list[Disease] | None = None,
    ):
        self.world = world
        self.rng = rng or world.rng
        self.diseases: dict[str, Disease] = {
            d.id: d for d in (diseases if diseases is not None else DEFAULT_DISEASES)
        }
        self.statuses: dict[str, HealthStatus] = {}
        self.active_outbreaks: set[str] = set()
        for character in world.get_all_characters():
            self.register_character(character.id)

    def register_character(self, character_id: str) -> HealthStatus:
        if character_id not in self.statuses:
            self.statuses[character_id] = HealthStatus(character_id=character_id)
        return self.statuses[character_id]

    def add_disease(self, disease: Disease) -> None:
        self.diseases[disease.id] = disease

    def update(self) -> None:
        for character in self.world.get_all_characters():
            self.register_character(character.id)

        now = self.world.time
        for status in self.statuses.values():
            self._progress(status, now)
        self._spread()
        self._refresh_outbreaks()
        self._update_plague_flag()

    def _progress(self, status: HealthStatus, now: int) -> None:
        if status.disease_id is None:
            return
        disease = self.diseases.get(status.disease_id)
        if disease is None:
            return

        match status.state:
            case HealthState.EXPOSED:
                if now - (status.exposed_turn or 0) >= disease.incubation_period:
                    status.state = HealthState.INFECTED
                    status.infected_turn = now
            case HealthState.INFECTED:
                if self.rng.random() < disease.recovery_rate:
                    status.state = HealthState.RECOVERED
                    status.recovered_turn = now
                elif self.rng.random() < disease.mortality_rate:
                    status.state = HealthState.DEAD
                    self._handle_death(status, disease)
            case HealthState.RECOVERED:
                if disease.immunity_duration > 0 and (
                    now - (status.recovered_turn or 0) >= disease.immunity_duration
                ):
                    status.state = HealthState.SUSCEPTIBLE
                    status.disease_id = None

    def _handle_death(self, status: HealthStatus, disease: Disease) -> None:
        """角色死于疾病：记录死亡事件，但不从世界中移除角色。"""
        character = self.world.get_character(status.character_id)
        name = character.name if character else status.character_id
        event = GameEvent(
            id=new_id("event"),
            type=EventType.DEATH,
            timestamp=self.world.time,
            participants=(status.character_id,),
            location=character.location if character else "global",
            description=f"{name}死于{disease.name}",
            is_public=True,
        )
        self.world.add_event(event)
        logger.info("%s 死于 %s", name, disease.name)

    def _spread(self) -> None:
        exposures: list[tuple[str, str]] = []
        for character in self.world.get_all_characters():
            status = self.statuses.get(character.id)
            if status is None or status.state is not HealthState.INFECTED:
                continue
            disease = self.diseases.get(status.disease_id or "")
            if disease is None:
                continue
            for nearby in self.world.get_characters_at(character.location):
                if nearby.id == character.id:
                    continue
                nearby_status = self.statuses.get(nearby.id)
                if nearby_status is None or nearby_status.state is not HealthState.SUSCEPTIBLE:
                    continue
                relation = self.world.relations.find_relation(character.id, nearby.id)
                trust = relation.trust if relation else 0.0
                if self.rng.random() < disease.transmission_rate * contact_factor(trust):
                    exposures.append((nearby.id, disease.id))

        for character_id, disease_id in exposures:
            self.infect(character_id, disease_id)

    def _refresh_outbreaks(self) -> None:
        carried = {
            s.disease_id
            for s in self.statuses.values()
            if s.state in (HealthState.EXPOSED, HealthState.INFECTED) and s.disease_id
        }
        for ended in self.active_outbreaks - carried:
            logger.info("疫情 %s 已平息", ended)
        self.active_outbreaks = carried

    def _update_plague_flag(self) -> None:
        stats = self.get_stats()
        living = stats.susceptible + stats.exposed + stats.infected + stats.recovered
        rate = (stats.exposed + stats.infected) / max(1, living)
        active = rate > PLAGUE_THRESHOLD
        if active != self.world.global_state.plague_active:
            logger.info("瘟疫状态变为 %s（感染率 %.2f）", active, rate)
        self.world.update_global_state(plague_active=active)

    # ──────────────────────────────────────────
    # 干预
    # ──────────────────────────────────────────

    def infect(self, character_id: str, disease_id: str) -> bool:
        """让易感角色进入潜伏期。"""
        status = self.statuses.get(character_id)
        if status is None or status.state is not HealthState.SUSCEPTIBLE:
            return False
        if disease_id not in self.diseases:
            return False
        status.state = HealthState.EXPOSED
        status.disease_id = disease_id
        status.exposed_turn = self.world.time
        self.active_outbreaks.add(disease_id)
        return True

    def start_outbreak(self, disease_id: str, carrier_id: str | None = None) -> bool:
        """强制爆发疫情；未指定传染源时随机挑选一名易感者。"""
        if disease_id not in self.diseases:
            return False
        if carrier_id is None:
            susceptible = [
                s.character_id
                for s in self.statuses.values()
                if s.state is HealthState.SUSCEPTIBLE
            ]
            if not susceptible:
                return False
            carrier_id = self.rng.choice(susceptible)
        started = self.infect(carrier_id, disease_id)
        if started:
            logger.info("%s 在 %s 身上爆发", disease_id, carrier_id)
        return started

    def treat(self, character_id: str, effectiveness: float = 0.5) -> bool:
        status = self.statuses.get(character_id)
        if status is None or status.state is not HealthState.INFECTED:
            return False
        if self.rng.random() < effectiveness:
            status.state = HealthState.RECOVERED
            status.recovered_turn = self.world.time
            return True
        return False

    # ──────────────────────────────────────────
    # 查询
    # ──────────────────────────────────────────

    def get_health_status(self, character_id: str) -> HealthStatus | None:
        return self.statuses.get(character_id)

    def get_stats(self) -> PlagueStats:
        stats = PlagueStats()
        for status in self.statuses.values():
            field = status.state.value
            setattr(stats, field, getattr(stats, field) + 1)
        for disease_id in self.active_outbreaks:
            disease = self.diseases.get(disease_id)
            if disease and disease.recovery_rate > 0:
                stats.r0 = max(stats.r0, disease.transmission_rate / disease.recovery_rate)
        return stats

    def describe(self) -> str:
        stats = self.get_stats()
        if stats.infected == 0 and stats.exposed == 0:
            return "眼下没有疾病流行。"
        living = stats.susceptible + stats.exposed + stats.infected + stats.recovered
        rate = (stats.infected + stats.exposed) / max(1, living) * 100
        if stats.infected > living * 0.3:
            severity = "瘟疫正在肆虐！"
        elif stats.infected > living * 0.1:
            severity = "疾病正在蔓延。"
        else:
            severity = "部分地区出现了病例。"
        return f"{severity}（感染率 {rate:.1f}%，死亡 {stats.dead} 人）"
