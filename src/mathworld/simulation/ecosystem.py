"""生态系统模拟。

植物按 logistic 增长；食草动物受食物可得性与捕食约束；捕食者遵循 Lotka-Volterra：
    dN/dt = r·N·food − Σ a·N·P
    dP/dt = b·a·N·P − m·P
"""

from __future__ import annotations

import logging

from mathworld.models.ecosystem import (
    CreatureType,
    EcosystemInfo,
    EcosystemSummary,
    HuntResult,
    LocalEcosystem,
    Species,
    SpeciesInfo,
)
from mathworld.models.location import Location, LocationType
from mathworld.models.world import Season
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp

logger = logging.getLogger(__name__)

SEASONAL_GROWTH: dict[Season, float] = {
    Season.SPRING: 1.2,
    Season.SUMMER: 1.0,
    Season.AUTUMN: 0.8,
    Season.WINTER: 0.5,
}

FULL_FOOD_BIOMASS = 1000.0
GRAZING_PER_HEAD = 0.01
DEFAULT_MORTALITY = 0.1
MAX_HUNT_SHARE = 0.1

ECOSYSTEM_LOCATION_TYPES = frozenset(
    {LocationType.WILDERNESS, LocationType.VILLAGE, LocationType.DUNGEON}
)


def default_species(location: Location) -> list[Species]:
    species = [
        Species(id="grass", name="草", type=CreatureType.PLANT,
                population=1000, growth_rate=0.1, carrying_capacity=2000),
        Species(id="deer", name="鹿", type=CreatureType.PREY,
                population=150, growth_rate=0.15, carrying_capacity=500),
        Species(id="wolf", name="狼", type=CreatureType.PREDATOR,
                population=40, growth_rate=0.01, carrying_capacity=100,
                predation_rate=0.005, conversion_rate=0.15, mortality_rate=0.02),
    ]
    if location.type is LocationType.DUNGEON:
        species.append(
            Species(id="goblin", name="哥布林", type=CreatureType.PREDATOR,
                    population=30, growth_rate=0.02, carrying_capacity=100,
                    predation_rate=0.005, conversion_rate=0.01, mortality_rate=0.05)
        )
    return species


def stability_of(species: list[Species]) -> float:
    """1 − 0.5 × (濒危或过剩物种占比)。"""
    if not species:
        return 1.0
    stressed = sum(
        1
        for s in species
        if s.population < s.carrying_capacity * 0.1 or s.population > s.carrying_capacity * 0.9
    )
    return clamp(1 - stressed / len(species) * 0.5, 0.0, 1.0)


class Ecosystem:
    """按地点维护种群动态，并把稳定度写回地点。"""

    def __init__(self, world: WorldState):
        self.world = world
        self.ecosystems: dict[str, LocalEcosystem] = {}
        for location in world.get_all_locations():
            if location.type in ECOSYSTEM_LOCATION_TYPES:
                self.add_ecosystem(location, default_species(location))

    def add_ecosystem(self, location: Location, species: list[Species]) -> LocalEcosystem:
        ecosystem = LocalEcosystem(
            location_id=location.id,
            species={s.id: s for s in species},
            stability=location.stability,
        )
        self.ecosystems[location.id] = ecosystem
        return ecosystem

    def update(self) -> None:
        growth_multiplier = SEASONAL_GROWTH[self.world.global_state.season]
        for ecosystem in self.ecosystems.values():
            self._update_ecosystem(ecosystem, growth_multiplier)

    def _update_ecosystem(self, ecosystem: LocalEcosystem, growth_multiplier: float) -> None:
        all_species = list(ecosystem.species.values())
        plants = [s for s in all_species if s.type is CreatureType.PLANT]
        preys = [s for s in all_species if s.type is CreatureType.PREY]
        predators = [s for s in all_species if s.type is CreatureType.PREDATOR]

        for plant in plants:
            n = plant.population
            r = plant.growth_rate * growth_multiplier
            plant.population = max(0.0, n + r * n * (1 - n / plant.carrying_capacity))

        for prey in preys:
            n = prey.population
            biomass = sum(p.population for p in plants)
            food = min(1.0, biomass / FULL_FOOD_BIOMASS)
            growth = prey.growth_rate * n * food
            loss = sum((p.predation_rate or 0.0) * n * p.population for p in predators)
            prey.population = max(0.0, n + growth - loss)
            for plant in plants:
                plant.population = max(0.0, plant.population - n * GRAZING_PER_HEAD)

        for predator in predators:
            p = predator.population
            a = predator.predation_rate or 0.0
            b = predator.conversion_rate or 0.0
            m = DEFAULT_MORTALITY if predator.mortality_rate is None else predator.mortality_rate
            growth = sum(b * a * prey.population * p for prey in preys)
            predator.population = max(0.0, p + growth - m * p)

        ecosystem.stability = stability_of(all_species)
        location = self.world.get_location(ecosystem.location_id)
        if location is not None:
            location.stability = ecosystem.stability

    # ──────────────────────────────────────────
    # 查询与交互
    # ──────────────────────────────────────────

    def hunt(self, location_id: str, species_id: str, quantity: float) -> HuntResult:
        """狩猎：单次最多捕获现有种群的 10%。"""
        ecosystem = self.ecosystems.get(location_id)
        if ecosystem is None:
            return HuntResult(success=False)
        species = ecosystem.species.get(species_id)
        if species is None or species.type is CreatureType.PLANT:
            return HuntResult(success=False)

        caught = int(min(quantity, species.population * MAX_HUNT_SHARE))
        if caught < 1:
            return HuntResult(success=False)
        species.population = max(0.0, species.population - caught)
        return HuntResult(success=True, caught=caught)

    def get_ecosystem_info(self, location_id: str) -> EcosystemInfo | None:
        ecosystem = self.ecosystems.get(location_id)
        if ecosystem is None:
            return None
        return EcosystemInfo(
            species=[
                SpeciesInfo(name=s.name, population=int(s.population), type=s.type)
                for s in ecosystem.species.values()
            ],
            stability=ecosystem.stability,
        )

    def get_summary(self) -> EcosystemSummary:
        endangered: list[str] = []
        for ecosystem in self.ecosystems.values():
            for species in ecosystem.species.values():
                if 0 < species.population < species.carrying_capacity * 0.1:
                    if species.name not in endangered:
                        endangered.append(species.name)
        count = len(self.ecosystems)
        avg = sum(e.stability for e in self.ecosystems.values()) / count if count else 1.0
        return EcosystemSummary(
            total_locations=count, avg_stability=avg, endangered_species=endangered
        )
