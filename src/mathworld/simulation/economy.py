"""市场经济模拟。

价格 = 基础价 × (需求/供给)^0.3 × (1 + 通胀)，并截断到基础价的 [0.5, 3] 倍；
相邻市场之间的价差会引发商品流动。
"""

from __future__ import annotations

import logging
import random

from mathworld.models.economy import BASE_PRICES, EconomySummary, Goods, Market, TradeResult
from mathworld.models.location import Location, LocationType
from mathworld.models.world import Season
from mathworld.state.world_state import WorldState
from mathworld.utils.numeric import clamp, lerp

logger = logging.getLogger(__name__)

PRICE_ELASTICITY = 0.3
MIN_PRICE_FACTOR = 0.5
MAX_PRICE_FACTOR = 3.0
CONSUMPTION_SHARE = 0.1
TRADE_PRICE_RATIO = 1.3
TRADE_TRANSFER = 5.0
SELL_FEE = 0.2

MARKET_LOCATION_TYPES = frozenset({LocationType.CITY, LocationType.VILLAGE})


def _production_factor(location_type: LocationType, goods: Goods) -> float:
    match goods:
        case Goods.FOOD:
            return 2.0 if location_type is LocationType.VILLAGE else 0.5
        case Goods.WEAPONS:
            return 1.0 if location_type is LocationType.CITY else 0.2
        case Goods.LUXURY:
            return 1.0 if location_type is LocationType.CITY else 0.0
        case Goods.MATERIALS:
            return 1.0
        case Goods.MEDICINE:
            return 0.5


class Economy:
    """各地市场的供需、价格、通胀与贸易。"""

    def __init__(self, world: WorldState, rng: random.Random | None = None):
        self.world = world
        self.rng = rng or world.rng
        self.inflation_rate = 0.0
        self.markets: dict[str, Market] = {}
        for location in world.get_all_locations():
            if location.type in MARKET_LOCATION_TYPES:
                self.markets[location.id] = self._create_market(location)

    def _create_market(self, location: Location) -> Market:
        base_supply = 100.0 if location.type is LocationType.CITY else 30.0
        base_demand = location.population / 100
        return Market(
            location_id=location.id,
            prices={g: BASE_PRICES[g] for g in Goods},
            supply={g: base_supply * self.rng.uniform(0.8, 1.2) for g in Goods},
            demand={g: base_demand * self.rng.uniform(0.8, 1.2) for g in Goods},
        )

    def update(self) -> None:
        self._update_prices()
        self._update_supply_demand()
        self._update_inflation()
        self._update_trade_routes()

    def _update_prices(self) -> None:
        for market in self.markets.values():
            for goods in Goods:
                base = BASE_PRICES[goods]
                ratio = market.demand.get(goods, 1.0) / max(1.0, market.supply.get(goods, 1.0))
                price = base * ratio**PRICE_ELASTICITY * (1 + self.inflation_rate)
                market.prices[goods] = clamp(
                    price, base * MIN_PRICE_FACTOR, base * MAX_PRICE_FACTOR
                )

    def _update_supply_demand(self) -> None:
        season = self.world.global_state.season
        plague = self.world.global_state.plague_active
        for market in self.markets.values():
            location = self.world.get_location(market.location_id)
            if location is None:
                continue
            for goods in Goods:
                production = (
                    location.resources
                    / 100
                    * _production_factor(location.type, goods)
                    * self.rng.uniform(0.8, 1.2)
                )
                supply = market.supply.get(goods, 0.0) + production

                seasonal = 1.0
                if goods is Goods.FOOD and season is Season.WINTER:
                    seasonal = 1.5
                if goods is Goods.MEDICINE and plague:
                    seasonal = 3.0
                demand_change = location.population / 10000 * seasonal * self.rng.uniform(-0.5, 0.5)
                demand = max(0.0, market.demand.get(goods, 0.0) + demand_change)

                consumption = min(supply, demand * CONSUMPTION_SHARE)
                market.supply[goods] = max(0.0, supply - consumption)
                market.demand[goods] = demand

    def _update_inflation(self) -> None:
        target = 0.1 if self.world.global_state.economy_index < 1 else 0.0
        self.inflation_rate = clamp(lerp(self.inflation_rate, target, 0.1), -0.1, 0.5)

    def _update_trade_routes(self) -> None:
        for location in self.world.get_all_locations():
            market = self.markets.get(location.id)
            if market is None:
                continue
            for connected_id in location.connected_to:
                neighbour = self.markets.get(connected_id)
                if neighbour is None:
                    continue
                for goods in Goods:
                    if market.prices[goods] <= neighbour.prices[goods] * TRADE_PRICE_RATIO:
                        continue
                    if neighbour.supply[goods] <= TRADE_TRANSFER:
                        continue
                    neighbour.supply[goods] -= TRADE_TRANSFER
                    market.supply[goods] += TRADE_TRANSFER
                    market.trade_volume += TRADE_TRANSFER

    # ──────────────────────────────────────────
    # 查询与交易
    # ──────────────────────────────────────────

    def get_market(self, location_id: str) -> Market | None:
        return self.markets.get(location_id)

    def get_price(self, location_id: str, goods: Goods) -> float:
        market = self.markets.get(location_id)
        if market is None:
            return BASE_PRICES[goods]
        return market.prices.get(goods, BASE_PRICES[goods])

    def buy(self, location_id: str, goods: Goods, quantity: float) -> TradeResult:
        """买入：供给减少，需求随之上升。"""
        market = self.markets.get(location_id)
        if market is None or quantity <= 0 or market.supply[goods] < quantity:
            return TradeResult(success=False)
        cost = market.prices[goods] * quantity
        market.supply[goods] -= quantity
        market.demand[goods] += quantity * 0.5
        return TradeResult(success=True, amount=cost)

    def sell(self, location_id: str, goods: Goods, quantity: float) -> TradeResult:
        """卖出：扣除 20% 手续费。"""
        market = self.markets.get(location_id)
        if market is None or quantity <= 0:
            return TradeResult(success=False)
        revenue = market.prices[goods] * quantity * (1 - SELL_FEE)
        market.supply[goods] += quantity
        return TradeResult(success=True, amount=revenue)

    def get_summary(self) -> EconomySummary:
        count = len(self.markets)
        avg_prices = {
            g: (
                sum(m.prices[g] for m in self.markets.values()) / count
                if count
                else BASE_PRICES[g]
            )
            for g in Goods
        }
        return EconomySummary(
            avg_prices=avg_prices, inflation_rate=self.inflation_rate, market_count=count
        )
