"""经济系统数据模型。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Goods(str, Enum):
    FOOD = "food"
    WEAPONS = "weapons"
    LUXURY = "luxury"
    MATERIALS = "materials"
    MEDICINE = "medicine"


BASE_PRICES: dict[Goods, float] = {
    Goods.FOOD: 10.0,
    Goods.WEAPONS: 50.0,
    Goods.LUXURY: 100.0,
    Goods.MATERIALS: 20.0,
    Goods.MEDICINE: 30.0,
}


class Market(BaseModel):
    """某个地点的市场。"""

    location_id: str = Field(description="所在地点 ID")
    prices: dict[Goods, float] = Field(default_factory=dict, description="当前价格")
    supply: dict[Goods, float] = Field(default_factory=dict, description="供给量")
    demand: dict[Goods, float] = Field(default_factory=dict, description="需求量")
    trade_volume: float = Field(default=0.0, description="累计贸易量")


class TradeResult(BaseModel):
    """一次买卖的结果。"""

    success: bool
    amount: float = Field(default=0.0, description="买入时为花费，卖出时为收入")


class EconomySummary(BaseModel):
    avg_prices: dict[Goods, float]
    inflation_rate: float
    market_count: int
