"""角色之间的有向关系。"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RelationField(str, Enum):
    """关系中可被效果修改的数值字段。"""

    TRUST = "trust"
    FEAR = "fear"
    RESPECT = "respect"
    DEBT = "debt"


class Relation(BaseModel):
    """A 对 B 的关系（不对称）。"""

    trust: float = Field(default=0.0, ge=-1.0, le=1.0, description="信任 [-1, 1]")
    fear: float = Field(default=0.0, ge=0.0, le=1.0, description="畏惧 [0, 1]")
    respect: float = Field(default=0.0, ge=-1.0, le=1.0, description="尊重 [-1, 1]")
    debt: float = Field(default=0.0, description="人情债（不截断）")
    secret_shared: bool = Field(default=False, description="是否共享过秘密")
    history: list[str] = Field(default_factory=list, description="相关事件 ID")
