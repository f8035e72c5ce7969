"""内核全局配置。

所有数值常量都集中在这里，默认值即标准规则；场景文件可以通过 ``config:`` 段覆盖。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TargetBenefitMode(str, Enum):
    """目标收益的计算口径。"""

    TRUST_SCALED = "trust_scaled"  # 乘以行动者对目标的信任
    UNSCALED = "unscaled"


class InstabilityThresholds(BaseModel):
    """不稳定信号与环境阈值事件共用的一组阈值。"""

    power_ratio: float = Field(default=2.0, description="最具影响力者权力超过第二名的倍数")
    resource_scarcity: float = Field(default=50.0, description="平均资源低于此值视为稀缺")
    trust_collapse: float = Field(default=-0.2, description="平均信任低于此值视为信任崩溃")
    cluster_threshold: float = Field(default=0.3, description="信息不对称检测所用的派系信任阈值")
    max_clusters: int = Field(default=2, description="派系数量超过此值视为信息不对称")
    fear_spike: float = Field(default=0.5, description="平均恐惧高于此值视为恐慌")
    power_vacuum: int = Field(default=20, description="最具影响力者权力低于此值视为权力真空")


class UtilityWeights(BaseModel):
    """效用公式中的性格/情绪权重与选择参数。"""

    personality: float = Field(default=0.3, description="性格契合度权重")
    emotion: float = Field(default=0.2, description="情绪契合度权重")
    top_k: int = Field(default=3, description="随机选择时考虑的候选数量")
    min_weight: float = Field(default=0.1, description="候选行动的最小抽样权重")
    target_benefit_mode: TargetBenefitMode = Field(
        default=TargetBenefitMode.TRUST_SCALED,
        description="目标收益是否按信任缩放",
    )


class RumorConfig(BaseModel):
    """公开事件的流言传播参数。"""

    hops: int = Field(default=2, description="传播轮数")
    base_probability: float = Field(default=0.2, description="基础传播概率")
    trust_weight: float = Field(default=0.3, description="信任对传播概率的加成系数")


class KernelConfig(BaseModel):
    """模拟内核配置。"""

    # ── 时间与情绪 ──
    emotion_retention: float = Field(
        default=0.95, description="每回合 anger/fear/joy/despair 的保留比例（trust 不衰减）"
    )

    # ── 因果循环 ──
    max_witnesses: int = Field(default=5, description="单个事件的最大目击者数量")
    rumor: RumorConfig = Field(default_factory=RumorConfig, description="流言传播参数")
    thresholds: InstabilityThresholds = Field(
        default_factory=InstabilityThresholds, description="不稳定与环境阈值"
    )
    trigger_probability_cap: float = Field(default=0.8, description="单个触发器的概率上限")
    instability_bonus: float = Field(
        default=0.1, description="每个不稳定信号带来的触发概率放大系数"
    )

    # ── 决策 ──
    utility: UtilityWeights = Field(default_factory=UtilityWeights, description="效用 AI 参数")
    npc_action_chance: float = Field(
        default=0.1, description="每回合每个 NPC 主动行动的概率"
    )
