"""数值小工具：截断、插值、S 型函数与 ID 生成。"""

from __future__ import annotations

import math
import uuid


def clamp(value: float, low: float, high: float) -> float:
    """把数值截断到 [low, high]。"""
    return max(low, min(high, value))


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def sigmoid(x: float) -> float:
    """logistic 函数；对 -inf 返回 0.0。"""
    if x == -math.inf:
        return 0.0
    if x < -700:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))


def new_id(prefix: str) -> str:
    """生成形如 ``prefix_1a2b3c4d`` 的短 ID。"""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"
