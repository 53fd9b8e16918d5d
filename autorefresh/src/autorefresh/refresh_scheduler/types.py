from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Optional

# 零参数异步拉取函数；返回值被忽略，结果通过外部 DataSink 写出
Fetcher = Callable[[], Awaitable[object]]


class SubscriptionState(str, Enum):
    """订阅状态：Idle -> Running -> Cancelled（终态）"""

    Idle = "idle"
    Running = "running"
    Cancelled = "cancelled"


class RefreshPriority(str, Enum):
    """刷新优先级，用于从配置中挑选默认间隔。

    - high: 用户列表、余额等需要更快刷新的数据
    - low: 交易记录、系统状态等
    """

    High = "high"
    Low = "low"


def make_subscription_id(
    scope_name: str,
    source: Optional[str] = None,
    *,
    suffix: Optional[str] = None,
) -> str:
    """生成统一格式的订阅名称。

    - 匿名订阅:  "<scope>"
    - 具名订阅:  "<scope>:<source>"

    Args:
        scope_name: 所属作用域名称
        source: 数据源名称，例如 "users"
        suffix: 可选后缀（例如序号）

    Returns:
        订阅名称字符串
    """

    parts: list[str] = [scope_name]
    if source:
        parts.append(str(source))
    if suffix:
        parts.append(suffix)
    return ":".join(parts)
