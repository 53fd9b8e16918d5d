"""RefreshScheduler 组件集合

- Subscription: 一个周期性拉取循环
- RefreshHandle: 订阅的取消句柄
- RefreshScheduler: 为每个订阅启动独立 asyncio 任务的调度器
- RefreshPriority / make_subscription_id: 配置与命名辅助工具
"""

from .types import Fetcher, RefreshPriority, SubscriptionState, make_subscription_id
from .subscription import RefreshHandle, Subscription
from .scheduler import RefreshScheduler

__all__ = [
    "Fetcher",
    "RefreshPriority",
    "SubscriptionState",
    "make_subscription_id",
    "RefreshHandle",
    "Subscription",
    "RefreshScheduler",
]
