"""Subscription: 调度器管理的最小单元"""

from __future__ import annotations

import asyncio
import logging
import uuid as uuid_lib
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .types import Fetcher, SubscriptionState

logger = logging.getLogger("autorefresh.scheduler")


class Subscription:
    """一个周期性拉取循环

    每次调用“开始自动刷新”都会创建一个独立的 Subscription，
    它只归创建它的作用域所有，不会被共享或转移。

    Attributes:
        uuid: 唯一标识符
        name: 便于日志排查的名称
        fetcher: 每个 tick 调用一次的零参数异步函数
        state: Idle -> Running -> Cancelled
        run_count: 已发起的 fetcher 调用次数（包括失败的）
        failure_count: 失败次数
        last_run_at: 最近一次调用时间
        last_error: 最近一次失败的描述
    """

    def __init__(
        self,
        interval_ms: float,
        fetcher: Fetcher,
        name: Optional[str] = None,
        uuid: Optional[str] = None,
    ):
        """初始化 Subscription

        Args:
            interval_ms: 刷新间隔（毫秒），必须为正数
            fetcher: 零参数异步拉取函数
            name: 订阅名称，默认使用 uuid 前 8 位
            uuid: 唯一标识，默认自动生成

        Raises:
            ValueError: 间隔不是正数
            TypeError: fetcher 不可调用
        """
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, (int, float)):
            raise ValueError(f"interval_ms must be a number, got {interval_ms!r}")
        if not interval_ms > 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms!r}")
        if not callable(fetcher):
            raise TypeError("fetcher must be a zero-argument async callable")

        self.uuid = uuid or str(uuid_lib.uuid4())
        self.name = name or self.uuid[:8]
        self.fetcher = fetcher
        self._interval_ms = float(interval_ms)
        self.state = SubscriptionState.Idle
        self.created_at = datetime.now(timezone.utc)

        self.run_count = 0
        self.failure_count = 0
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._cancel_event = asyncio.Event()

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def interval_seconds(self) -> float:
        return self._interval_ms / 1000.0

    @property
    def cancelled(self) -> bool:
        return self.state is SubscriptionState.Cancelled

    def mark_running(self) -> None:
        if self.state is SubscriptionState.Idle:
            self.state = SubscriptionState.Running

    def cancel(self) -> bool:
        """标记为已取消（幂等）

        Returns:
            首次取消返回 True，重复调用返回 False
        """
        if self.state is SubscriptionState.Cancelled:
            return False

        self.state = SubscriptionState.Cancelled
        self._cancel_event.set()
        logger.debug("订阅已取消: %s", self)
        return True

    async def wait_cancelled(self, timeout: float) -> bool:
        """等待最多 timeout 秒，期间被取消则提前返回 True"""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，用于状态接口或日志打印"""
        return {
            "uuid": self.uuid,
            "name": self.name,
            "interval_ms": self._interval_ms,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(),
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error,
        }

    def __str__(self) -> str:
        return (
            f"Subscription(name={self.name}, interval_ms={self._interval_ms:g}, "
            f"state={self.state.value})"
        )

    def __repr__(self) -> str:
        return (
            f"Subscription(uuid='{self.uuid}', name='{self.name}', "
            f"interval_ms={self._interval_ms:g}, state={self.state.value}, "
            f"run_count={self.run_count})"
        )


class RefreshHandle:
    """订阅的取消句柄

    句柄本身可调用，`handle()` 等价于 `handle.cancel()`。
    取消是协作式的：正在执行的 fetcher 会被允许跑完，
    但之后不会再发起新的调用。
    """

    def __init__(self, subscription: Subscription, task: asyncio.Task):
        self._subscription = subscription
        self._task = task

    @property
    def subscription(self) -> Subscription:
        return self._subscription

    @property
    def cancelled(self) -> bool:
        return self._subscription.cancelled

    @property
    def closed(self) -> bool:
        """后台循环是否已经退出"""
        return self._task.done()

    def cancel(self) -> None:
        self._subscription.cancel()

    __call__ = cancel

    async def aclose(self, timeout: Optional[float] = None) -> bool:
        """取消订阅并等待后台循环退出

        超过 timeout 仍未退出（通常是 fetcher 卡住）时强制取消后台任务，
        放弃正在执行的 fetcher。

        Args:
            timeout: 等待秒数，None 表示一直等待

        Returns:
            循环在宽限期内自行退出返回 True，被强制取消返回 False
        """
        self.cancel()
        if self._task.done():
            return True
        if asyncio.current_task() is self._task:
            # 在自己的 fetcher 内关闭：本次调用返回后循环自然退出
            return True

        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        if done:
            return True

        logger.warning(
            "订阅在 %.2fs 内未退出，强制取消正在执行的 fetcher: %s",
            timeout,
            self._subscription,
        )
        self._task.cancel()
        await asyncio.wait({self._task})
        return False

    def __repr__(self) -> str:
        return f"RefreshHandle({self._subscription!r}, closed={self.closed})"
