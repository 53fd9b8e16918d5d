"""RefreshScheduler: 生命周期作用域内的周期刷新调度器

设计要点：
- 每个订阅对应一个独立的 asyncio 任务，任务之间只通过外部
  DataSink / TriggerCounter 交互
- 第一次调用发生在一个完整间隔之后，初次加载由调用方自行负责
- 固定频率 tick：慢 fetcher 错过的 tick 直接跳过，不会排队补发，
  同一订阅的调用严格串行
- fetcher 的异常被记录后吞掉，循环继续
- 取消是协作式的，只在挂起点（间隔等待、fetcher 返回后）生效
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import SchedulerClosedError
from .subscription import RefreshHandle, Subscription
from .types import Fetcher


class RefreshScheduler:
    """按订阅启动后台循环的调度器"""

    def __init__(self, name: str = "default"):
        """初始化调度器

        Args:
            name: 调度器名称，仅用于日志
        """
        self.name = name
        self._handles: Dict[str, RefreshHandle] = {}
        self._closed = False

        self._log = logging.getLogger("autorefresh.scheduler")

    def schedule(
        self,
        interval_ms: float,
        fetcher: Fetcher,
        *,
        name: Optional[str] = None,
    ) -> RefreshHandle:
        """创建一个订阅并立即启动其定时循环。

        必须在运行中的事件循环内调用。

        Args:
            interval_ms: 刷新间隔（毫秒）
            fetcher: 零参数异步函数，每个 tick 调用一次
            name: 订阅名称

        Returns:
            订阅的取消句柄

        Raises:
            SchedulerClosedError: 调度器已停止
            ValueError: 间隔不是正数
        """
        if self._closed:
            raise SchedulerClosedError(f"Scheduler '{self.name}' is stopped")

        subscription = Subscription(interval_ms, fetcher, name=name)
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._timer_loop(subscription),
            name=f"autorefresh:{subscription.name}",
        )
        subscription.mark_running()

        handle = RefreshHandle(subscription, task)
        self._handles[subscription.uuid] = handle
        task.add_done_callback(lambda _t: self._handles.pop(subscription.uuid, None))

        self._log.info(
            "订阅已启动: name=%s interval_ms=%g",
            subscription.name,
            subscription.interval_ms,
        )
        return handle

    async def stop(self, timeout: Optional[float] = None) -> None:
        """取消所有订阅并等待循环退出（幂等）"""
        if self._closed and not self._handles:
            self._log.warning("Scheduler already stopped")
            return

        self._closed = True
        handles = list(self._handles.values())
        for handle in handles:
            handle.cancel()
        for handle in handles:
            await handle.aclose(timeout)

        self._log.info("Scheduler stopped, %d subscriptions cancelled", len(handles))

    async def _timer_loop(self, subscription: Subscription) -> None:
        loop = asyncio.get_running_loop()
        interval = subscription.interval_seconds
        next_tick = loop.time() + interval

        try:
            while True:
                delay = next_tick - loop.time()
                if delay > 0 and await subscription.wait_cancelled(delay):
                    break
                if subscription.cancelled:
                    break

                await self._invoke(subscription)
                if subscription.cancelled:
                    break

                next_tick += interval
                now = loop.time()
                if next_tick <= now:
                    missed = int((now - next_tick) // interval) + 1
                    next_tick += missed * interval
                    self._log.debug(
                        "fetcher 耗时超过间隔，跳过 %d 个 tick: %s",
                        missed,
                        subscription.name,
                    )
        except asyncio.CancelledError:
            self._log.debug("订阅循环被强制取消: %s", subscription.name)
            raise
        finally:
            subscription.cancel()
            self._log.info(
                "订阅循环退出: name=%s runs=%d failures=%d",
                subscription.name,
                subscription.run_count,
                subscription.failure_count,
            )

    async def _invoke(self, subscription: Subscription) -> None:
        subscription.run_count += 1
        subscription.last_run_at = datetime.now(timezone.utc)

        try:
            await subscription.fetcher()
        except asyncio.CancelledError as exc:
            # 只有循环任务本身被取消时才向上传播；
            # fetcher 内部等待的 future 被取消视为一次普通失败
            if asyncio.current_task().cancelling():
                raise
            self._record_failure(subscription, exc)
        except Exception as exc:
            # 失败不终止订阅，也不重试，等待下一个 tick
            self._record_failure(subscription, exc)

    def _record_failure(self, subscription: Subscription, exc: BaseException) -> None:
        subscription.failure_count += 1
        subscription.last_error = f"{type(exc).__name__}: {exc}"
        self._log.warning(
            "fetcher 执行失败，跳过本次写入: name=%s error=%s",
            subscription.name,
            subscription.last_error,
            exc_info=self._log.isEnabledFor(logging.DEBUG),
        )

    def is_running(self) -> bool:
        return not self._closed

    def active_count(self) -> int:
        """当前仍在运行的订阅数量"""
        return len(self._handles)

    def get_subscriptions_snapshot(self) -> Dict[str, Dict[str, Any]]:
        """返回订阅表快照，供状态接口使用"""
        return {
            key: handle.subscription.to_dict()
            for key, handle in self._handles.items()
        }
