"""ResourceCacheAdapter: 以触发计数器为键的缓存资源

调用方不直接调用 fetch，而是通过 `invalidate()` 让计数器加一；
适配器观察到键变化后自行重新拉取，并把结果发布到 DataSink。

同一时刻最多只有一个拉取在进行。拉取期间到达的多次自增会合并，
当前拉取结束后只针对最新的键再拉一次。
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from .sink import DataSink
from .trigger import TriggerCounter

logger = logging.getLogger("autorefresh.cache")

_UNSET = object()


@dataclass
class CacheEntry:
    value: object | None = None
    key: Hashable | None = None
    fetched_at: float | None = None
    fetch_count: int = 0
    error_count: int = 0
    last_error: str | None = None


class ResourceCacheAdapter:
    """把 fetch 包装成由 TriggerCounter 驱动的缓存资源

    Attributes:
        name: 资源名称
        counter: 被观察的触发计数器
        sink: 发布拉取结果的 DataSink
        entry: 当前缓存条目（值、键、错误统计）
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        *,
        counter: Optional[TriggerCounter] = None,
        compute_key: Optional[Callable[[], Hashable]] = None,
        sink: Optional[DataSink] = None,
        name: str = "resource",
    ):
        """初始化缓存适配器

        Args:
            fetch: 零参数异步拉取函数，返回值写入 sink
            counter: 触发计数器，默认新建
            compute_key: 读取计数器并返回缓存键，默认直接使用计数值
            sink: 结果写入目标，默认新建
            name: 资源名称，用于日志
        """
        self.name = name
        self.counter = counter or TriggerCounter(name=f"{name}.trigger")
        self.sink = sink if sink is not None else DataSink(name=name)
        self.entry = CacheEntry()

        self._fetch = fetch
        self._compute_key = compute_key or self.counter.get
        self._observed_key: Any = _UNSET
        self._pump_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._detach: Optional[Callable[[], None]] = None
        self._closed = False

    def bind(self) -> Tuple[DataSink, Callable[[], int]]:
        """开始观察计数器并触发初次拉取。

        必须在运行中的事件循环内调用，重复调用返回同一组对象。

        Returns:
            (value_stream, invalidate)
        """
        if self._closed:
            raise RuntimeError(f"Resource '{self.name}' is closed")

        if self._detach is None:
            self._loop = asyncio.get_running_loop()
            self._detach = self.counter.observe(self._on_trigger)
            self._ensure_pump()
            logger.debug("资源已绑定: name=%s", self.name)

        return self.sink, self.invalidate

    def invalidate(self) -> int:
        """将计数器加一，标记缓存过期；本身不拉取"""
        return self.counter.increment()

    def _on_trigger(self, value: int) -> None:
        if self._closed or self._loop is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._ensure_pump()
        else:
            # 来自其他线程的自增；所属事件循环已关闭时丢弃
            try:
                self._loop.call_soon_threadsafe(self._ensure_pump)
            except RuntimeError:
                logger.warning("资源所属事件循环已关闭，忽略失效通知: name=%s", self.name)

    def _ensure_pump(self) -> None:
        if self._closed:
            return
        if self._pump_task is None or self._pump_task.done():
            self._pump_task = asyncio.get_running_loop().create_task(
                self._pump(), name=f"autorefresh.resource:{self.name}"
            )

    async def _pump(self) -> None:
        while not self._closed:
            key = self._compute_key()
            if key == self._observed_key:
                return
            self._observed_key = key
            await self._run_fetch(key)

    async def _run_fetch(self, key: Hashable) -> None:
        try:
            value = await self._fetch()
        except Exception as exc:
            # 保留旧值，不清空缓存
            self.entry.error_count += 1
            self.entry.last_error = f"{type(exc).__name__}: {exc}"
            logger.warning(
                "资源拉取失败，保留旧值: name=%s key=%s error=%s",
                self.name,
                key,
                self.entry.last_error,
            )
            return

        self.entry.value = value
        self.entry.key = key
        self.entry.fetched_at = time.time()
        self.entry.fetch_count += 1
        self.sink.write(value)
        logger.debug(
            "资源已刷新: name=%s key=%s fetch_count=%d",
            self.name,
            key,
            self.entry.fetch_count,
        )

    async def wait_idle(self) -> None:
        """等待当前拉取（含合并后的补拉）完成"""
        while self._pump_task is not None and not self._pump_task.done():
            await asyncio.wait({self._pump_task})

    async def aclose(self, timeout: Optional[float] = None) -> None:
        """停止观察计数器，等待正在进行的拉取结束"""
        if self._closed:
            return

        self._closed = True
        if self._detach is not None:
            self._detach()
            self._detach = None

        task = self._pump_task
        if task is not None and not task.done():
            done, _ = await asyncio.wait({task}, timeout=timeout)
            if not done:
                logger.warning("资源拉取未在宽限期内结束，强制取消: %s", self.name)
                task.cancel()
                await asyncio.wait({task})
        logger.debug("资源已关闭: name=%s", self.name)

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "trigger": self.counter.value,
            "value": self.entry.value,
            "fetched_at": self.entry.fetched_at,
            "fetch_count": self.entry.fetch_count,
            "error_count": self.entry.error_count,
            "last_error": self.entry.last_error,
        }
