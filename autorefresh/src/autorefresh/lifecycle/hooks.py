"""组件内使用的自动刷新钩子

    async def setup(self, scope):
        await load()                      # 初次加载由组件自己完成
        use_auto_refresh(scope, 2000, load)

资源模式下，周期任务只让触发器自增，真正的拉取由缓存适配器完成：

    stream, invalidate = use_auto_refresh_resource(scope, 3000, fetch_transactions)
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Hashable, Optional, Tuple

from ..cache import DataSink, ResourceCacheAdapter, TriggerCounter
from ..refresh_scheduler import Fetcher, RefreshHandle, make_subscription_id
from .scope import LifecycleScope


def use_auto_refresh(
    scope: LifecycleScope,
    interval_ms: float,
    fetcher: Fetcher,
    *,
    name: Optional[str] = None,
) -> RefreshHandle:
    """每隔 interval_ms 调用一次 fetcher，作用域卸载时自动取消"""
    return scope.auto_refresh(interval_ms, fetcher, name=name)


def use_resource(
    scope: LifecycleScope,
    fetch: Callable[[], Awaitable[Any]],
    *,
    name: Optional[str] = None,
    counter: Optional[TriggerCounter] = None,
    compute_key: Optional[Callable[[], Hashable]] = None,
    sink: Optional[DataSink] = None,
) -> ResourceCacheAdapter:
    """创建并绑定缓存资源，作用域卸载时关闭"""
    adapter = ResourceCacheAdapter(
        fetch,
        counter=counter,
        compute_key=compute_key,
        sink=sink,
        name=make_subscription_id(scope.name, name),
    )
    scope.on_unmount(lambda: adapter.aclose(scope.teardown_grace_seconds))
    adapter.bind()
    return adapter


def use_auto_refresh_resource(
    scope: LifecycleScope,
    interval_ms: float,
    fetch: Callable[[], Awaitable[Any]],
    *,
    name: Optional[str] = None,
    sink: Optional[DataSink] = None,
) -> Tuple[DataSink, Callable[[], int]]:
    """缓存资源 + 周期自增触发器

    Returns:
        (value_stream, invalidate)，invalidate 可用于手动刷新
    """
    adapter = use_resource(scope, fetch, name=name, sink=sink)
    stream, invalidate = adapter.bind()

    async def bump() -> None:
        invalidate()

    use_auto_refresh(scope, interval_ms, bump, name=name)
    return stream, invalidate
