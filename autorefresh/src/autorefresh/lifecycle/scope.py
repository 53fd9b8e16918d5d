"""LifecycleScope: 组件实例的生命周期作用域

作用域拥有在其内创建的全部订阅与子作用域，卸载时按注册的逆序执行
清理回调，从而保证不会留下“泄漏的轮询器”。

状态机：Mounted -> Unmounting -> Unmounted（终态），不会重新进入 Mounted。
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

from ..errors import ScopeStateError
from ..refresh_scheduler import Fetcher, RefreshHandle, RefreshScheduler, make_subscription_id

logger = logging.getLogger("autorefresh.lifecycle")

SetupFn = Callable[["LifecycleScope"], Any]
TeardownFn = Callable[[], Any]


class ScopeState(str, Enum):
    Mounted = "mounted"
    Unmounting = "unmounting"
    Unmounted = "unmounted"


class LifecycleScope:
    """拥有订阅的作用域，一个 UI 组件实例对应一个

    Attributes:
        name: 作用域名称，同时作为其订阅名称的前缀
        scheduler: 创建订阅所用的调度器
        teardown_grace_seconds: 卸载时等待进行中 fetcher 的宽限时间
        state: 当前状态
    """

    def __init__(
        self,
        name: str,
        scheduler: RefreshScheduler,
        *,
        teardown_grace_seconds: Optional[float] = 1.0,
        parent: Optional["LifecycleScope"] = None,
    ):
        self.name = name
        self.scheduler = scheduler
        self.teardown_grace_seconds = teardown_grace_seconds
        self.parent = parent
        self.state = ScopeState.Mounted

        self._setups: List[SetupFn] = []
        self._teardowns: List[TeardownFn] = []
        self._handles: List[RefreshHandle] = []
        self._children: List[LifecycleScope] = []
        self._unmounted = asyncio.Event()
        self._draining = False

    @property
    def mounted(self) -> bool:
        return self.state is ScopeState.Mounted

    @property
    def handles(self) -> List[RefreshHandle]:
        return list(self._handles)

    @property
    def children(self) -> List["LifecycleScope"]:
        return list(self._children)

    def _require_mounted(self, action: str) -> None:
        if self.state is not ScopeState.Mounted:
            raise ScopeStateError(
                self.name,
                self.state.value,
                f"Cannot {action} on scope '{self.name}' in state {self.state.value}",
            )

    async def on_mount(self, setup_fn: SetupFn) -> None:
        """执行一次 setup_fn(scope)，同一个函数在同一作用域内只执行一次"""
        self._require_mounted("run setup")
        if setup_fn in self._setups:
            logger.debug("setup 已执行过，跳过: scope=%s", self.name)
            return

        self._setups.append(setup_fn)
        result = setup_fn(self)
        if inspect.isawaitable(result):
            await result

    def on_unmount(self, teardown_fn: TeardownFn) -> None:
        """注册清理回调，卸载时按注册逆序各执行一次"""
        self._require_mounted("register teardown")
        self._teardowns.append(teardown_fn)

    def own(self, handle: RefreshHandle) -> RefreshHandle:
        """接管一个在别处创建的订阅句柄，卸载时取消它"""
        self._require_mounted("own subscription")
        self._handles.append(handle)
        grace = self.teardown_grace_seconds
        self.on_unmount(lambda: handle.aclose(grace))
        return handle

    def auto_refresh(
        self,
        interval_ms: float,
        fetcher: Fetcher,
        *,
        name: Optional[str] = None,
    ) -> RefreshHandle:
        """在本作用域内启动周期刷新，并自动注册取消"""
        self._require_mounted("start auto refresh")
        handle = self.scheduler.schedule(
            interval_ms,
            fetcher,
            name=make_subscription_id(self.name, name, suffix=str(len(self._handles))),
        )
        return self.own(handle)

    def child(self, name: str) -> "LifecycleScope":
        """创建子作用域；父作用域卸载时先卸载它"""
        self._require_mounted("create child scope")
        scope = LifecycleScope(
            f"{self.name}/{name}",
            self.scheduler,
            teardown_grace_seconds=self.teardown_grace_seconds,
            parent=self,
        )
        self._children.append(scope)
        self.on_unmount(scope.unmount)
        return scope

    def cancel_subscriptions(self) -> None:
        """同步取消本作用域及全部子作用域的订阅，不等待循环退出"""
        for handle in self._handles:
            handle.cancel()
        for child in self._children:
            child.cancel_subscriptions()

    async def unmount(self) -> None:
        """卸载作用域（幂等）：按逆序执行清理回调，取消全部订阅

        卸载过程被取消时，先同步取消全部订阅再向上抛出；状态保持为
        Unmounting，再次调用 unmount() 会继续执行剩余的清理回调。
        """
        if self.state is ScopeState.Unmounted:
            return
        if self._draining:
            await self._unmounted.wait()
            return

        self.state = ScopeState.Unmounting
        self._draining = True
        logger.debug(
            "作用域卸载中: scope=%s teardowns=%d subscriptions=%d",
            self.name,
            len(self._teardowns),
            len(self._handles),
        )

        teardown = None
        try:
            while self._teardowns:
                teardown = self._teardowns.pop()
                try:
                    result = teardown()
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("清理回调失败，继续执行其余回调: scope=%s", self.name)
        except BaseException:
            # 子作用域的卸载可重入，放回去以便重试时继续
            if getattr(teardown, "__self__", None) in self._children:
                self._teardowns.append(teardown)
            self.cancel_subscriptions()
            logger.warning(
                "作用域卸载被中断，已取消全部订阅，剩余清理回调 %d 个: scope=%s",
                len(self._teardowns),
                self.name,
            )
            raise
        else:
            self.state = ScopeState.Unmounted
            self._unmounted.set()
            logger.info("作用域已卸载: scope=%s", self.name)
        finally:
            self._draining = False

    async def __aenter__(self) -> "LifecycleScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.unmount()
        return False

    def __repr__(self) -> str:
        return (
            f"LifecycleScope(name='{self.name}', state={self.state.value}, "
            f"subscriptions={len(self._handles)})"
        )
