"""Component: 可挂载组件基类"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import ScopeStateError
from ..refresh_scheduler import RefreshScheduler
from .scope import LifecycleScope

logger = logging.getLogger("autorefresh.lifecycle")


class Component(ABC):
    """组件基类

    每个组件实例只会被挂载一次。派生类在 `setup()` 中完成初次加载并
    通过作用域启动周期刷新；卸载由作用域统一负责。

    Attributes:
        name: 组件名称，同时作为作用域名称
        scope: 挂载后的生命周期作用域
    """

    def __init__(self, name: str):
        self.name = name
        self.scope: Optional[LifecycleScope] = None

    @abstractmethod
    async def setup(self, scope: LifecycleScope) -> None:
        """挂载时执行一次

        Args:
            scope: 本组件实例的作用域
        """
        raise NotImplementedError

    async def mount(
        self,
        scheduler: Optional[RefreshScheduler] = None,
        *,
        parent: Optional[LifecycleScope] = None,
        teardown_grace_seconds: Optional[float] = 1.0,
    ) -> LifecycleScope:
        """创建作用域并执行 setup；setup 失败时立即卸载后重新抛出

        Args:
            scheduler: 独立挂载时使用的调度器
            parent: 作为子组件挂载时的父作用域

        Raises:
            ScopeStateError: 组件已经挂载过
        """
        if self.scope is not None:
            raise ScopeStateError(
                self.name, self.scope.state.value, f"Component '{self.name}' already mounted"
            )

        if parent is not None:
            scope = parent.child(self.name)
        elif scheduler is not None:
            scope = LifecycleScope(
                self.name, scheduler, teardown_grace_seconds=teardown_grace_seconds
            )
        else:
            raise ValueError("mount() requires either a scheduler or a parent scope")

        self.scope = scope
        try:
            await scope.on_mount(self.setup)
        except BaseException as exc:
            # setup 被取消时无法再等待清理，至少保证订阅全部停止
            scope.cancel_subscriptions()
            if isinstance(exc, Exception):
                logger.exception("组件挂载失败，执行清理: component=%s", self.name)
                await scope.unmount()
            raise

        logger.info("组件已挂载: component=%s", self.name)
        return scope

    async def unmount(self) -> None:
        if self.scope is not None:
            await self.scope.unmount()

    @property
    def mounted(self) -> bool:
        return self.scope is not None and self.scope.mounted

    def __str__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}', mounted={self.mounted})"
