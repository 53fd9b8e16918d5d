"""仪表盘面板

两种刷新方式：
- DirectPanel: 挂载时拉取一次，之后周期性直接调用 fetch 写入 sink
- ResourcePanel: 通过缓存资源拉取，周期任务只让触发器自增
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, Callable, ClassVar, Dict, Optional

from ..cache import DataSink
from ..config.settings import PanelItem, RefreshPolicy
from ..lifecycle import Component, LifecycleScope, use_auto_refresh, use_auto_refresh_resource
from ..refresh_scheduler import RefreshPriority
from .client import LedgerClient

logger = logging.getLogger("autorefresh.dashboard")


class Panel(Component):
    """面板基类

    Attributes:
        kind: 面板类型，注册表按它查找面板类
        default_priority: 未配置间隔时用于挑选默认间隔
        sink: 面板数据
        error_count: 拉取失败次数
        last_error: 最近一次失败描述
    """

    kind: ClassVar[str] = ""
    default_priority: ClassVar[RefreshPriority] = RefreshPriority.Low
    requires_user: ClassVar[bool] = False

    def __init__(
        self,
        name: str,
        client: LedgerClient,
        *,
        interval_ms: int,
        user: Optional[str] = None,
    ):
        super().__init__(name)
        if self.requires_user and not user:
            raise ValueError(f"Panel kind '{self.kind}' requires a user")
        self.client = client
        self.interval_ms = interval_ms
        self.user = user
        self.sink: DataSink = DataSink(name=name)
        self.error_count = 0
        self.last_error: Optional[str] = None

    @classmethod
    def from_config(
        cls, item: PanelItem, client: LedgerClient, policy: RefreshPolicy
    ) -> "Panel":
        priority = item.priority or cls.default_priority
        interval_ms = item.interval_ms or policy.interval_for(priority)
        return cls(item.panel_name, client, interval_ms=interval_ms, user=item.user)

    @abstractmethod
    async def fetch(self) -> Any:
        """从账本服务读取本面板的数据"""
        raise NotImplementedError

    @abstractmethod
    async def refresh(self) -> None:
        """立即刷新一次，失败只记录不抛出"""
        raise NotImplementedError

    async def _fetch_tracked(self) -> Any:
        try:
            return await self.fetch()
        except Exception as exc:
            self.error_count += 1
            self.last_error = f"{type(exc).__name__}: {exc}"
            raise

    def snapshot(self) -> Dict[str, Any]:
        sink = self.sink.snapshot()
        return {
            "name": self.name,
            "kind": self.kind,
            "user": self.user,
            "interval_ms": self.interval_ms,
            "mounted": self.mounted,
            "value": sink["value"],
            "version": sink["version"],
            "updated_at": sink["updated_at"],
            "error_count": self.error_count,
            "last_error": self.last_error,
        }


class DirectPanel(Panel):
    async def load(self) -> None:
        value = await self._fetch_tracked()
        self.sink.write(value)

    async def setup(self, scope: LifecycleScope) -> None:
        try:
            await self.load()
        except Exception as exc:
            # 初次加载失败不影响挂载，等待下一个 tick
            logger.warning("面板初次加载失败: panel=%s error=%s", self.name, exc)
        use_auto_refresh(scope, self.interval_ms, self.load, name=self.kind)

    async def refresh(self) -> None:
        try:
            await self.load()
        except Exception as exc:
            logger.warning("面板手动刷新失败: panel=%s error=%s", self.name, exc)


class ResourcePanel(Panel):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._invalidate: Optional[Callable[[], int]] = None

    async def setup(self, scope: LifecycleScope) -> None:
        _, self._invalidate = use_auto_refresh_resource(
            scope,
            self.interval_ms,
            self._fetch_tracked,
            name=self.kind,
            sink=self.sink,
        )

    async def refresh(self) -> None:
        if self._invalidate is None or not self.mounted:
            logger.warning("面板未挂载，忽略刷新: panel=%s", self.name)
            return
        self._invalidate()


class UsersPanel(DirectPanel):
    kind = "users"
    default_priority = RefreshPriority.High

    async def fetch(self) -> Any:
        return await self.client.list_users()


class BalancePanel(DirectPanel):
    kind = "balance"
    default_priority = RefreshPriority.High
    requires_user = True

    async def fetch(self) -> Any:
        return await self.client.get_balance(self.user)


class TransactionsPanel(ResourcePanel):
    kind = "transactions"
    default_priority = RefreshPriority.Low

    async def fetch(self) -> Any:
        return await self.client.list_transactions(self.user)


class SystemStatusPanel(ResourcePanel):
    kind = "status"
    default_priority = RefreshPriority.Low

    async def fetch(self) -> Any:
        return await self.client.get_system_status()
