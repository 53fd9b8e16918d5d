"""PanelRegistry: 面板类型注册表"""

from __future__ import annotations

from typing import Dict, Optional, Type

from ..config.settings import PanelItem, RefreshPolicy
from .client import LedgerClient
from .panels import (
    BalancePanel,
    Panel,
    SystemStatusPanel,
    TransactionsPanel,
    UsersPanel,
)


class PanelRegistry:
    """面板注册表

    Attributes:
        kinds: Key 为面板类型，value 为面板类
    """

    def __init__(self):
        self.kinds: Dict[str, Type[Panel]] = {}

    def register(self, panel_cls: Type[Panel]) -> Type[Panel]:
        """注册面板类，可作为装饰器使用

        Raises:
            ValueError: 类型名为空或已存在
        """
        kind = panel_cls.kind
        if not kind:
            raise ValueError(f"{panel_cls.__name__} does not define a kind")
        if kind in self.kinds:
            raise ValueError(f"Panel kind '{kind}' already registered")

        self.kinds[kind] = panel_cls
        return panel_cls

    def find(self, kind: str) -> Optional[Type[Panel]]:
        return self.kinds.get(kind)

    def create(
        self, item: PanelItem, client: LedgerClient, policy: RefreshPolicy
    ) -> Panel:
        """根据配置项创建面板实例

        Raises:
            ValueError: 未知的面板类型或配置不完整
        """
        panel_cls = self.find(item.kind)
        if panel_cls is None:
            raise ValueError(f"Unknown panel kind '{item.kind}'")
        return panel_cls.from_config(item, client, policy)

    def unregister(self, kind: str) -> bool:
        if kind in self.kinds:
            del self.kinds[kind]
            return True
        return False

    def list_all(self) -> Dict[str, Type[Panel]]:
        return self.kinds.copy()

    def __len__(self) -> int:
        return len(self.kinds)

    def __contains__(self, kind: str) -> bool:
        return kind in self.kinds


def build_default_registry() -> PanelRegistry:
    panel_registry = PanelRegistry()
    for panel_cls in (UsersPanel, BalancePanel, TransactionsPanel, SystemStatusPanel):
        panel_registry.register(panel_cls)
    return panel_registry


# 全局单例实例
registry = build_default_registry()
