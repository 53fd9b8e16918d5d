"""账本仪表盘

基于生命周期作用域的示例宿主：用户列表、余额、交易记录与系统状态
四类面板，各自以配置的间隔自动刷新。
"""

from .client import LedgerClient
from .panels import (
    BalancePanel,
    DirectPanel,
    Panel,
    ResourcePanel,
    SystemStatusPanel,
    TransactionsPanel,
    UsersPanel,
)
from .registry import PanelRegistry, build_default_registry, registry
from .dashboard import Dashboard

__all__ = [
    "LedgerClient",
    "Panel",
    "DirectPanel",
    "ResourcePanel",
    "UsersPanel",
    "BalancePanel",
    "TransactionsPanel",
    "SystemStatusPanel",
    "PanelRegistry",
    "build_default_registry",
    "registry",
    "Dashboard",
]
