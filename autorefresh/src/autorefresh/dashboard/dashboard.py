"""Dashboard: 按配置挂载全部面板的根组件"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config.settings import Settings
from ..lifecycle import Component, LifecycleScope
from .client import LedgerClient
from .panels import Panel
from .registry import PanelRegistry, registry as default_registry

logger = logging.getLogger("autorefresh.dashboard")


class Dashboard(Component):
    """根组件，每个面板挂载在独立的子作用域中

    卸载仪表盘会级联卸载全部面板，从而取消所有订阅。
    """

    def __init__(
        self,
        settings: Settings,
        client: LedgerClient,
        *,
        panel_registry: Optional[PanelRegistry] = None,
        name: str = "dashboard",
    ):
        super().__init__(name)
        self.settings = settings
        self.client = client
        self.registry = panel_registry or default_registry
        self.panels: Dict[str, Panel] = {}

    async def setup(self, scope: LifecycleScope) -> None:
        for item in self.settings.panels:
            try:
                panel = self.registry.create(item, self.client, self.settings.refresh)
            except ValueError as exc:
                logger.warning("跳过无法创建的面板: %s, 错误: %s", item, exc)
                continue

            if panel.name in self.panels:
                logger.warning("面板名称重复，跳过: %s", panel.name)
                continue

            await panel.mount(parent=scope)
            self.panels[panel.name] = panel

        logger.info("仪表盘已挂载 %d 个面板", len(self.panels))

    def get_panel(self, name: str) -> Optional[Panel]:
        return self.panels.get(name)

    def snapshot(self) -> List[Dict[str, Any]]:
        return [panel.snapshot() for panel in self.panels.values()]
