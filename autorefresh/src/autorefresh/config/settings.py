from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pathlib import Path
import yaml
from typing import List, Optional
import logging
import os

from ..refresh_scheduler import RefreshPriority

logger = logging.getLogger("autorefresh.config")

CONFIG_FILENAME = "autorefresh.yaml"


class RefreshPolicy(BaseModel):
    """按优先级划分的默认刷新间隔（调用方策略，不属于调度器核心）"""

    high_priority_interval_ms: int = Field(default=2000, ge=1)
    low_priority_interval_ms: int = Field(default=3000, ge=1)
    teardown_grace_seconds: float = Field(default=1.0, ge=0)

    def interval_for(self, priority: RefreshPriority) -> int:
        if priority is RefreshPriority.High:
            return self.high_priority_interval_ms
        return self.low_priority_interval_ms


class LedgerConfig(BaseModel):
    base_url: str = Field(default="http://127.0.0.1:8080")
    timeout_seconds: float = Field(default=5.0, gt=0)

    def __init__(self, **data):
        super().__init__(**data)
        # 支持环境变量覆盖账本服务地址
        if "AUTOREFRESH_LEDGER_URL" in os.environ:
            self.base_url = os.environ["AUTOREFRESH_LEDGER_URL"]


class PanelItem(BaseModel):
    kind: str
    name: Optional[str] = Field(default=None)
    user: Optional[str] = Field(default=None)
    interval_ms: Optional[int] = Field(default=None, ge=1)
    priority: Optional[RefreshPriority] = Field(default=None)

    @field_validator("kind")
    @classmethod
    def _normalize_kind(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("kind must not be empty")
        return value

    @property
    def panel_name(self) -> str:
        if self.name:
            return self.name
        return f"{self.kind}:{self.user}" if self.user else self.kind


class Settings(BaseModel):
    log_level: str = Field(default="INFO")
    refresh: RefreshPolicy = Field(default_factory=RefreshPolicy)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    panels: List[PanelItem] = Field(default_factory=list)

    @staticmethod
    def from_yaml(path: Optional[Path | str] = None) -> "Settings":
        """从 YAML 文件加载配置"""
        if path is None:
            path = os.environ.get("AUTOREFRESH_CONFIG") or _discover_yaml_path()

        path = Path(path)
        if not path.exists():
            logger.warning("配置文件不存在: %s", path)
            return Settings()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # 解析面板配置，跳过无效项
            panels = []
            for item_data in data.get("panels", []) or []:
                if isinstance(item_data, dict):
                    try:
                        panels.append(PanelItem(**item_data))
                    except Exception as e:
                        logger.warning("跳过无效的面板配置项: %s, 错误: %s", item_data, e)
                else:
                    logger.warning("跳过无效的面板配置项: %s", item_data)

            return Settings(
                log_level=data.get("log_level", "INFO"),
                refresh=RefreshPolicy(**(data.get("refresh") or {})),
                ledger=LedgerConfig(**(data.get("ledger") or {})),
                panels=panels,
            )

        except Exception as e:
            logger.error("加载配置文件失败: %s", e)
            return Settings()


def _discover_yaml_path() -> Path:
    """向上递归查找 autorefresh.yaml 文件"""
    start = Path(__file__).resolve()
    for parent in start.parents:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    # 默认位置
    return Path.cwd() / CONFIG_FILENAME


_settings: Settings | None = None


def get_settings() -> Settings:
    """获取全局配置实例"""
    global _settings
    if _settings is None:
        _settings = Settings.from_yaml()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
