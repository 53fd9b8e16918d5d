"""API 响应模型定义

使用 Pydantic 描述面板与订阅状态的序列化格式。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PanelResponse(BaseModel):
    """面板快照"""
    name: str = Field(..., description="面板名称")
    kind: str = Field(..., description="面板类型")
    user: Optional[str] = Field(None, description="关联用户")
    interval_ms: int = Field(..., description="刷新间隔（毫秒）")
    mounted: bool = Field(..., description="是否处于挂载状态")
    value: Any = Field(None, description="最近一次成功拉取的数据")
    version: int = Field(0, description="已完成的写入次数")
    updated_at: Optional[float] = Field(None, description="最近写入时间（Unix 秒）")
    error_count: int = Field(0, description="拉取失败次数")
    last_error: Optional[str] = Field(None, description="最近一次失败描述")


class PanelListResponse(BaseModel):
    total: int = Field(..., description="面板数量")
    panels: List[PanelResponse] = Field(default_factory=list)


class RefreshAcceptedResponse(BaseModel):
    name: str = Field(..., description="面板名称")
    accepted: bool = Field(True, description="刷新请求已受理")


class SubscriptionInfo(BaseModel):
    """订阅状态"""
    uuid: str
    name: str
    interval_ms: float
    state: str
    created_at: str
    run_count: int
    failure_count: int
    last_run_at: Optional[str] = None
    last_error: Optional[str] = None


class StatusResponse(BaseModel):
    message: str
    timestamp: str
    scheduler_running: bool
    active_subscriptions: int
    subscriptions: Dict[str, SubscriptionInfo] = Field(default_factory=dict)
