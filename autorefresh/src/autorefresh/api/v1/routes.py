"""API v1 路由定义。

面板数据由后台订阅持续刷新，这里只读取各面板 DataSink 的快照；
手动刷新接口只提交刷新请求，不等待拉取结果。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...dashboard import Dashboard, Panel
from ...state import get_dashboard
from ..schemas import PanelListResponse, PanelResponse, RefreshAcceptedResponse

router = APIRouter(prefix="/api/v1", tags=["panels"])


def require_dashboard() -> Dashboard:
    """依赖注入：获取已挂载的仪表盘"""

    dashboard = get_dashboard()
    if dashboard is None or not dashboard.mounted:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard is not mounted",
        )
    return dashboard


def _find_panel(dashboard: Dashboard, name: str) -> Panel:
    panel = dashboard.get_panel(name)
    if panel is None:
        raise HTTPException(status_code=404, detail=f"面板 {name} 不存在")
    return panel


@router.get("/panels", response_model=PanelListResponse, summary="列出全部面板")
async def list_panels(dashboard: Dashboard = Depends(require_dashboard)):
    panels = dashboard.snapshot()
    return PanelListResponse(total=len(panels), panels=panels)


@router.get("/panels/{name}", response_model=PanelResponse, summary="获取面板数据")
async def get_panel(name: str, dashboard: Dashboard = Depends(require_dashboard)):
    return _find_panel(dashboard, name).snapshot()


@router.post(
    "/panels/{name}/refresh",
    response_model=RefreshAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="手动刷新面板",
)
async def refresh_panel(name: str, dashboard: Dashboard = Depends(require_dashboard)):
    panel = _find_panel(dashboard, name)
    await panel.refresh()
    return RefreshAcceptedResponse(name=panel.name)
