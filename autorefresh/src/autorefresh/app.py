"""AutoRefresh 仪表盘宿主

- FastAPI 实例
- RefreshScheduler 与 Dashboard 随应用生命周期创建/销毁
- 面板快照与手动刷新接口
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import state
from .api.schemas import StatusResponse
from .api.v1 import router as api_v1_router
from .config.settings import Settings, get_settings
from .dashboard import Dashboard, LedgerClient
from .refresh_scheduler import RefreshScheduler
from .utils.logging import setup_logging

logger = setup_logging()


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[LedgerClient] = None,
) -> FastAPI:
    """创建应用实例

    Args:
        settings: 配置，默认在启动时通过 get_settings() 加载
        client: 账本客户端，默认按配置创建
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: D401 (fastapi 兼容)
        """应用生命周期：挂载仪表盘 & 卸载清理。"""
        logger.info("Application starting ...")

        resolved = settings or get_settings()
        logger.setLevel(resolved.log_level.upper())
        ledger = client or LedgerClient(
            resolved.ledger.base_url, resolved.ledger.timeout_seconds
        )

        scheduler = RefreshScheduler()
        dashboard = Dashboard(resolved, ledger)
        try:
            await dashboard.mount(
                scheduler,
                teardown_grace_seconds=resolved.refresh.teardown_grace_seconds,
            )
        except Exception as exc:
            logger.exception("Failed to mount dashboard: %s", exc)
            await scheduler.stop(resolved.refresh.teardown_grace_seconds)
            raise

        state.set_scheduler(scheduler)
        state.set_dashboard(dashboard)
        logger.info(
            "Dashboard mounted with %d subscriptions", scheduler.active_count()
        )

        try:
            yield
        finally:
            logger.info("Application shutting down ...")
            state.set_dashboard(None)
            state.set_scheduler(None)
            await dashboard.unmount()
            await scheduler.stop(resolved.refresh.teardown_grace_seconds)
            if client is None:
                ledger.close()
            logger.info("RefreshScheduler stopped.")

    app = FastAPI(
        title="AutoRefresh Dashboard",
        description="生命周期作用域内自动刷新的账本仪表盘 API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_v1_router)

    @app.get("/", summary="健康检查 / Hello")
    async def root():
        return {"message": "Hello AutoRefresh"}

    @app.get("/status", response_model=StatusResponse)
    async def get_status() -> dict[str, Any]:
        """获取调度器与订阅状态。"""
        scheduler = state.get_scheduler()
        return {
            "message": "AutoRefresh Dashboard is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "scheduler_running": scheduler.is_running() if scheduler else False,
            "active_subscriptions": scheduler.active_count() if scheduler else 0,
            "subscriptions": scheduler.get_subscriptions_snapshot() if scheduler else {},
        }

    return app


app = create_app()


# 可选：uvicorn 直接运行入口
if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("autorefresh.app:app", host="0.0.0.0", port=8000, reload=True)
