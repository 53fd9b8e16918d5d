"""AutoRefresh 异常层级

核心调度与生命周期相关的异常都派生自 `AutoRefreshError`，
便于宿主应用统一捕获。
"""

from __future__ import annotations


class AutoRefreshError(Exception):
    """AutoRefresh 基础异常类"""

    pass


class SchedulerClosedError(AutoRefreshError):
    """调度器已停止后仍尝试创建订阅"""

    pass


class ScopeStateError(AutoRefreshError):
    """生命周期作用域状态不允许当前操作

    例如在已卸载（Unmounted）的作用域上继续注册轮询或清理回调。

    Attributes:
        scope_name: 出错的作用域名称
        state: 作用域当前状态
    """

    def __init__(self, scope_name: str, state: str, message: str | None = None):
        self.scope_name = scope_name
        self.state = state
        if message is None:
            message = f"Scope '{scope_name}' is {state}, operation not allowed"
        super().__init__(message)


class LedgerClientError(AutoRefreshError):
    """账本服务请求失败（非 2xx 响应或响应格式错误）"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LedgerUnavailableError(LedgerClientError):
    """账本服务无法连接或请求超时"""

    pass
