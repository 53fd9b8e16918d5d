"""生命周期绑定

- LifecycleScope / ScopeState: 拥有订阅的作用域
- Component: 可挂载组件基类
- use_auto_refresh / use_resource / use_auto_refresh_resource: 组件钩子
"""

from .scope import LifecycleScope, ScopeState
from .component import Component
from .hooks import use_auto_refresh, use_auto_refresh_resource, use_resource

__all__ = [
    "LifecycleScope",
    "ScopeState",
    "Component",
    "use_auto_refresh",
    "use_auto_refresh_resource",
    "use_resource",
]
