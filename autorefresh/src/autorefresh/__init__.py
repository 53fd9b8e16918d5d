"""AutoRefresh: 生命周期作用域内的周期刷新

- refresh_scheduler: 订阅与调度器
- cache: DataSink / TriggerCounter / ResourceCacheAdapter
- lifecycle: 作用域、组件与钩子
- dashboard: 基于以上机制的账本仪表盘
"""

__version__ = "1.0.0"
