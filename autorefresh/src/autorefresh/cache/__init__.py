"""缓存与数据单元格

- DataSink: 写入/订阅接口的可观察单元格
- TriggerCounter: 单调递增的过期触发器
- ResourceCacheAdapter: 由触发器驱动重新拉取的缓存资源
"""

from .sink import DataSink
from .trigger import TriggerCounter
from .resource import CacheEntry, ResourceCacheAdapter

__all__ = ["DataSink", "TriggerCounter", "CacheEntry", "ResourceCacheAdapter"]
