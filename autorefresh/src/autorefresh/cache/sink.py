"""DataSink: 拉取结果的写入目标

订阅循环只通过 `write()` 写入，渲染方只通过 `subscribe()` 或 `value`
读取，任何一方都不持有对方内存的可变引用。
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

SinkCallback = Callable[[Any], None]

logger = logging.getLogger("autorefresh.cache.sink")


class DataSink(Generic[T]):
    """最后一次完成的写入生效的可观察单元格"""

    def __init__(self, name: str = "sink", initial: Optional[T] = None):
        self.name = name
        self._value: Optional[T] = initial
        self._version = 0
        self._updated_at: Optional[float] = None
        self._subscribers: List[SinkCallback] = []
        self._lock = threading.Lock()

    @property
    def value(self) -> Optional[T]:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        """已完成的写入次数"""
        with self._lock:
            return self._version

    @property
    def updated_at(self) -> Optional[float]:
        with self._lock:
            return self._updated_at

    def write(self, value: T) -> int:
        """写入新值并通知订阅者

        Returns:
            写入后的版本号
        """
        with self._lock:
            self._value = value
            self._version += 1
            self._updated_at = time.time()
            version = self._version
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(value)
            except Exception:
                logger.exception("sink 订阅回调失败: sink=%s", self.name)
        return version

    def subscribe(self, callback: SinkCallback) -> Callable[[], None]:
        """注册写入回调，返回取消注册函数"""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "value": self._value,
                "version": self._version,
                "updated_at": self._updated_at,
            }

    def __repr__(self) -> str:
        return f"DataSink(name='{self.name}', version={self._version})"
