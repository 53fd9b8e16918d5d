"""TriggerCounter: 标记缓存资源过期的单调计数器"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

TriggerObserver = Callable[[int], None]

logger = logging.getLogger("autorefresh.cache.trigger")


class TriggerCounter:
    """只增不减的整数计数器，只允许一个观察者

    自增在锁内完成，可以同时被订阅循环和调用方代码写入。
    观察者回调在锁外、以自增后的值调用。
    """

    def __init__(self, name: str = "trigger", initial: int = 0):
        if initial < 0:
            raise ValueError(f"initial must be >= 0, got {initial}")
        self.name = name
        self._value = initial
        self._observer: Optional[TriggerObserver] = None
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def get(self) -> int:
        return self.value

    def increment(self) -> int:
        """计数器加一，返回新值"""
        with self._lock:
            self._value += 1
            value = self._value
            observer = self._observer

        logger.debug("trigger 自增: name=%s value=%d", self.name, value)
        if observer is not None:
            observer(value)
        return value

    def observe(self, observer: TriggerObserver) -> Callable[[], None]:
        """注册唯一的观察者，返回解除函数

        Raises:
            ValueError: 已经有观察者
        """
        with self._lock:
            if self._observer is not None:
                raise ValueError(f"TriggerCounter '{self.name}' is already observed")
            self._observer = observer

        def detach() -> None:
            with self._lock:
                if self._observer is observer:
                    self._observer = None

        return detach

    @property
    def observed(self) -> bool:
        with self._lock:
            return self._observer is not None

    def __repr__(self) -> str:
        return f"TriggerCounter(name='{self.name}', value={self._value})"
