"""
响应缓存 - 进程内 TTL 缓存

key -> (过期时间戳, 值)
- 每次读写时清理全部过期条目
- 超出容量时按最近访问时间淘汰（简单 LRU）
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

DEFAULT_MAX_SIZE = 1024


class ResponseCache:
    """线程安全的简单 TTL 缓存"""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> None:
        self._clock = clock
        self.max_size = max_size
        self._store: Dict[str, Tuple[float, Any]] = {}
        # key -> 最近访问时间，用于 LRU 淘汰
        self._access: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _purge_expired(self, now: float) -> None:
        expired_keys = [k for k, (expire_ts, _) in self._store.items() if expire_ts <= now]
        for key in expired_keys:
            self._store.pop(key, None)
            self._access.pop(key, None)

    def _evict_if_needed(self) -> None:
        """超出容量时淘汰最久未访问的条目"""
        overflow = len(self._store) - self.max_size
        if overflow <= 0:
            return
        oldest = sorted(self._access.items(), key=lambda item: item[1])[:overflow]
        for key, _ in oldest:
            self._store.pop(key, None)
            self._access.pop(key, None)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            entry = self._store.get(key)
            if entry is None:
                return None
            self._access[key] = now
            return entry[1]

    def set(self, key: str, value: Any, ttl: int) -> bool:
        """ttl <= 0 时不缓存"""
        if ttl <= 0:
            return False
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._store[key] = (now + ttl, value)
            self._access[key] = now
            self._evict_if_needed()
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)
            self._access.pop(key, None)

    def clear(self) -> int:
        """清空缓存，返回清理的条目数"""
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._access.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# 全局响应缓存
response_cache = ResponseCache()
