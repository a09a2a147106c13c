from __future__ import annotations

import time
from typing import Dict, Optional, Tuple

from ..config import SETTINGS


CacheEntry = Tuple[float, bytes]


class ResponseCache:
    """Short-lived store of fetched source bytes keyed by URL."""

    def __init__(self, limit: int = 16) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._limit = limit

    def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if not entry:
            return None
        timestamp, data = entry
        if time.time() - timestamp > SETTINGS.cache_ttl:
            self._entries.pop(key, None)
            return None
        return data

    def put(self, key: str, data: bytes) -> None:
        if key not in self._entries and len(self._entries) >= self._limit:
            oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest, None)
        self._entries[key] = (time.time(), data)


CACHE = ResponseCache()
