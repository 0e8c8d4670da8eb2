"""Small in-memory TTL cache for version listings."""

import threading
import time
from typing import Any, Dict, Optional, Tuple


class TTLCache:
    """Thread-safe key/value cache whose entries expire after a TTL."""

    def __init__(self, default_ttl: int = 300):
        self._default_ttl = default_ttl
        self._data: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None when missing/expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        effective_ttl = self._default_ttl if ttl is None else ttl
        with self._lock:
            self._data[key] = (value, time.monotonic() + effective_ttl)
