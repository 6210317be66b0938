from __future__ import annotations
"""Short-lived verification codes for SMS login.

One ``VerificationCodeStore`` is created per application (``app.extensions``)
and shared by all request threads. Expiry is checked on every lookup, so an
expired code never verifies even if ``sweep`` has not run yet.
"""
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

DEFAULT_TTL = 300


class VerificationCodeStore:
    def __init__(self, default_ttl: int = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, float]] = {}

    def store(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._sweep_locked()
            self._entries[key] = (value, expires)

    def consume_if_valid(self, key: str, value: str) -> bool:
        """Check and delete in one step; a code verifies at most once."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            stored, expires = entry
            if self._clock() > expires:
                del self._entries[key]
                return False
            if not value.isascii() or not secrets.compare_digest(stored, value):
                return False
            del self._entries[key]
            return True

    def sweep(self) -> int:
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if now > exp]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self):
        with self._lock:
            return len(self._entries)


def generate_code(digits: int = 6) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))
