"""Failed login tracking with temporary lockout."""

import threading

from cachetools import TTLCache
from loguru import logger


class LoginAttemptTracker:
    """Counts failed logins per identifier (email or client address).

    Counters live in a ``TTLCache`` whose TTL is the lockout window, so an
    identifier is released ``lockout_minutes`` after its last failure.
    """

    def __init__(self, max_attempts: int = 5, lockout_minutes: int = 15, maxsize: int = 10_000):
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_minutes * 60
        self._failures: TTLCache[str, int] = TTLCache(maxsize=maxsize, ttl=self.lockout_seconds)
        self._lock = threading.Lock()

    @staticmethod
    def _key(identifier: str) -> str:
        return identifier.strip().lower()

    def is_locked(self, identifier: str) -> bool:
        with self._lock:
            return self._failures.get(self._key(identifier), 0) >= self.max_attempts

    def record_failure(self, identifier: str) -> int:
        key = self._key(identifier)
        with self._lock:
            count = self._failures.get(key, 0) + 1
            self._failures[key] = count
        if count == self.max_attempts:
            logger.warning(
                "Locking out {} for {} seconds after {} failed logins",
                key,
                self.lockout_seconds,
                count,
            )
        return count

    def remaining_attempts(self, identifier: str) -> int:
        with self._lock:
            used = self._failures.get(self._key(identifier), 0)
        return max(0, self.max_attempts - used)

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._failures.pop(self._key(identifier), None)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()
