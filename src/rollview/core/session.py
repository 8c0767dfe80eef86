"""Session-scoped key-value storage.

A session store is a plain string key-value façade with no knowledge of the
tables that use it. Stores live in a SessionRegistry that ends sessions after
a period of inactivity, dropping everything stored in them.
"""

import logging
import secrets
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageQuotaExceededError(Exception):
    """Raised when a write would push a session store over its byte quota."""


class SessionStore(Protocol):
    """Minimal storage interface used to persist view state."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemorySessionStore:
    """In-memory session store with an optional byte quota.

    Sizes are counted as UTF-8 bytes of keys plus values.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        """Initialize an empty store.

        Args:
            max_bytes: Maximum total size, None for unlimited
        """
        self._data: dict[str, str] = {}
        self._max_bytes = max_bytes
        self._size = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            StorageQuotaExceededError: If the write exceeds max_bytes; the
                previous value is left in place
        """
        old = self._data.get(key)
        old_size = _entry_size(key, old) if old is not None else 0
        new_size = self._size - old_size + _entry_size(key, value)
        if self._max_bytes is not None and new_size > self._max_bytes:
            raise StorageQuotaExceededError(
                f"Writing {key!r} needs {new_size} bytes, quota is {self._max_bytes}",
            )
        self._data[key] = value
        self._size = new_size

    def remove(self, key: str) -> None:
        old = self._data.pop(key, None)
        if old is not None:
            self._size -= _entry_size(key, old)

    def clear(self) -> None:
        self._data.clear()
        self._size = 0

    @property
    def size(self) -> int:
        """Current size in bytes."""
        return self._size

    def __len__(self) -> int:
        return len(self._data)


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class SessionRegistry:
    """Session id → MemorySessionStore, expiring idle sessions."""

    def __init__(
        self,
        *,
        idle_timeout: float = 1800.0,
        max_bytes: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            idle_timeout: Seconds without access after which a session ends
            max_bytes: Byte quota for each session's store
            clock: Monotonic time source
        """
        self._idle_timeout = idle_timeout
        self._max_bytes = max_bytes
        self._clock = clock
        self._stores: dict[str, MemorySessionStore] = {}
        self._last_seen: dict[str, float] = {}

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def new_session_id(self) -> str:
        return secrets.token_urlsafe(24)

    def get(self, session_id: str | None) -> tuple[str, MemorySessionStore]:
        """Return the store for a session, starting a new session if needed.

        Unknown or expired ids start a fresh session under a new id.

        Returns:
            Tuple of (session id, store)
        """
        self.expire_idle()
        now = self._clock()
        if session_id is None or session_id not in self._stores:
            session_id = self.new_session_id()
            self._stores[session_id] = MemorySessionStore(self._max_bytes)
            logger.debug(f"Started session {session_id[:8]}")
        self._last_seen[session_id] = now
        return session_id, self._stores[session_id]

    def end(self, session_id: str) -> None:
        """End a session and drop its stored state."""
        self._stores.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def expire_idle(self) -> int:
        """End every session idle for longer than the timeout.

        Returns:
            Number of sessions ended
        """
        cutoff = self._clock() - self._idle_timeout
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for sid in expired:
            self.end(sid)
        if expired:
            logger.info(f"Expired {len(expired)} idle sessions")
        return len(expired)
