"""Chunked upload session tracking over an expiring keyed session store.

A session correlates every chunk of one logical upload: it accumulates counters
and holds the external-id to internal-id mandate mapping that later chunks use
to resolve day-value references. Sessions expire through explicit TTLs rather
than timers so cleanup is observable and testable with an injected clock.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Protocol
from uuid import UUID

from .interfaces import ImportCounters

logger = logging.getLogger(__name__)


class ImportSessionStatus(str, Enum):
    """Lifecycle states of one chunked upload session."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


_CLOSED_SESSION_STATUSES = frozenset({ImportSessionStatus.COMPLETED, ImportSessionStatus.ERROR})


class ImportSessionNotFoundError(LookupError):
    """Raised when a chunk references a session that does not exist for the caller."""


class ImportSessionClosedError(RuntimeError):
    """Raised when a chunk targets a session that already completed or failed.

    Attributes:
        session_id: Closed session identifier.
        status: Terminal status of the session.
    """

    def __init__(self, session_id: str, status: ImportSessionStatus):
        super().__init__(f"import session {session_id} is already {status.value}")
        self.session_id = session_id
        self.status = status


@dataclass
class ImportSession:
    """Mutable state of one chunked upload.

    Attributes:
        session_id: Client-generated session identifier.
        user_id: Caller identity owning the session.
        created_at_utc: Session creation timestamp.
        status: Lifecycle state.
        counters: Cumulative counters and errors across chunks.
        mandate_mapping: External mandate id to internal mandate id.
        total_chunks: Declared number of chunks from the latest chunk call.
        last_chunk_index: Zero-based index of the latest processed chunk.
    """

    session_id: str
    user_id: str
    created_at_utc: datetime
    status: ImportSessionStatus = ImportSessionStatus.PENDING
    counters: ImportCounters = field(default_factory=ImportCounters)
    mandate_mapping: dict[str, UUID] = field(default_factory=dict)
    total_chunks: int = 0
    last_chunk_index: int | None = None


class ImportSessionStorePort(Protocol):
    """Port definition for a keyed session store with per-entry expiry."""

    def store_get(self, session_id: str) -> ImportSession | None:
        """Return the live session for the id, or None when absent or expired."""

    def store_put(self, session: ImportSession, ttl_seconds: float) -> None:
        """Store the session and reset its expiry to `ttl_seconds` from now."""

    def store_delete(self, session_id: str) -> bool:
        """Delete the session; return whether it existed."""

    def store_expire(self, session_id: str, ttl_seconds: float) -> bool:
        """Reset the expiry of an existing session; return whether it existed."""

    def store_purge_expired(self) -> int:
        """Drop every expired session; return the number dropped."""

    def store_count(self) -> int:
        """Return the number of live sessions."""


class InMemoryImportSessionStore(ImportSessionStorePort):
    """Process-local TTL map; valid only for single-instance deployments."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize in-memory session store.

        Args:
            clock: Monotonic seconds source, replaceable in tests.
        """

        self._clock = clock
        self._entries: dict[str, tuple[ImportSession, float]] = {}
        self._lock = threading.Lock()

    def store_get(self, session_id: str) -> ImportSession | None:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            session, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[session_id]
                return None
            return session

    def store_put(self, session: ImportSession, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._entries[session.session_id] = (session, self._clock() + ttl_seconds)

    def store_delete(self, session_id: str) -> bool:
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def store_expire(self, session_id: str, ttl_seconds: float) -> bool:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return False
            self._entries[session_id] = (entry[0], self._clock() + ttl_seconds)
            return True

    def store_purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired_ids = [session_id for session_id, (_, expires_at) in self._entries.items() if expires_at <= now]
            for session_id in expired_ids:
                del self._entries[session_id]
            return len(expired_ids)

    def store_count(self) -> int:
        self.store_purge_expired()
        with self._lock:
            return len(self._entries)


class ImportSessionTracker:
    """Session state machine `absent -> pending -> processing -> completed | error`.

    Chunk calls for one session id are serialized through `session_lock`;
    calls for different session ids never block each other.
    """

    def __init__(
        self,
        store: ImportSessionStorePort,
        grace_seconds: float = 300.0,
        idle_ttl_seconds: float = 3600.0,
    ):
        """Initialize session tracker.

        Args:
            store: Keyed session store.
            grace_seconds: Retention after completion or failure, for late status reads and retries.
            idle_ttl_seconds: Retention of unfinished sessions since their latest chunk.

        Raises:
            ValueError: Raised when store is missing or retention values are not positive.
        """

        if store is None:
            raise ValueError("store must not be None")
        if grace_seconds <= 0:
            raise ValueError("grace_seconds must be positive")
        if idle_ttl_seconds <= 0:
            raise ValueError("idle_ttl_seconds must be positive")

        self._store = store
        self._grace_seconds = grace_seconds
        self._idle_ttl_seconds = idle_ttl_seconds
        self._registry_lock = threading.Lock()
        self._session_locks: dict[str, list] = {}

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        """Hold the per-session lock for the duration of the block.

        Args:
            session_id: Session identifier.

        Yields:
            None: The lock is held while the block runs.
        """

        with self._registry_lock:
            lock_entry = self._session_locks.setdefault(session_id, [threading.Lock(), 0])
            lock_entry[1] += 1
        lock_entry[0].acquire()
        try:
            yield
        finally:
            lock_entry[0].release()
            with self._registry_lock:
                lock_entry[1] -= 1
                if lock_entry[1] == 0:
                    del self._session_locks[session_id]

    def session_begin_chunk(
        self,
        session_id: str,
        user_id: str,
        is_first_chunk: bool,
        total_chunks: int,
    ) -> ImportSession:
        """Find or create the session for one chunk and mark it processing.

        Args:
            session_id: Session identifier.
            user_id: Caller identity.
            is_first_chunk: Whether this chunk may create the session.
            total_chunks: Declared number of chunks.

        Returns:
            ImportSession: Session in `processing` state.

        Raises:
            ImportSessionNotFoundError: Raised when no session exists for a non-first chunk,
                or the session belongs to another user.
            ImportSessionClosedError: Raised when the session already completed or failed.
        """

        session = self._store.store_get(session_id)
        if session is not None and session.user_id != user_id:
            raise ImportSessionNotFoundError(f"import session not found: {session_id}")
        if session is None:
            if not is_first_chunk:
                raise ImportSessionNotFoundError(f"import session not found: {session_id}")
            session = ImportSession(
                session_id=session_id,
                user_id=user_id,
                created_at_utc=datetime.now(timezone.utc),
            )
            logger.info("import session created session_id=%s user_id=%s", session_id, user_id)
        elif session.status in _CLOSED_SESSION_STATUSES:
            raise ImportSessionClosedError(session_id, session.status)

        session.status = ImportSessionStatus.PROCESSING
        session.total_chunks = total_chunks
        self._store.store_put(session, ttl_seconds=self._idle_ttl_seconds)
        return session

    def session_record_chunk(self, session: ImportSession, chunk_counters: ImportCounters, chunk_index: int) -> None:
        """Add one chunk's deltas and errors to the session's cumulative counters.

        Args:
            session: Session being processed.
            chunk_counters: Counters produced by this chunk only.
            chunk_index: Zero-based chunk index.

        Returns:
            None: Session is updated and stored as side effect.
        """

        session.counters.counters_add(chunk_counters)
        session.last_chunk_index = chunk_index
        self._store.store_put(session, ttl_seconds=self._idle_ttl_seconds)

    def session_complete(self, session: ImportSession) -> None:
        """Mark the session completed and start its grace window."""

        session.status = ImportSessionStatus.COMPLETED
        self._store.store_put(session, ttl_seconds=self._grace_seconds)
        logger.info(
            "import session completed session_id=%s processed_rows=%d errors=%d",
            session.session_id,
            session.counters.processed_rows,
            len(session.counters.errors),
        )

    def session_fail(self, session: ImportSession, message: str) -> None:
        """Mark the session failed, record the message and start its grace window."""

        session.status = ImportSessionStatus.ERROR
        session.counters.errors.append(message)
        self._store.store_put(session, ttl_seconds=self._grace_seconds)
        logger.error("import session failed session_id=%s: %s", session.session_id, message)

    def session_get(self, session_id: str) -> ImportSession | None:
        """Return the live session for the id, or None when absent or expired."""

        return self._store.store_get(session_id)

    def session_purge_expired(self) -> int:
        """Drop expired sessions and return how many were dropped."""

        return self._store.store_purge_expired()

    def session_active_count(self) -> int:
        """Return the number of live sessions."""

        return self._store.store_count()
