"""In-process registry of live research sessions."""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from research_graph.session import ResearchSession
from server.session_db import SqliteSessionRepository

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Live sessions by id, backed by a repository for persist/restore.

    Sync routes run on a thread pool, so every session carries its own lock;
    work on one session's store happens inside `locked()`.
    """

    def __init__(
        self,
        repository: SqliteSessionRepository,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.repository = repository
        self._clock = clock
        self._sessions: dict[str, ResearchSession] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _lock_for(self, session_id: str) -> threading.RLock:
        with self._guard:
            return self._locks.setdefault(session_id, threading.RLock())

    def create(self, session_id: str | None = None) -> ResearchSession:
        session = ResearchSession(session_id=session_id, clock=self._clock)
        with self._lock_for(session.session_id):
            self._sessions[session.session_id] = session
        logger.info("research session %s created", session.session_id)
        return session

    def get(self, session_id: str) -> ResearchSession | None:
        return self._sessions.get(session_id)

    @contextmanager
    def locked(self, session_id: str) -> Iterator[ResearchSession | None]:
        """Hold the session's lock; yields None for an unknown id."""
        if session_id not in self._sessions:
            yield None
            return
        with self._lock_for(session_id):
            yield self._sessions.get(session_id)

    def list_ids(self) -> list[str]:
        return list(self._sessions)

    def restore(self, session_id: str) -> ResearchSession | None:
        """Load a persisted session into the registry, replacing any live one."""
        with self._lock_for(session_id):
            session = ResearchSession.load(session_id, self.repository, clock=self._clock)
            if session is None:
                return None
            self._sessions[session_id] = session
        logger.info("research session %s restored at version %d", session_id, session.store.version)
        return session

    def discard(self, session_id: str) -> bool:
        with self._lock_for(session_id):
            removed = self._sessions.pop(session_id, None) is not None
        with self._guard:
            self._locks.pop(session_id, None)
        return removed
