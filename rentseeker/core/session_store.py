import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Protocol

from rentseeker.core.state import UserSession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Where per-user dialogue sessions live between events."""

    async def get(self, user_id: int) -> UserSession: ...

    async def put(self, user_id: int, session: UserSession) -> None: ...

    def lock(self, user_id: int):
        """Async context manager serialising work for one user."""
        ...


class InMemorySessionStore:
    """
    Process-lifetime session table.

    The table itself is guarded by one coarse lock (lookups, lazy creation,
    replacement). On top of that each user gets their own lock so a whole
    read-modify-write of one user's session is exclusive, while events from
    different users never wait on each other.
    """

    def __init__(self):
        self._sessions: Dict[int, UserSession] = {}
        self._user_locks: Dict[int, asyncio.Lock] = {}
        self._table_lock = asyncio.Lock()

    async def get(self, user_id: int) -> UserSession:
        async with self._table_lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = UserSession()
                self._sessions[user_id] = session
                logger.info(f"🆕 Created session for user {user_id}")
            return session

    async def put(self, user_id: int, session: UserSession) -> None:
        async with self._table_lock:
            self._sessions[user_id] = session

    async def _user_lock(self, user_id: int) -> asyncio.Lock:
        async with self._table_lock:
            user_lock = self._user_locks.get(user_id)
            if user_lock is None:
                user_lock = asyncio.Lock()
                self._user_locks[user_id] = user_lock
            return user_lock

    @asynccontextmanager
    async def lock(self, user_id: int) -> AsyncIterator[None]:
        user_lock = await self._user_lock(user_id)
        async with user_lock:
            yield

    def __len__(self):
        return len(self._sessions)
