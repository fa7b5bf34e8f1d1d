"""
Context Store

Short-lived conversation history per session, held in process memory.

Each session keeps its most recent turns (default 10); older turns are
evicted first. Nothing is persisted: history lives as long as the process.

Concurrency:
- Session creation is guarded by a registry lock.
- Append/evict and reads on one session are guarded by that session's lock.
- A whole chat turn (read history -> call LLM -> append) is NOT serialized.
  Two concurrent turns on the same session can both read the same history
  and append in completion order.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional

DEFAULT_HISTORY_LIMIT = 10


@dataclass(frozen=True)
class ConversationTurn:
    """One user message and the reply it received"""
    user: str
    assistant: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class _Session:
    __slots__ = ("lock", "turns")

    def __init__(self, limit: int):
        self.lock = threading.Lock()
        self.turns: Deque[ConversationTurn] = deque(maxlen=limit)


class ContextStore:
    """Bounded conversation history keyed by session"""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._limit = history_limit
        self._sessions: Dict[str, _Session] = {}
        self._registry_lock = threading.Lock()

    @property
    def history_limit(self) -> int:
        return self._limit

    def _session(self, session_key: str, create: bool) -> Optional[_Session]:
        with self._registry_lock:
            session = self._sessions.get(session_key)
            if session is None and create:
                session = _Session(self._limit)
                self._sessions[session_key] = session
            return session

    def append(
        self,
        session_key: str,
        user_message: str,
        response: str,
        timestamp: Optional[datetime] = None,
    ) -> ConversationTurn:
        """
        Record a turn, evicting the oldest one past the history limit.

        Args:
            session_key: Session identifier
            user_message: What the user said
            response: What the assistant replied
            timestamp: Turn time (default: now, UTC)

        Returns:
            The stored ConversationTurn
        """
        turn = ConversationTurn(
            user=user_message,
            assistant=response,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        session = self._session(session_key, create=True)
        with session.lock:
            session.turns.append(turn)
        return turn

    def recent(self, session_key: str, n: Optional[int] = None) -> List[ConversationTurn]:
        """Return up to the last ``n`` turns, oldest first (all turns if ``n`` is None)"""
        session = self._session(session_key, create=False)
        if session is None:
            return []
        with session.lock:
            turns = list(session.turns)
        if n is None:
            return turns
        return turns[-n:] if n > 0 else []

    def clear(self, session_key: str) -> bool:
        """Drop a session's history. Returns False if the session was unknown."""
        with self._registry_lock:
            return self._sessions.pop(session_key, None) is not None

    def session_count(self) -> int:
        with self._registry_lock:
            return len(self._sessions)

    def __contains__(self, session_key: str) -> bool:
        with self._registry_lock:
            return session_key in self._sessions
