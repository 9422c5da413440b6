import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class Session:
    employee_id: str
    expires_at: datetime


class SessionStore:
    """
    Bearer token -> employee id, kept in process memory.

    Tokens expire after ttl; expired entries are dropped when looked up or on
    purge_expired(). Logging out revokes the token immediately.
    """

    def __init__(self, ttl: timedelta = timedelta(days=7), clock: Callable[[], datetime] = None):
        self.ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, employee_id: str) -> str:
        token = uuid.uuid4().hex
        with self._lock:
            self._sessions[token] = Session(employee_id, self._clock() + self.ttl)
        return token

    def resolve(self, token: str) -> Optional[str]:
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= self._clock():
                del self._sessions[token]
                return None
            return session.employee_id

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info("Purged %d expired sessions", len(expired))
        return len(expired)

    def __len__(self):
        return len(self._sessions)
