# ============================================
#     PairLink - Session Store
#     Single source of truth for membership
# ============================================
#
# sessions = {
#   "ABC123": Session(
#       code="ABC123",
#       members=[sid_owner, sid_joiner],   # join order, max 2
#       created_at=float,
#       last_activity_at=float,
#   )
# }
#
# IMPORTANT:
# - Every access goes through the lock below
# - A session never stays in the table with zero members
# - get() / pop_idle() hand out copies, never the live record

import time
import threading
from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from pairlink.config import MAX_USERS_PER_SESSION
from pairlink.logger import log_info


class JoinResult(Enum):
    OK = "ok"
    FULL = "full"
    NOT_FOUND = "not_found"
    ALREADY_MEMBER = "already_member"


@dataclass
class Session:
    code: str
    members: List[str] = field(default_factory=list)
    created_at: float = 0.0
    last_activity_at: float = 0.0

    def snapshot(self) -> "Session":
        return replace(self, members=list(self.members))


class SessionStore:
    def __init__(self, clock=time.time, capacity: int = MAX_USERS_PER_SESSION):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.RLock()
        self._clock = clock
        self._capacity = capacity

    # =====================================================
    #   READS
    # =====================================================

    def get(self, code: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(code)
            return session.snapshot() if session else None

    def has(self, code: str) -> bool:
        with self._lock:
            return code in self._sessions

    def members(self, code: str) -> List[str]:
        with self._lock:
            session = self._sessions.get(code)
            return list(session.members) if session else []

    def peer_of(self, code: str, conn_id: str) -> Optional[str]:
        """The other member of `code`, or None while `conn_id` is alone."""
        with self._lock:
            session = self._sessions.get(code)
            if not session or conn_id not in session.members:
                return None
            for member in session.members:
                if member != conn_id:
                    return member
            return None

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # =====================================================
    #   MUTATIONS
    # =====================================================

    def create_session(self, code: str, owner_id: str) -> Session:
        with self._lock:
            if code in self._sessions:
                raise ValueError(f"Session code already live: {code}")

            now = self._clock()
            session = Session(
                code=code,
                members=[owner_id],
                created_at=now,
                last_activity_at=now,
            )
            self._sessions[code] = session
            return session.snapshot()

    def add_member(self, code: str, conn_id: str) -> JoinResult:
        with self._lock:
            session = self._sessions.get(code)
            if not session:
                return JoinResult.NOT_FOUND

            if len(session.members) >= self._capacity:
                return JoinResult.FULL

            if conn_id in session.members:
                return JoinResult.ALREADY_MEMBER

            session.members.append(conn_id)
            self._touch_locked(session)
            return JoinResult.OK

    def remove_member(self, code: str, conn_id: str) -> Optional[int]:
        """
        Remove `conn_id` from `code` and return the remaining count.

        The record is deleted in the same critical section when the
        count drops to zero. Returns None when nothing was removed
        (unknown session, or not a member).
        """
        with self._lock:
            session = self._sessions.get(code)
            if not session or conn_id not in session.members:
                return None

            session.members.remove(conn_id)
            remaining = len(session.members)

            if remaining == 0:
                del self._sessions[code]
                log_info("store", f"Session {code} deleted (empty)")

            return remaining

    def touch(self, code: str) -> bool:
        with self._lock:
            session = self._sessions.get(code)
            if not session:
                return False
            self._touch_locked(session)
            return True

    def delete(self, code: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.pop(code, None)
            return session.snapshot() if session else None

    def pop_idle(self, timeout: float) -> List[Session]:
        """
        Remove and return every session idle for more than `timeout`
        seconds. Scan and removal share one critical section.
        """
        now = self._clock()
        expired = []

        with self._lock:
            for code, session in list(self._sessions.items()):
                if now - session.last_activity_at > timeout:
                    expired.append(self._sessions.pop(code).snapshot())

        return expired

    # =====================================================
    #   INTERNAL
    # =====================================================

    def _touch_locked(self, session: Session):
        # Monotonic even if the wall clock steps back.
        session.last_activity_at = max(session.last_activity_at, self._clock())
