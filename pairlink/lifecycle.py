# ============================================
#     PairLink - Connection Lifecycle Controller
#     Unbound → Owner(code) | Member(code) → Unbound
# ============================================
#
# bindings = {
#   sid: Binding(state=ConnectionState.OWNER, code="ABC123"),
#   ...
# }
#
# IMPORTANT:
# - Keyed by transport sid, never stored on the socket itself
# - A missing entry means Unbound
# - Store mutation + binding update share the controller lock,
#   events are emitted after the lock is released

import threading
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from pairlink.codes import (
    generate_code,
    generate_unique_code,
    is_valid_code,
    normalize_code,
)
from pairlink.config import SESSION_TIMEOUT_SECONDS
from pairlink.errors import (
    PairLinkError,
    InvalidCode,
    AlreadyBound,
    AlreadyMember,
    SessionFull,
    SessionNotFound,
)
from pairlink.store import JoinResult
from pairlink.logger import log_info, log_warning


class ConnectionState(Enum):
    UNBOUND = "unbound"
    OWNER = "owner"
    MEMBER = "member"


class Binding(NamedTuple):
    state: ConnectionState
    code: str


_JOIN_ERRORS = {
    JoinResult.NOT_FOUND: SessionNotFound,
    JoinResult.FULL: SessionFull,
    JoinResult.ALREADY_MEMBER: AlreadyMember,
}


class SessionController:
    def __init__(
        self,
        store,
        emitter,
        dispatcher,
        code_generator=generate_code,
        session_timeout: float = SESSION_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.emitter = emitter
        self.dispatcher = dispatcher
        self.code_generator = code_generator
        self.session_timeout = session_timeout

        self._bindings: Dict[str, Binding] = {}
        self._lock = threading.RLock()

    # =====================================================
    #   INSPECTION
    # =====================================================
    def state_of(self, sid: str) -> ConnectionState:
        binding = self._bindings.get(sid)
        return binding.state if binding else ConnectionState.UNBOUND

    def bound_code(self, sid: str) -> Optional[str]:
        binding = self._bindings.get(sid)
        return binding.code if binding else None

    def active_sessions(self) -> int:
        return self.store.count()

    # =====================================================
    #   CREATE
    # =====================================================
    def create_session(self, sid: str) -> Optional[str]:
        try:
            with self._lock:
                if sid in self._bindings:
                    raise AlreadyBound()

                code = generate_unique_code(self.store.has, generator=self.code_generator)
                self.store.create_session(code, sid)
                self._bindings[sid] = Binding(ConnectionState.OWNER, code)

        except PairLinkError as e:
            self.emitter.emit("session-error", {"reason": e.reason}, to=sid)
            log_warning("lifecycle", f"Session creation failed for {sid}: {e.reason}")
            return None

        self.emitter.emit("session-created", {"code": code}, to=sid)
        log_info("lifecycle", f"Session {code} created by {sid}")
        return code

    # =====================================================
    #   JOIN
    # =====================================================
    def join_session(self, sid: str, raw_code) -> bool:
        code = normalize_code(raw_code)

        try:
            # Format check first: malformed codes never reach the store.
            if not is_valid_code(code):
                raise InvalidCode()

            with self._lock:
                binding = self._bindings.get(sid)
                if binding and binding.code != code:
                    raise AlreadyBound()

                result = self.store.add_member(code, sid)
                if result is not JoinResult.OK:
                    raise _JOIN_ERRORS[result]()

                self._bindings[sid] = Binding(ConnectionState.MEMBER, code)
                members = self.store.members(code)

        except PairLinkError as e:
            self.emitter.emit("join-error", {"reason": e.reason}, to=sid)
            log_warning("lifecycle", f"Join refused for {sid}: {e.reason}")
            return False

        member_count = len(members)

        self.emitter.emit("join-success", {
            "code": code,
            "memberCount": member_count,
        }, to=sid)

        # Same event shape for the owner and the joiner.
        for member in members:
            self.emitter.emit("user-joined", {
                "memberCount": member_count,
                "joinerId": sid,
            }, to=member)

        log_info("lifecycle", f"{sid} joined session {code} ({member_count} members)")
        return True

    # =====================================================
    #   LEAVE / DISCONNECT
    # =====================================================
    def leave_session(self, sid: str) -> bool:
        return self._teardown(sid, "left")

    def disconnect(self, sid: str) -> bool:
        # The binding is discarded either way; the sid will not come back.
        return self._teardown(sid, "disconnected")

    def _teardown(self, sid: str, why: str) -> bool:
        with self._lock:
            binding = self._bindings.pop(sid, None)
            if not binding:
                return False

            remaining = self.store.remove_member(binding.code, sid)
            peers = self.store.members(binding.code) if remaining else []

        for peer in peers:
            self.emitter.emit("user-left", to=peer)

        if remaining == 0:
            log_info("lifecycle", f"{sid} {why}; session {binding.code} closed")
        else:
            log_info("lifecycle", f"{sid} {why} session {binding.code}")
        return True

    # =====================================================
    #   CONTENT
    # =====================================================
    def send_content(self, sid: str, kind: str, payload=None) -> bool:
        code = self.bound_code(sid)
        if not code:
            # No session, no recipient: not worth an error.
            return False
        return self.dispatcher.relay(sid, code, kind, payload)

    # =====================================================
    #   IDLE EXPIRY
    # =====================================================
    def expire_idle(self) -> List[str]:
        """
        Evict sessions idle longer than `session_timeout`, unbind their
        members and notify each of them once. Returns the expired codes.
        """
        with self._lock:
            expired = self.store.pop_idle(self.session_timeout)
            for session in expired:
                for member in session.members:
                    binding = self._bindings.get(member)
                    if binding and binding.code == session.code:
                        del self._bindings[member]

        for session in expired:
            for member in session.members:
                self.emitter.emit("session-expired", to=member)
            log_info("lifecycle", f"Session {session.code} expired")

        return [session.code for session in expired]
