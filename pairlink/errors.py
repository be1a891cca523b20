# ============================================
#     PairLink - Error taxonomy
# ============================================
#
# Every error carries the client-facing `reason` that ends up
# in the matching "*-error" event. Nothing here is fatal.

from typing import Optional


class PairLinkError(Exception):
    reason = "Unexpected error"

    def __init__(self, reason: Optional[str] = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


# =====================================================
#   CLIENT PROTOCOL (rejected locally, no store access)
# =====================================================

class ClientProtocolError(PairLinkError):
    reason = "Invalid request"


class InvalidCode(ClientProtocolError):
    reason = "Invalid session code"


class PayloadRejected(ClientProtocolError):
    reason = "Payload rejected"


# =====================================================
#   CAPACITY
# =====================================================

class CapacityError(PairLinkError):
    reason = "Session unavailable"


class SessionFull(CapacityError):
    reason = "Session is full"


class AlreadyMember(CapacityError):
    reason = "Already in this session"


class AlreadyBound(CapacityError):
    """The connection already belongs to another session."""
    reason = "Already in a session"


# =====================================================
#   NOT FOUND
# =====================================================

class SessionNotFound(PairLinkError):
    # Same wording for "never existed" and "expired".
    reason = "Session not found or expired"


# =====================================================
#   RESOURCE EXHAUSTION
# =====================================================

class CodeSpaceExhausted(PairLinkError):
    reason = "Failed to create session, please try again"
