# ============================================
#     PairLink - Relay Dispatcher
#     Sender → the OTHER member, never back to the sender
# ============================================

import math
import time
import numbers

from pairlink.config import (
    MAX_MESSAGE_LENGTH,
    MAX_FILENAME_LENGTH,
    MAX_MEDIA_SIZE,
    MEDIA_POLICY_ENABLED,
    ALLOWED_MEDIA_TYPES,
)
from pairlink.errors import PayloadRejected
from pairlink.logger import log_info, log_warning


# =====================================================
#   RELAY KINDS
# =====================================================
TEXT_MESSAGE = "text-message"
MEDIA = "media"
TYPING = "typing"
CALL_OFFER = "call-offer"
CALL_ANSWER = "call-answer"
ICE_CANDIDATE = "ice-candidate"
CALL_END = "call-end"
CALL_REJECT = "call-reject"

# Kinds that count as live use of the session (idle expiry reset)
TOUCHING_KINDS = {TEXT_MESSAGE, MEDIA, CALL_OFFER}


def now_ms(clock=time.time) -> int:
    return int(clock() * 1000)


def utf16_length(text: str) -> int:
    # Browsers count UTF-16 code units; astral characters count twice.
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def _field(payload, name, default=None):
    if isinstance(payload, dict):
        return payload.get(name, default)
    return default


class RelayDispatcher:
    """
    Fan-out of content events inside a two-member session.

    `emitter` is the Socket.IO server (anything exposing
    `emit(event, data, to=sid)`).
    """

    def __init__(
        self,
        store,
        emitter,
        clock=time.time,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        max_filename_length: int = MAX_FILENAME_LENGTH,
        max_media_size: int = MAX_MEDIA_SIZE,
        media_policy_enabled: bool = MEDIA_POLICY_ENABLED,
        allowed_media_types=None,
    ):
        self.store = store
        self.emitter = emitter
        self.clock = clock
        self.max_message_length = max_message_length
        self.max_filename_length = max_filename_length
        self.max_media_size = max_media_size
        self.media_policy_enabled = media_policy_enabled
        self.allowed_media_types = set(
            ALLOWED_MEDIA_TYPES if allowed_media_types is None else allowed_media_types
        )

        self._builders = {
            TEXT_MESSAGE: self._build_text,
            MEDIA: self._build_media,
            TYPING: self._build_typing,
            CALL_OFFER: self._build_call_offer,
            CALL_ANSWER: self._build_call_answer,
            ICE_CANDIDATE: self._build_ice_candidate,
            CALL_END: self._build_call_end,
            CALL_REJECT: self._build_call_reject,
        }

    # =====================================================
    #   RELAY
    # =====================================================
    def relay(self, sender_id: str, code: str, kind: str, payload=None) -> bool:
        """
        Forward `payload` from `sender_id` to its partner in `code`.

        Returns True when something was delivered. Invalid payloads are
        either dropped silently or reported to the sender as `send-error`;
        a missing partner is a silent drop.
        """
        builder = self._builders.get(kind)
        if builder is None:
            log_warning("relay", f"Unknown relay kind {kind!r} from {sender_id}")
            return False

        try:
            outbound = builder(sender_id, payload)
        except PayloadRejected as e:
            self._emit("send-error", {"reason": e.reason}, to=sender_id)
            log_warning("relay", f"Rejected {kind} from {sender_id} in {code}: {e.reason}")
            return False

        if outbound is None:
            return False

        peer = self.store.peer_of(code, sender_id)
        if not peer:
            return False

        event, data = outbound
        self._emit(event, data, to=peer)

        if kind in TOUCHING_KINDS:
            self.store.touch(code)

        if kind in (MEDIA, CALL_OFFER, CALL_END):
            log_info("relay", f"{kind} relayed in {code} ({sender_id} -> {peer})")

        return True

    def _emit(self, event, data=None, to=None):
        if data is None:
            self.emitter.emit(event, to=to)
        else:
            self.emitter.emit(event, data, to=to)

    # =====================================================
    #   PER-KIND POLICY
    # =====================================================
    def _build_text(self, sender_id, payload):
        text = _field(payload, "text")

        if not isinstance(text, str) or not text:
            return None

        length = utf16_length(text)
        if length > self.max_message_length:
            raise PayloadRejected(
                f"Message too long ({length} chars, max {self.max_message_length})"
            )

        return "receive-message", {
            "text": text,
            "sender": sender_id,
            "timestamp": now_ms(self.clock),
        }

    def _build_media(self, sender_id, payload):
        if not isinstance(payload, dict):
            return None

        data = payload.get("data")
        media_type = payload.get("mediaType")
        file_name = payload.get("fileName")
        file_size = payload.get("fileSize")

        if data is None:
            return None

        if self.media_policy_enabled:
            if media_type not in self.allowed_media_types:
                raise PayloadRejected(f"Media type not allowed: {media_type}")

            if not isinstance(file_name, str) or not file_name:
                raise PayloadRejected("Missing file name")

            if (
                not isinstance(file_size, numbers.Real)
                or isinstance(file_size, bool)
                or not math.isfinite(file_size)
                or file_size < 0
            ):
                raise PayloadRejected("Invalid file size")

            if file_size > self.max_media_size:
                raise PayloadRejected(
                    f"File too large ({file_size} bytes, max {self.max_media_size})"
                )

        if isinstance(file_name, str):
            file_name = file_name[:self.max_filename_length]

        return "receive-media", {
            "data": data,
            "mediaType": media_type,
            "fileName": file_name,
            "fileSize": file_size,
            "sender": sender_id,
            "timestamp": now_ms(self.clock),
        }

    def _build_typing(self, sender_id, payload):
        return "user-typing", {"isTyping": _field(payload, "isTyping")}

    def _build_call_offer(self, sender_id, payload):
        return "incoming-call", {
            "offer": _field(payload, "offer"),
            "callType": _field(payload, "callType"),
            "from": sender_id,
        }

    def _build_call_answer(self, sender_id, payload):
        return "call-answered", {"answer": _field(payload, "answer")}

    def _build_ice_candidate(self, sender_id, payload):
        return "ice-candidate", {"candidate": _field(payload, "candidate")}

    def _build_call_end(self, sender_id, payload):
        return "call-ended", None

    def _build_call_reject(self, sender_id, payload):
        return "call-rejected", None
