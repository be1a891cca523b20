# ============================================
#   PairLink - Socket.IO Handlers
#   create / join / leave / relay / disconnect
# ============================================

from functools import wraps

from flask import request

from pairlink.relay import (
    TEXT_MESSAGE,
    MEDIA,
    TYPING,
    CALL_OFFER,
    CALL_ANSWER,
    ICE_CANDIDATE,
    CALL_END,
    CALL_REJECT,
)
from pairlink.logger import log_info, log_exception


def _pick(data, *names):
    """First present field among `names` (current name, then legacy aliases)."""
    if not isinstance(data, dict):
        return None
    for name in names:
        if name in data:
            return data[name]
    return None


def _guarded(event_name):
    """Log handler failures instead of letting them reach the transport."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                log_exception("sockets", f"Error handling {event_name} from {request.sid}: {e}")
        return wrapper
    return decorator


def register_session_handlers(socketio, controller):
    """
    Session events:
    - create-session / join-session / leave-session → lifecycle
    - send-message / send-media / typing            → relay
    - call-user / answer-call / ice-candidate /
      end-call / reject-call                        → relay (signaling, opaque)
    - disconnect                                    → lifecycle teardown
    """

    # -----------------------------------------
    # CONNECT
    # -----------------------------------------
    @socketio.on("connect")
    def on_connect(auth=None):
        log_info("sockets", f"Client connected: sid={request.sid}")

    # -----------------------------------------
    # DISCONNECT
    # -----------------------------------------
    @socketio.on("disconnect")
    @_guarded("disconnect")
    def on_disconnect(reason=None):
        log_info("sockets", f"Client disconnected: sid={request.sid}")
        controller.disconnect(request.sid)

    # =====================================================
    #   LIFECYCLE
    # =====================================================
    @socketio.on("create-session")
    @_guarded("create-session")
    def create_session(data=None):
        controller.create_session(request.sid)

    @socketio.on("join-session")
    @_guarded("join-session")
    def join_session(data=None):
        code = _pick(data, "code", "sessionCode")
        controller.join_session(request.sid, code)

    @socketio.on("leave-session")
    @_guarded("leave-session")
    def leave_session(data=None):
        controller.leave_session(request.sid)

    # =====================================================
    #   CONTENT
    # =====================================================
    @socketio.on("send-message")
    @_guarded("send-message")
    def send_message(data=None):
        controller.send_content(request.sid, TEXT_MESSAGE, {
            "text": _pick(data, "text", "message"),
        })

    @socketio.on("send-media")
    @_guarded("send-media")
    def send_media(data=None):
        controller.send_content(request.sid, MEDIA, {
            "data": _pick(data, "data", "mediaData"),
            "mediaType": _pick(data, "mediaType"),
            "fileName": _pick(data, "fileName"),
            "fileSize": _pick(data, "fileSize"),
        })

    @socketio.on("typing")
    @_guarded("typing")
    def typing(data=None):
        controller.send_content(request.sid, TYPING, {
            "isTyping": _pick(data, "isTyping"),
        })

    # =====================================================
    #   WEBRTC SIGNALING (relayed verbatim)
    # =====================================================
    @socketio.on("call-user")
    @_guarded("call-user")
    def call_user(data=None):
        controller.send_content(request.sid, CALL_OFFER, {
            "offer": _pick(data, "offer"),
            "callType": _pick(data, "callType"),
        })

    @socketio.on("answer-call")
    @_guarded("answer-call")
    def answer_call(data=None):
        controller.send_content(request.sid, CALL_ANSWER, {
            "answer": _pick(data, "answer"),
        })

    @socketio.on("ice-candidate")
    @_guarded("ice-candidate")
    def ice_candidate(data=None):
        controller.send_content(request.sid, ICE_CANDIDATE, {
            "candidate": _pick(data, "candidate"),
        })

    @socketio.on("end-call")
    @_guarded("end-call")
    def end_call(data=None):
        controller.send_content(request.sid, CALL_END)

    @socketio.on("reject-call")
    @_guarded("reject-call")
    def reject_call(data=None):
        controller.send_content(request.sid, CALL_REJECT)
