# ============================================
#     PairLink - Flask + Socket.IO bootstrap
# ============================================

import time
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_socketio import SocketIO

from pairlink.config import (
    IS_PROD,
    CORS_ALLOWED_ORIGINS,
    MAX_HTTP_BUFFER_SIZE,
    PING_TIMEOUT,
    PING_INTERVAL,
)
from pairlink.store import SessionStore
from pairlink.relay import RelayDispatcher
from pairlink.lifecycle import SessionController
from pairlink.sockets import register_session_handlers
from pairlink.sweeper import start_expiry_sweeper
from pairlink.logger import log_info

STARTED_AT = time.time()


def register_health_routes(app, controller):
    # Session count only: no codes, no sids.
    @app.route("/")
    def index():
        return jsonify({
            "status": "ok",
            "message": "PairLink relay running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "activeSessions": controller.active_sessions(),
        })

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "uptime": round(time.time() - STARTED_AT, 3),
            "activeSessions": controller.active_sessions(),
        })


def create_app(async_mode=None, start_sweeper=True, store=None):
    """
    Build the Flask app and its Socket.IO server.

    Returns (app, socketio). The controller is reachable as
    app.extensions["pairlink"].
    """
    app = Flask(__name__)

    # async_handlers=False: one client's events are handled in arrival
    # order, so relayed messages reach the peer in send order.
    socketio = SocketIO(
        app,
        async_mode=async_mode,
        async_handlers=False,
        cors_allowed_origins=CORS_ALLOWED_ORIGINS,
        max_http_buffer_size=MAX_HTTP_BUFFER_SIZE,
        ping_timeout=PING_TIMEOUT,
        ping_interval=PING_INTERVAL,
    )

    store = store if store is not None else SessionStore()
    dispatcher = RelayDispatcher(store, socketio)
    controller = SessionController(store, socketio, dispatcher)
    app.extensions["pairlink"] = controller

    register_health_routes(app, controller)
    register_session_handlers(socketio, controller)
    log_info("server", "Socket handlers registered successfully.")

    if start_sweeper:
        start_expiry_sweeper(socketio, controller)

    log_info("server", f"App ready ({'prod' if IS_PROD else 'dev'}, origins={CORS_ALLOWED_ORIGINS})")
    return app, socketio
