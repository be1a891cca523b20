"""
Shared fixtures for PairLink tests
===================================
- RecordingEmitter: stands in for the Socket.IO server in unit tests
- FakeClock: deterministic time source for idle-expiry tests
- server / connect: Flask-SocketIO test clients against a real app
"""

import pytest

from pairlink.store import SessionStore
from pairlink.relay import RelayDispatcher
from pairlink.lifecycle import SessionController
from pairlink.server import create_app


class RecordingEmitter:
    """Records every emit as (event, data, to)."""

    def __init__(self):
        self.sent = []

    def emit(self, event, data=None, to=None):
        self.sent.append((event, data, to))

    def to(self, sid):
        return [(event, data) for event, data, target in self.sent if target == sid]

    def events(self, sid):
        return [event for event, _data, target in self.sent if target == sid]

    def clear(self):
        self.sent.clear()


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def store(clock):
    return SessionStore(clock=clock)


@pytest.fixture
def dispatcher(store, emitter, clock):
    return RelayDispatcher(store, emitter, clock=clock)


@pytest.fixture
def controller(store, emitter, dispatcher):
    return SessionController(store, emitter, dispatcher, session_timeout=30 * 60)


@pytest.fixture
def paired(controller, emitter):
    """A full session: "sid_a" owns it, "sid_b" joined. Emitter cleared."""
    code = controller.create_session("sid_a")
    controller.join_session("sid_b", code)
    emitter.clear()
    return code


# =====================================================
#   SOCKET.IO INTEGRATION
# =====================================================

@pytest.fixture
def server():
    app, socketio = create_app(async_mode="threading", start_sweeper=False)
    return app, socketio


@pytest.fixture
def pairlink_controller(server):
    app, _socketio = server
    return app.extensions["pairlink"]


@pytest.fixture
def connect(server):
    """Factory returning connected test clients; disconnects leftovers."""
    app, socketio = server
    clients = []

    def _connect():
        client = socketio.test_client(app)
        assert client.is_connected()
        clients.append(client)
        return client

    yield _connect

    for client in clients:
        if client.is_connected():
            client.disconnect()


def sid_of(socketio, client):
    return socketio.server.manager.sid_from_eio_sid(client.eio_sid, "/")


def received(client, name=None):
    """Drain a test client's queue as [(event, payload_or_None)]."""
    events = [
        (item["name"], item["args"][0] if item["args"] else None)
        for item in client.get_received()
    ]
    if name is None:
        return events
    return [e for e in events if e[0] == name]
