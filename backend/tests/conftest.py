import os
import random
import sys
import threading
import pytest

# Ensure the backend root (containing the `ulleung` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from ulleung import create_app, socketio
from ulleung.lobby import Lobby
from ulleung.services.games.scheduler import TimerHandle


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CLIENT_DIR = os.path.join(CURRENT_DIR, 'client')
    ROOM_TIMEOUT_SEC = 900
    INACTIVE_TIMEOUT_SEC = 3600
    DISCONNECT_GRACE_SEC = 30
    GAME_OVER_GRACE_SEC = 30
    MIN_PLAYERS = 3
    MAX_PLAYERS = 8


class ManualScheduler:
    """Deterministic scheduler: timers only fire when the test advances time."""

    def __init__(self):
        self.lock = threading.RLock()
        self.now = 0.0
        self._timers = []

    def call_later(self, delay, callback, label=None):
        handle = TimerHandle(delay, callback, label)
        handle.due = self.now + delay
        self._timers.append(handle)
        return handle

    def pending(self):
        return [h for h in self._timers if h.active]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self._timers if h.active and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = handle.due
            with self.lock:
                handle.fire()
        self.now = target


class RecordingBroadcaster:
    """Captures (sid, event, payload); broadcasts are recorded with sid None."""

    def __init__(self):
        self.sent = []

    def send(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def broadcast(self, event, payload):
        self.sent.append((None, event, payload))

    def events(self, event, sid='*'):
        return [p for s, e, p in self.sent if e == event and (sid == '*' or s == sid)]

    def last(self, event, sid='*'):
        found = self.events(event, sid)
        return found[-1] if found else None

    def clear(self):
        self.sent.clear()


def config_dict(**overrides):
    cfg = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}
    cfg.update(overrides)
    return cfg


@pytest.fixture()
def make_lobby():
    def _make(**overrides):
        return Lobby(config_dict(**overrides), RecordingBroadcaster(), ManualScheduler(), rng=random.Random(7))
    return _make


@pytest.fixture()
def lobby(make_lobby):
    return make_lobby()


@pytest.fixture()
def seated(lobby):
    """Build a room with the given player names; the first one hosts.

    Each player is connected as ``sid-<name>``.
    """
    def _seat(*names, board_mode=False, target=None):
        target = target or lobby
        host, *guests = names
        room = target.sessions.create_room(f'sid-{host}', host, board_mode)
        for name in guests:
            target.sessions.join(f'sid-{name}', room.id, name)
        return room
    return _seat


@pytest.fixture()
def started(lobby, seated):
    """A started three-player room (Alice hosts, then Bob and Cara)."""
    def _start(*names, board_mode=False, target=None):
        target = target or lobby
        names = names or ('Alice', 'Bob', 'Cara')
        room = seated(*names, board_mode=board_mode, target=target)
        target.engine.start_game(room, names[0])
        target.broadcaster.clear()
        return room
    return _start


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig, scheduler=ManualScheduler(), rng=random.Random(7))
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
