from typing import Any


class SocketIOBroadcaster:
    """Pushes server events to clients through Flask-SocketIO.

    Uses ``socketio.emit`` rather than ``flask_socketio.emit`` so it also
    works from background timer tasks with no request context.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, sid: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def broadcast(self, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, namespace=self.namespace)
