import functools
import logging

from flask import current_app, request
from flask_socketio import emit

from ulleung import socketio
from ulleung.errors import GameError

logger = logging.getLogger(__name__)


def _lobby():
    return current_app.extensions['ulleung']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _event(handler):
    """Run a handler under the lobby lock and report GameError to the sender."""

    @functools.wraps(handler)
    def wrapper(data=None, *args):
        lobby = _lobby()
        payload = data if isinstance(data, dict) else {}
        with lobby.lock:
            try:
                handler(lobby, _get_sid(), payload)
            except GameError as exc:
                logger.info(f"[rejected] sid={_get_sid()} event={handler.__name__} reason={exc.message!r}")
                emit('error', {'message': exc.message})

    return wrapper


def _actor(handler):
    """Resolve the sender's room and player; events from stale connections are dropped."""

    @functools.wraps(handler)
    def wrapper(lobby, sid, data):
        room, player = lobby.sessions.resolve(sid)
        if room is None:
            logger.debug(f"[ignored] sid={sid} event={handler.__name__} no room")
            return
        handler(lobby, room, player, data)

    return wrapper


def handle_connect(auth=None):
    lobby = _lobby()
    with lobby.lock:
        lobby.sessions.connect(_get_sid())
    logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    lobby = _lobby()
    with lobby.lock:
        lobby.sessions.disconnect(_get_sid())
    logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")


@_event
def handle_rooms_get(lobby, sid, data):
    emit('rooms:list', lobby.registry.list_active())


@_event
def handle_room_create(lobby, sid, data):
    lobby.sessions.create_room(sid, data.get('hostName'), data.get('boardMode'))


@_event
def handle_room_join(lobby, sid, data):
    lobby.sessions.join(sid, data.get('roomId'), data.get('playerName'))


@_event
def handle_room_leave(lobby, sid, data):
    lobby.sessions.leave(sid)


@_event
@_actor
def handle_game_start(lobby, room, player, data):
    lobby.engine.start_game(room, player.name)


@_event
@_actor
def handle_set_item(lobby, room, player, data):
    lobby.engine.set_item(room, player.name, data.get('item'))


@_event
@_actor
def handle_lock_part(lobby, room, player, data):
    lobby.engine.lock_part(room, player, data.get('willParticipate'))


@_event
@_actor
def handle_confirm_bid(lobby, room, player, data):
    lobby.engine.confirm_bid(room, player, data.get('amount'))


@_event
@_actor
def handle_cancel_bid(lobby, room, player, data):
    lobby.engine.cancel_bid(room, player)


@_event
@_actor
def handle_game_end(lobby, room, player, data):
    lobby.engine.end_game(room, player.name)


@_event
@_actor
def handle_room_delete(lobby, room, player, data):
    if not room.is_host(player.name):
        raise GameError('Only the host can delete the room.')
    lobby.registry.delete(room.id)


EVENTS = {
    'rooms:get': handle_rooms_get,
    'room:create': handle_room_create,
    'room:join': handle_room_join,
    'room:leave': handle_room_leave,
    'game:start': handle_game_start,
    'game:setItem': handle_set_item,
    'game:lockPart': handle_lock_part,
    'game:confirmBid': handle_confirm_bid,
    'game:cancelBid': handle_cancel_bid,
    'game:end': handle_game_end,
    'room:delete': handle_room_delete,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for name, handler in EVENTS.items():
        socketio.on_event(name, handler, namespace=namespace)
