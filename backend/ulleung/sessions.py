"""Binding of transient Socket.IO connections to durable players.

A player is identified by display name inside a room. Joining again with the
same name rebinds the existing player to the new connection, which is how
clients reconnect after a dropped socket.
"""

import logging
from typing import Dict, Mapping, Optional, Tuple

from ulleung.errors import GameError
from ulleung.models import Player, Room
from ulleung.registry import MSG_ROOM_DELETED
from ulleung.views import view_for

logger = logging.getLogger(__name__)

MSG_HOST_LEFT = 'The host left, so the room was closed.'


class Connection:
    def __init__(self, sid: str):
        self.sid = sid
        self.room_id: Optional[str] = None
        self.name: Optional[str] = None

    def bind(self, room_id: str, name: str) -> None:
        self.room_id = room_id
        self.name = name

    def unbind(self) -> None:
        self.room_id = None
        self.name = None


class SessionManager:
    def __init__(self, config: Mapping, registry, engine, broadcaster, scheduler):
        self.registry = registry
        self.engine = engine
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.max_players = int(config.get('MAX_PLAYERS', 8))
        self.name_max_len = int(config.get('NAME_MAX_LEN', 10))
        self.grace = int(config.get('DISCONNECT_GRACE_SEC', 30))
        self._connections: Dict[str, Connection] = {}
        self._grace_timers: Dict[Tuple[str, str], object] = {}

    def normalize_name(self, raw) -> str:
        if not isinstance(raw, str):
            return ''
        return raw.strip()[:self.name_max_len]

    def connect(self, sid: str) -> Connection:
        conn = self._connections.get(sid)
        if conn is None:
            conn = self._connections[sid] = Connection(sid)
        return conn

    def resolve(self, sid: str) -> Tuple[Optional[Room], Optional[Player]]:
        """Room and player bound to a connection, or (None, None) if stale."""
        conn = self._connections.get(sid)
        if conn is None or conn.room_id is None:
            return None, None
        room = self.registry.get(conn.room_id)
        if room is None:
            return None, None
        player = room.find_player(conn.name)
        if player is None or player.sid != sid:
            return None, None
        return room, player

    # ---- Room membership ----

    def create_room(self, sid: str, host_name, board_mode) -> Room:
        name = self.normalize_name(host_name)
        if not name:
            raise GameError('Enter a nickname.')

        self._detach(sid)
        room = self.registry.create(name, board_mode is True, sid)
        self.connect(sid).bind(room.id, name)
        self.broadcaster.send(sid, 'room:created', {'roomId': room.id, 'room': view_for(room, name)})
        self.registry.broadcast_room_list()
        return room

    def join(self, sid: str, room_id, player_name) -> Player:
        room = self.registry.get(room_id)
        if room is None:
            raise GameError('That room does not exist.')
        name = self.normalize_name(player_name)
        if not name:
            raise GameError('Enter a nickname.')

        existing = room.find_player(name)
        if existing is not None:
            return self._rebind(sid, room, existing)

        if room.game_over:
            raise GameError('This game is already over.')
        if room.started:
            raise GameError('This game has already started.')
        if len(room.players) >= self.max_players:
            raise GameError('The room is full.')
        current, _ = self.resolve(sid)
        if current is room:
            raise GameError('You are already in this room.')

        self._detach(sid)
        player = room.add_player(name, sid, self.registry.starting_balance)
        self.connect(sid).bind(room.id, name)
        self.registry.touch(room)
        logger.info(f"[room-join] room={room.id} player={name} seat={player.seat}")

        self.broadcaster.send(sid, 'room:joined', {
            'roomId': room.id,
            'room': view_for(room, name),
            'playerName': name,
            'reconnected': False,
        })
        self.engine.broadcast_room(room)
        self.registry.broadcast_room_list()
        return player

    def leave(self, sid: str) -> None:
        room, player = self.resolve(sid)
        if room is None:
            return
        self._remove_player(room, player, failover=False)

    def disconnect(self, sid: str) -> None:
        """Start the grace window; the player stays seated until it expires."""
        room, player = self.resolve(sid)
        self._connections.pop(sid, None)
        if room is None:
            return

        player.connected = False
        key = (room.id, player.name)
        previous = self._grace_timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._grace_timers[key] = self.scheduler.call_later(
            self.grace,
            lambda: self._expire_grace(room.id, player.name, sid),
            label=f'grace:{room.id}:{player.name}',
        )
        logger.info(f"[disconnect] room={room.id} player={player.name} grace={self.grace}s")
        self.engine.broadcast_room(room)

    # ---- Internals ----

    def _rebind(self, sid: str, room: Room, player: Player) -> Player:
        old_sid = player.sid
        if old_sid != sid:
            old = self._connections.get(old_sid)
            if old is not None:
                old.unbind()
            self._detach(sid)
        timer = self._grace_timers.pop((room.id, player.name), None)
        if timer is not None:
            timer.cancel()

        player.sid = sid
        player.connected = True
        self.connect(sid).bind(room.id, player.name)
        logger.info(f"[reconnect] room={room.id} player={player.name}")

        self.broadcaster.send(sid, 'room:joined', {
            'roomId': room.id,
            'room': view_for(room, player.name),
            'playerName': player.name,
            'reconnected': True,
        })
        self.engine.broadcast_room(room)
        return player

    def _detach(self, sid: str) -> None:
        """Leave whatever room this connection currently sits in."""
        room, player = self.resolve(sid)
        if room is not None:
            self._remove_player(room, player, failover=False)

    def _expire_grace(self, room_id: str, name: str, sid: str) -> None:
        self._grace_timers.pop((room_id, name), None)
        room = self.registry.get(room_id)
        if room is None:
            return
        player = room.find_player(name)
        if player is None or player.sid != sid:
            return
        logger.info(f"[grace-expired] room={room_id} player={name}")
        self._remove_player(room, player, failover=True)

    def _remove_player(self, room: Room, player: Player, failover: bool) -> None:
        was_host = room.is_host(player.name)
        room.remove_player(player.name)
        conn = self._connections.get(player.sid)
        if conn is not None and conn.room_id == room.id:
            conn.unbind()
        timer = self._grace_timers.pop((room.id, player.name), None)
        if timer is not None:
            timer.cancel()
        logger.info(f"[room-leave] room={room.id} player={player.name} host={was_host}")

        if not room.players:
            self.registry.delete(room.id, MSG_ROOM_DELETED)
            return
        if was_host and not failover:
            self.registry.delete(room.id, MSG_HOST_LEFT)
            return
        if was_host:
            room.host_name = room.players[0].name
            logger.info(f"[host-failover] room={room.id} host={room.host_name}")

        self.registry.touch(room)
        self.engine.handle_departure(room, player.name)
        self.engine.broadcast_room(room)
        self.registry.broadcast_room_list()
