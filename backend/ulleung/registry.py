import logging
from typing import Dict, List, Mapping, Optional

from ulleung.models import Room, now_ms
from ulleung.views import room_summary

logger = logging.getLogger(__name__)

MAX_ID_SUFFIX = 99

MSG_ROOM_DELETED = 'The room has been deleted.'
MSG_ROOM_EXPIRED = 'The room was closed because the game never started.'
MSG_ROOM_INACTIVE = 'The room was closed after a long period of inactivity.'


class RoomRegistry:
    """In-memory store of live rooms and their lifecycle timers."""

    def __init__(self, config: Mapping, broadcaster, scheduler):
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.room_timeout = int(config.get('ROOM_TIMEOUT_SEC', 900))
        self.inactive_timeout = int(config.get('INACTIVE_TIMEOUT_SEC', 3600))
        self.game_over_grace = int(config.get('GAME_OVER_GRACE_SEC', 30))
        self.starting_balance = int(config.get('STARTING_BALANCE', 1000000))
        self.max_players = int(config.get('MAX_PLAYERS', 8))
        self.list_limit = int(config.get('ROOM_LIST_LIMIT', 20))
        self.log_limit = int(config.get('ROUND_LOG_LIMIT', 20))
        self._rooms: Dict[str, Room] = {}

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms

    def generate_room_id(self, host_name: str) -> str:
        """Human-readable id: "Alice's room", "Alice's room2", ... then a timestamp."""
        base = f"{host_name}'s room"
        if base not in self._rooms:
            return base
        for idx in range(2, MAX_ID_SUFFIX + 1):
            candidate = f'{base}{idx}'
            if candidate not in self._rooms:
                return candidate
        stamped = f'{base}{now_ms()}'
        candidate, n = stamped, 1
        while candidate in self._rooms:
            n += 1
            candidate = f'{stamped}-{n}'
        return candidate

    def create(self, host_name: str, board_mode: bool, sid: Optional[str]) -> Room:
        room_id = self.generate_room_id(host_name)
        room = Room(room_id, host_name, board_mode=board_mode, log_limit=self.log_limit)
        room.add_player(host_name, sid, self.starting_balance)
        self._rooms[room_id] = room
        room.start_timer = self.scheduler.call_later(
            self.room_timeout, lambda: self._expire_unstarted(room_id), label=f'start-timeout:{room_id}'
        )
        logger.info(f"[room-create] room={room_id} host={host_name} board_mode={board_mode}")
        return room

    def get(self, room_id) -> Optional[Room]:
        if not isinstance(room_id, str):
            return None
        return self._rooms.get(room_id)

    def delete(self, room_id: str, message: str = MSG_ROOM_DELETED) -> bool:
        """Remove a room and tell its players. Deleting twice is a no-op."""
        room = self._rooms.pop(room_id, None)
        if room is None:
            return False
        room.cancel_timers()
        for player in room.players:
            if player.sid and player.connected:
                self.broadcaster.send(player.sid, 'room:deleted', {'message': message})
        logger.info(f"[room-delete] room={room_id} reason={message!r}")
        self.broadcast_room_list()
        return True

    def mark_started(self, room: Room) -> None:
        if room.start_timer is not None:
            room.start_timer.cancel()
            room.start_timer = None
        self.touch(room)

    def touch(self, room: Room) -> None:
        """Record activity and push the inactivity deadline back."""
        room.updated_at = now_ms()
        if not room.started or room.game_over:
            return
        if room.inactive_timer is not None:
            room.inactive_timer.cancel()
        room.inactive_timer = self.scheduler.call_later(
            self.inactive_timeout, lambda: self._expire_inactive(room.id), label=f'inactive:{room.id}'
        )

    def schedule_cleanup(self, room: Room) -> None:
        if room.inactive_timer is not None:
            room.inactive_timer.cancel()
            room.inactive_timer = None
        if room.cleanup_timer is not None:
            room.cleanup_timer.cancel()
        room.cleanup_timer = self.scheduler.call_later(
            self.game_over_grace, lambda: self.delete(room.id), label=f'cleanup:{room.id}'
        )

    def list_active(self, limit: Optional[int] = None) -> List[dict]:
        """Joinable rooms, newest first."""
        limit = self.list_limit if limit is None else limit
        # Insertion order breaks ties between rooms created in the same millisecond
        rooms = [r for r in reversed(list(self._rooms.values())) if not r.started and not r.game_over]
        rooms.sort(key=lambda r: r.created_at, reverse=True)
        return [room_summary(r, self.max_players) for r in rooms[:limit]]

    def broadcast_room_list(self) -> None:
        self.broadcaster.broadcast('rooms:list', self.list_active())

    def _expire_unstarted(self, room_id: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None and not room.started:
            self.delete(room_id, MSG_ROOM_EXPIRED)

    def _expire_inactive(self, room_id: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None and not room.game_over:
            self.delete(room_id, MSG_ROOM_INACTIVE)
