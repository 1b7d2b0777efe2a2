"""Per-recipient projections of room state.

Balances, holds and inventories are private until the game is over: a player
sees their own numbers and only an item count for everyone else.
"""

from typing import Any, Dict, Optional

from ulleung.models import Room, Player

ROUND_LOG_VIEW = 10


def _player_view(room: Room, player: Player, reveal: bool) -> Dict[str, Any]:
    return {
        'id': player.seat,
        'name': player.name,
        'balance': player.balance if reveal else None,
        'hold': player.hold if reveal else None,
        'itemCount': len(player.items),
        'items': list(player.items) if reveal else None,
        'readyPart': player.ready_part,
        'readyBid': player.ready_bid,
        'willParticipate': player.will_participate,
        'isHost': room.is_host(player.name),
        'connected': player.connected,
    }


def _room_view(room: Room, viewer: Optional[str], reveal_all: bool) -> Dict[str, Any]:
    return {
        'id': room.id,
        'hostName': room.host_name,
        'boardMode': room.board_mode,
        'started': room.started,
        'gameOver': room.game_over,
        'round': room.round,
        'phase': room.phase,
        'currentItem': room.current_item,
        'participants': list(room.participants),
        'lastWinners': list(room.last_winners),
        'lastItem': room.last_item,
        'roundLogs': list(room.round_logs)[-ROUND_LOG_VIEW:],
        'finalWinners': list(room.final_winners),
        'players': [
            _player_view(room, p, reveal_all or p.name == viewer)
            for p in room.players
        ],
    }


def sanitize_room(room: Room, viewer: Optional[str] = None) -> Dict[str, Any]:
    """Room as seen by ``viewer``; with no viewer nothing private is shown."""
    return _room_view(room, viewer, reveal_all=False)


def final_room(room: Room) -> Dict[str, Any]:
    """Room with every player's holdings revealed, for the end screen."""
    return _room_view(room, None, reveal_all=True)


def view_for(room: Room, viewer: Optional[str]) -> Dict[str, Any]:
    """Projection for one recipient; everything is public once the game is over."""
    if room.game_over:
        return final_room(room)
    return sanitize_room(room, viewer)


def room_summary(room: Room, max_players: int) -> Dict[str, Any]:
    return {
        'id': room.id,
        'hostName': room.host_name,
        'playerCount': len(room.players),
        'maxPlayers': max_players,
        'boardMode': room.board_mode,
        'createdAt': room.created_at,
    }
