import time
from collections import deque
from typing import Deque, Dict, List, Optional

PHASE_CHOOSE = 'choose'
PHASE_BID = 'bid'


def now_ms() -> int:
    return int(time.time() * 1000)


class Player:
    def __init__(self, seat: str, name: str, sid: Optional[str], balance: int):
        self.seat = seat
        self.name = name
        self.sid = sid
        self.connected = True
        self.balance = balance
        self.hold = 0
        self.bid = 0
        self.items: List[str] = []
        self.will_participate: Optional[bool] = None
        self.ready_part = False
        self.ready_bid = False

    def reset_round(self) -> None:
        # Settlement leaves hold at zero; refunding here keeps money whole when
        # a round is reset mid-auction.
        self.balance += self.hold
        self.hold = 0
        self.bid = 0
        self.will_participate = None
        self.ready_part = False
        self.ready_bid = False

    def __repr__(self):
        return f'<Player {self.name} balance={self.balance} hold={self.hold} items={len(self.items)}>'


class Room:
    def __init__(self, room_id: str, host_name: str, board_mode: bool = False, log_limit: int = 20):
        self.id = room_id
        self.host_name = host_name
        self.board_mode = board_mode
        self.started = False
        self.game_over = False
        self.round = 0
        self.phase = PHASE_CHOOSE
        self.current_item = ''
        self.participants: List[str] = []
        self.last_winners: List[str] = []
        self.last_item = ''
        self.round_logs: Deque[Dict] = deque(maxlen=log_limit)
        self.final_winners: List[str] = []
        self.players: List[Player] = []
        self.created_at = now_ms()
        self.updated_at = self.created_at
        # Timer handles
        self.start_timer = None
        self.inactive_timer = None
        self.cleanup_timer = None
        self._seat_seq = 0

    def add_player(self, name: str, sid: Optional[str], balance: int) -> Player:
        self._seat_seq += 1
        player = Player(f'P{self._seat_seq}', name, sid, balance)
        self.players.append(player)
        return player

    def remove_player(self, name: str) -> Optional[Player]:
        player = self.find_player(name)
        if player is None:
            return None
        self.players.remove(player)
        if name in self.participants:
            self.participants.remove(name)
        return player

    def find_player(self, name: str) -> Optional[Player]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def is_host(self, name: Optional[str]) -> bool:
        return name is not None and name == self.host_name

    def bidders(self) -> List[Player]:
        """Players taking part in the current auction, in join order."""
        return [p for p in self.players if p.name in self.participants]

    def reset_round(self) -> None:
        self.phase = PHASE_CHOOSE
        self.participants = []
        for player in self.players:
            player.reset_round()

    def add_log(self, winners: List[str], item: str) -> None:
        self.round_logs.append({
            'round': self.round,
            'item': item,
            'participants': list(self.participants),
            'winners': list(winners),
        })

    def total_money(self) -> int:
        return sum(p.balance + p.hold for p in self.players)

    def cancel_timers(self) -> None:
        for attr in ('start_timer', 'inactive_timer', 'cleanup_timer'):
            handle = getattr(self, attr)
            if handle is not None:
                handle.cancel()
            setattr(self, attr, None)

    def __repr__(self):
        return f'<Room {self.id!r} players={len(self.players)} round={self.round} phase={self.phase}>'
