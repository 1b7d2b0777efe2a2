import logging
import random
from typing import List, Mapping, Optional

from ulleung.errors import GameError
from ulleung.items import random_item
from ulleung.models import PHASE_BID, PHASE_CHOOSE, Player, Room
from ulleung.views import final_room, sanitize_room, view_for
from .rules import check_win, normalize_bid, settle_auction, settle_single

logger = logging.getLogger(__name__)

ITEM_MAX_LEN = 20


class GameEngine:
    """Round state machine: choose -> bid -> settle -> next round or game over.

    Every public action validates first and raises GameError without touching
    the room, then mutates, renews the inactivity timer and broadcasts.
    """

    def __init__(self, config: Mapping, registry, broadcaster, rng: Optional[random.Random] = None):
        self.registry = registry
        self.broadcaster = broadcaster
        self.rng = rng or random.Random()
        self.min_players = int(config.get('MIN_PLAYERS', 3))
        self.skip_bonus = int(config.get('SKIP_BONUS', 50000))
        self.bid_unit = int(config.get('BID_UNIT', 10000))

    # ---- Broadcast helpers ----

    def broadcast_room(self, room: Room) -> None:
        """Send every connected player their own filtered view."""
        for p in room.players:
            if p.sid and p.connected:
                self.broadcaster.send(p.sid, 'room:updated', view_for(room, p.name))

    # ---- Host actions ----

    def start_game(self, room: Room, actor: str) -> None:
        self._require_host(room, actor, 'Only the host can start the game.')
        if room.game_over:
            raise GameError('The game is already over.')
        if room.started:
            raise GameError('The game has already started.')
        if len(room.players) < self.min_players:
            raise GameError(f'At least {self.min_players} players are required to start.')

        room.started = True
        room.round = 0
        room.current_item = ''
        self._enter_choose(room)
        self.registry.mark_started(room)
        logger.info(f"[game-start] room={room.id} players={len(room.players)} item={room.current_item!r}")

        for p in room.players:
            if p.sid and p.connected:
                self.broadcaster.send(p.sid, 'game:started', sanitize_room(room, p.name))
        self.registry.broadcast_room_list()

    def set_item(self, room: Room, actor: str, item) -> None:
        self._require_in_progress(room)
        if not room.board_mode:
            raise GameError('Prizes can only be set in board mode.')
        self._require_host(room, actor, 'Only the host can set the prize.')

        room.reset_round()
        room.current_item = str(item or '').strip()[:ITEM_MAX_LEN]
        logger.info(f"[set-item] room={room.id} item={room.current_item!r}")
        self.registry.touch(room)
        self.broadcast_room(room)

    def end_game(self, room: Room, actor: str) -> None:
        self._require_host(room, actor, 'Only the host can end the game.')
        if room.game_over:
            raise GameError('The game is already over.')
        winners = [p.name for p in room.players if check_win(p.items)]
        self._finish(room, winners, 'The host ended the game.')

    # ---- Player actions ----

    def lock_part(self, room: Room, player: Player, will_participate) -> None:
        self._require_in_progress(room)
        if room.phase != PHASE_CHOOSE:
            raise GameError('Choices are closed for this round.')
        if room.board_mode and not room.current_item:
            raise GameError('The host must choose a prize first.')
        if player.ready_part:
            raise GameError('You have already made your choice.')

        player.will_participate = will_participate is True
        player.ready_part = True
        if not player.will_participate:
            player.balance += self.skip_bonus

        self.registry.touch(room)
        self.broadcast_room(room)
        self.check_phase_advance(room)

    def confirm_bid(self, room: Room, player: Player, amount) -> None:
        self._require_bidder(room, player)

        available = player.balance + player.hold
        bid = normalize_bid(amount, available, self.bid_unit)
        player.hold = bid
        player.bid = bid
        player.balance = available - bid
        player.ready_bid = True

        self.registry.touch(room)
        self.broadcast_room(room)
        self.check_bid_settle(room)

    def cancel_bid(self, room: Room, player: Player) -> None:
        self._require_bidder(room, player)

        player.balance += player.hold
        player.hold = 0
        player.bid = 0
        player.ready_bid = True

        self.registry.touch(room)
        self.broadcast_room(room)
        self.check_bid_settle(room)

    # ---- Transitions ----

    def check_phase_advance(self, room: Room) -> None:
        if not self._in_progress(room) or room.phase != PHASE_CHOOSE:
            return
        if not room.players or not all(p.ready_part for p in room.players):
            return

        room.participants = [p.name for p in room.players if p.will_participate is True]
        if not room.board_mode and not room.current_item:
            room.current_item = random_item(self.rng)

        if not room.participants:
            self._complete_round(room, [])
        elif len(room.participants) == 1:
            self._complete_round(room, settle_single(room, room.participants[0]))
        else:
            room.phase = PHASE_BID
            logger.info(f"[phase-bid] room={room.id} round={room.round} participants={room.participants}")
            self.broadcast_room(room)

    def check_bid_settle(self, room: Room) -> None:
        if not self._in_progress(room) or room.phase != PHASE_BID:
            return
        if all(p.ready_bid for p in room.bidders()):
            self._complete_round(room, settle_auction(room))

    def handle_departure(self, room: Room, name: str) -> None:
        """Re-evaluate a running round after ``name`` has left the room."""
        if not self._in_progress(room):
            return
        if name in room.participants:
            room.participants.remove(name)
        if room.phase == PHASE_CHOOSE:
            self.check_phase_advance(room)
        elif room.phase == PHASE_BID:
            if not room.participants:
                self._complete_round(room, [])
            elif len(room.participants) == 1:
                self._complete_round(room, settle_single(room, room.participants[0]))
            else:
                self.check_bid_settle(room)

    def _enter_choose(self, room: Room) -> None:
        room.reset_round()
        if not room.board_mode and not room.current_item:
            room.current_item = random_item(self.rng)

    def _complete_round(self, room: Room, winners: List[str]) -> None:
        item = room.current_item
        participants = list(room.participants)
        room.round += 1
        room.last_winners = list(winners)
        room.last_item = item
        room.add_log(winners, item)
        logger.info(f"[round-end] room={room.id} round={room.round} item={item!r} participants={participants} winners={winners}")

        game_winners = [p.name for p in room.players if check_win(p.items)]
        if game_winners:
            self._finish(room, game_winners, f"Game over! Winner: {', '.join(game_winners)}")
            return

        room.current_item = ''
        self._enter_choose(room)
        for p in room.players:
            if p.sid and p.connected:
                self.broadcaster.send(p.sid, 'round:result', {
                    'round': room.round,
                    'item': item,
                    'winners': list(winners),
                    'isWinner': p.name in winners,
                    'wasParticipant': p.name in participants,
                    'room': sanitize_room(room, p.name),
                })

    def _finish(self, room: Room, winners: List[str], message: str) -> None:
        room.game_over = True
        room.final_winners = list(winners)
        logger.info(f"[game-over] room={room.id} round={room.round} winners={winners}")
        payload = {'message': message, 'winners': list(winners), 'room': final_room(room)}
        for p in room.players:
            if p.sid and p.connected:
                self.broadcaster.send(p.sid, 'game:ended', payload)
        self.registry.schedule_cleanup(room)
        self.registry.broadcast_room_list()

    # ---- Guards ----

    @staticmethod
    def _in_progress(room: Room) -> bool:
        return room.started and not room.game_over

    def _require_in_progress(self, room: Room) -> None:
        if not self._in_progress(room):
            raise GameError('The game is not in progress.')

    @staticmethod
    def _require_host(room: Room, actor: str, message: str) -> None:
        if not room.is_host(actor):
            raise GameError(message)

    def _require_bidder(self, room: Room, player: Player) -> None:
        self._require_in_progress(room)
        if room.phase != PHASE_BID:
            raise GameError('Bidding is not open.')
        if player.name not in room.participants:
            raise GameError('You are not bidding this round.')
        if player.ready_bid:
            raise GameError('You have already placed your bid.')
