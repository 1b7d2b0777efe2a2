"""Auction rules: bid normalization, settlement and the win condition.

These functions mutate the in-memory models directly and never talk to the
transport, so they can be exercised without a running server.
"""

from collections import Counter
from typing import Iterable, List, Optional

from ulleung.models import Room

WIN_ANY5 = 'any5'
WIN_SAME3 = 'same3'
WIN_DIFF4 = 'diff4'


def check_win(items: Iterable[str]) -> Optional[str]:
    """Return the satisfied win rule for an inventory, or None.

    any5: five or more items. same3: three of one kind. diff4: four kinds.
    """
    items = list(items or [])
    if not items:
        return None
    counts = Counter(items)
    if len(items) >= 5:
        return WIN_ANY5
    if max(counts.values()) >= 3:
        return WIN_SAME3
    if len(counts) >= 4:
        return WIN_DIFF4
    return None


def parse_amount(raw) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 0


def normalize_bid(raw, available: int, unit: int) -> int:
    """Floor a bid to the bid unit and clamp it to ``[0, available]``."""
    amount = (parse_amount(raw) // unit) * unit
    ceiling = (max(0, available) // unit) * unit
    return max(0, min(amount, ceiling))


def settle_auction(room: Room) -> List[str]:
    """Settle a sealed-bid round in one step and return the winner names.

    Highest hold wins and ties all win. When every hold is zero every bidder
    wins. Winning holds are spent, losing holds go back to balance.
    """
    item = room.current_item
    bidders = room.bidders()
    holds = [p.hold for p in bidders]
    top = max(holds, default=0)

    if top == 0:
        winners = [p.name for p in bidders]
        for p in bidders:
            p.balance += p.hold
            p.hold = 0
            p.items.append(item)
    else:
        winners = [p.name for p in bidders if p.hold == top]
        for p in bidders:
            if p.name in winners:
                p.items.append(item)
            else:
                p.balance += p.hold
            p.hold = 0

    _refund_outsiders(room, winners)
    return winners


def settle_single(room: Room, winner_name: str) -> List[str]:
    """Award the item to a lone participant at no cost."""
    winner = room.find_player(winner_name)
    if winner is None:
        return []
    winner.balance += winner.hold
    winner.hold = 0
    winner.items.append(room.current_item)
    _refund_outsiders(room, [winner_name])
    return [winner_name]


def _refund_outsiders(room: Room, winners: List[str]) -> None:
    for p in room.players:
        if p.name not in room.participants and p.name not in winners:
            p.balance += p.hold
            p.hold = 0
