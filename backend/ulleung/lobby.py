import random
from typing import Mapping, Optional

from ulleung.registry import RoomRegistry
from ulleung.services.games.engine import GameEngine
from ulleung.sessions import SessionManager


class Lobby:
    """Process-wide game state: one registry, engine and session manager.

    Created once per Flask app and stored in ``app.extensions['ulleung']``.
    ``lock`` is shared with the scheduler so socket events and timer
    callbacks never interleave.
    """

    def __init__(self, config: Mapping, broadcaster, scheduler, rng: Optional[random.Random] = None):
        self.config = config
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.lock = scheduler.lock
        self.registry = RoomRegistry(config, broadcaster, scheduler)
        self.engine = GameEngine(config, self.registry, broadcaster, rng=rng)
        self.sessions = SessionManager(config, self.registry, self.engine, broadcaster, scheduler)
