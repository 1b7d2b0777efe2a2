import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A one-shot timer token.

    Cancelling is synchronous: once ``cancel()`` returns, the callback will
    never run, even if the worker has already woken up.
    """

    def __init__(self, delay: float, callback: Callable[[], None], label: Optional[str] = None):
        self.delay = delay
        self.callback = callback
        self.label = label or getattr(callback, '__name__', 'timer')
        self.deadline = time.time() + delay
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> bool:
        if not self.active:
            return False
        self.fired = True
        self.callback()
        return True

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'fired' if self.fired else 'pending'
        return f'<TimerHandle {self.label} delay={self.delay}s {state}>'


class BackgroundScheduler:
    """Timers running as Socket.IO background tasks.

    ``lock`` serializes every inbound event and timer callback so each one
    runs to completion against a consistent room state.
    """

    def __init__(self, socketio, lock=None):
        self.socketio = socketio
        self.lock = lock or threading.RLock()

    def call_later(self, delay: float, callback: Callable[[], None], label: Optional[str] = None) -> TimerHandle:
        handle = TimerHandle(delay, callback, label)
        logger.info(f"[timer-set] {handle.label} delay={delay}s")
        self.socketio.start_background_task(self._worker, handle)
        return handle

    def _worker(self, handle: TimerHandle) -> None:
        self.socketio.sleep(handle.delay)
        with self.lock:
            if not handle.active:
                logger.debug(f"[timer-abort] {handle.label} cancelled")
                return
            logger.info(f"[timer-fire] {handle.label}")
            try:
                handle.fire()
            except Exception:
                logger.exception(f"[timer-error] {handle.label}")
