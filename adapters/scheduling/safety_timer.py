import threading
from typing import Callable

import structlog

from ports.scheduler import TimerPort

logger = structlog.get_logger(__name__)

class ThreadingSafetyTimer(TimerPort):
    """Timer de disparo único numa thread daemon."""

    def __init__(self, seconds: float, callback: Callable[[], None]):
        self.seconds = seconds
        self._timer = threading.Timer(seconds, self._fire, args=(callback,))
        self._timer.daemon = True

    def start(self):
        logger.debug("safety_timer.armed", seconds=self.seconds)
        self._timer.start()

    def cancel(self):
        self._timer.cancel()

    def _fire(self, callback: Callable[[], None]):
        logger.debug("safety_timer.fired", seconds=self.seconds)
        callback()
