"""
ENIAC Simulator — Interval Driver

Continuous running is owned by the caller, not the engine: this driver
ticks ``engine.execute_step()`` every ``interval`` seconds on a daemon
thread. While the machine is stopped each tick is a no-op, so start()
and stop() on the engine pause and resume the run without touching the
driver.

Usage:
    engine = ENIACEngine()
    with IntervalDriver(engine, interval=1.0):
        engine.start()
        ...                  # steps arrive once per second
        engine.stop()
"""

import logging
import threading
from typing import Optional

from .config import RUN_INTERVAL_S

logger = logging.getLogger(__name__)


class IntervalDriver:

    def __init__(self, engine, interval: float = RUN_INTERVAL_S,
                 max_steps: Optional[int] = None):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if max_steps is not None and max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {max_steps}")
        self.engine = engine
        self.interval = interval
        self.max_steps = max_steps
        self.steps = 0
        self._halt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.alive:
            return
        self._halt.clear()
        self._thread = threading.Thread(target=self._loop, name="eniac-driver",
                                        daemon=True)
        self._thread.start()
        logger.info(f"Driver started ({self.interval:g}s per step)")

    def stop(self):
        """Stop ticking. Does not stop the machine itself."""
        self._halt.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        logger.info(f"Driver stopped after {self.steps} step(s)")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the driver to finish. Returns True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _loop(self):
        while not self._halt.wait(self.interval):
            if self.engine.execute_step():
                self.steps += 1
                if self.max_steps is not None and self.steps >= self.max_steps:
                    self.engine.stop()
                    break

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
