"""
ENIAC Simulator — State Store

Owns the canonical MachineState and the subscriber list. Every other
component mutates ``store.state`` while holding ``store.lock`` and then
calls ``store.notify()``; nothing outside the engine ever sees the live
object, only snapshots.
"""

import logging
import threading
from typing import Callable, List

from .state import MachineState, initial_state

logger = logging.getLogger(__name__)

Listener = Callable[[MachineState], None]


class StateStore:
    """Single source of truth for one engine instance."""

    def __init__(self):
        self.state: MachineState = initial_state()
        self.lock = threading.RLock()
        self._listeners: List[Listener] = []

    def get_snapshot(self) -> MachineState:
        with self.lock:
            return self.state.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it again.

        The returned function removes exactly this registration and may be
        called any number of times.
        """
        with self.lock:
            self._listeners.append(listener)

        removed = False

        def unsubscribe():
            nonlocal removed
            with self.lock:
                if removed:
                    return
                removed = True
                # identity match, so a listener registered twice loses one entry
                for i, registered in enumerate(self._listeners):
                    if registered is listener:
                        del self._listeners[i]
                        break

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def replace(self, state: MachineState):
        """Swap in a whole new state (reset). Caller notifies."""
        with self.lock:
            self.state = state

    def notify(self):
        """Send each listener its own snapshot, in registration order."""
        with self.lock:
            listeners = list(self._listeners)
            for listener in listeners:
                listener(self.state.snapshot())
        logger.debug(f"Notified {len(listeners)} listener(s) at step "
                     f"{self.state.current_step}")
