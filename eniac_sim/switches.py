"""
ENIAC Simulator — Switch Registry

Position writes are bounds-checked against the switch's own range.
Unknown switch ids and out-of-range positions are dropped without a
state change or notification, like turning a knob past its stop.
"""

import logging

from .store import StateStore

logger = logging.getLogger(__name__)


class SwitchRegistry:

    def __init__(self, store: StateStore):
        self.store = store

    def set_position(self, switch_id: str, position: int) -> bool:
        """Set a switch position. Returns True if the switch moved."""
        with self.store.lock:
            sw = self.store.state.switch(switch_id)
            if sw is None:
                logger.debug(f"Ignored position for unknown switch '{switch_id}'")
                return False
            if (not isinstance(position, int) or isinstance(position, bool)
                    or not sw.accepts(position)):
                logger.debug(f"Ignored {switch_id}={position}: "
                             f"outside 0..{sw.max_position}")
                return False
            sw.position = position
            self.store.notify()
        return True
