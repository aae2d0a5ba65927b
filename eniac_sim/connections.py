"""
ENIAC Simulator — Connection Graph

Patch cables between named points. A point is any string: accumulator
ports ("acc1".."acc20"), switch ids, or fixed units such as "multiplier".
Unknown names are accepted and simply never match during execution.

Rules:
  - at most one cable per ordered (source, target) pair; a second
    request for the same pair is ignored
  - self-loops are allowed here (the programming panel filters them)
  - cables keep their id for life so they can be unplugged by id
"""

import logging
import re
import time
from typing import Optional

from .config import ACCUMULATOR_PORT_PREFIX
from .state import Connection
from .store import StateStore

logger = logging.getLogger(__name__)

_ACC_PORT = re.compile(rf"^{ACCUMULATOR_PORT_PREFIX}([1-9][0-9]*)$")


def accumulator_port_id(point: str) -> Optional[int]:
    """Accumulator id named by a patch point ('acc7' → 7), else None.

    Only the canonical spelling matches; 'acc07' is an ordinary point.
    """
    m = _ACC_PORT.match(point)
    return int(m.group(1)) if m else None


def is_accumulator_port(point: str) -> bool:
    return accumulator_port_id(point) is not None


class ConnectionGraph:

    def __init__(self, store: StateStore):
        self.store = store

    def _new_id(self, source: str, target: str) -> str:
        """``<source>-<target>-<ms timestamp>``, suffixed if already taken."""
        base = f"{source}-{target}-{int(time.time() * 1000)}"
        taken = {c.id for c in self.store.state.connections}
        conn_id = base
        n = 1
        while conn_id in taken:
            conn_id = f"{base}-{n}"
            n += 1
        return conn_id

    def find(self, source: str, target: str) -> Optional[Connection]:
        for conn in self.store.state.connections:
            if conn.source == source and conn.target == target:
                return conn
        return None

    def add(self, source: str, target: str) -> Optional[str]:
        """Plug in a cable. Returns the new id, or None for a duplicate."""
        with self.store.lock:
            if self.find(source, target) is not None:
                logger.debug(f"Ignored duplicate connection {source} -> {target}")
                return None
            conn = Connection(id=self._new_id(source, target),
                              source=source, target=target, active=True)
            self.store.state.connections.append(conn)
            self.store.notify()
        logger.debug(f"Connected {source} -> {target} [{conn.id}]")
        return conn.id

    def remove(self, connection_id: str) -> bool:
        """Unplug a cable by id. Notifies even when nothing was removed."""
        with self.store.lock:
            conns = self.store.state.connections
            kept = [c for c in conns if c.id != connection_id]
            removed = len(kept) != len(conns)
            self.store.state.connections = kept
            self.store.notify()
        if not removed:
            logger.debug(f"No connection with id '{connection_id}'")
        return removed
