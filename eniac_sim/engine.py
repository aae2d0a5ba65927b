"""
ENIAC Simulator — Engine Facade

Integrates the State Store, Switch Registry, Connection Graph,
Execution Unit and program documents behind one command surface.

Usage:
    engine = ENIACEngine()
    engine.set_switch_position('op1', 1)      # ADD
    engine.set_switch_position('addr2', 1)    # acc1 += acc2
    engine.set_accumulator_value(1, 5)
    engine.set_accumulator_value(2, 7)
    engine.start()
    engine.execute_step()
    engine.get_snapshot().accumulators[0].value   # 12

Every mutating command finishes, then sends each subscriber a fresh
snapshot. Rejected commands (unknown ids, out-of-range positions,
duplicate cables) change nothing and send nothing. The engine owns no
run timer; see driver.IntervalDriver for continuous running.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .config import HIGHLIGHT_DELAY_S
from .connections import ConnectionGraph
from .executor import ExecutionUnit
from .program import ProgramDocument, export_program, parse_program
from .state import MachineState, initial_state
from .store import StateStore
from .switches import SwitchRegistry

logger = logging.getLogger(__name__)

_DEFAULT = object()


class StopReason(Enum):
    STEPS = 'STEPS'       # max_steps executed
    STOPPED = 'STOPPED'   # machine stopped (by a listener or another thread)


class ENIACEngine:
    """One simulated machine.

    Args:
        highlight_delay: seconds the accumulator lamps stay lit after a
            step before being cleared with a second notification.
            ``None`` leaves the lamps lit until clear_activity() is called.
    """

    def __init__(self, highlight_delay=_DEFAULT):
        if highlight_delay is _DEFAULT:
            highlight_delay = HIGHLIGHT_DELAY_S
        self.store = StateStore()
        self.switches = SwitchRegistry(self.store)
        self.connections = ConnectionGraph(self.store)
        self.executor = ExecutionUnit(self.store, highlight_delay=highlight_delay)

    # ══════════════════════════════════════════════
    # State access
    # ══════════════════════════════════════════════

    def get_snapshot(self) -> MachineState:
        return self.store.get_snapshot()

    def subscribe(self, listener: Callable[[MachineState], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    @property
    def is_running(self) -> bool:
        with self.store.lock:
            return self.store.state.is_running

    # ══════════════════════════════════════════════
    # Configuration commands
    # ══════════════════════════════════════════════

    def set_switch_position(self, switch_id: str, position: int) -> bool:
        return self.switches.set_position(switch_id, position)

    def add_connection(self, source: str, target: str) -> Optional[str]:
        return self.connections.add(source, target)

    def remove_connection(self, connection_id: str) -> bool:
        return self.connections.remove(connection_id)

    def set_accumulator_value(self, acc_id: int, value: int) -> bool:
        """Load a register by 1-based id. Unknown ids are ignored."""
        with self.store.lock:
            acc = self.store.state.accumulator(acc_id)
            if acc is None:
                logger.debug(f"Ignored value for unknown accumulator {acc_id}")
                return False
            acc.assign(value)
            self.store.notify()
        return True

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def start(self):
        self.executor.start()

    def stop(self):
        self.executor.stop()

    def execute_step(self) -> bool:
        """One machine step; a no-op returning False while stopped."""
        return self.executor.step()

    def clear_activity(self):
        self.executor.clear_activity()

    def run(self, max_steps: int) -> StopReason:
        """Start the machine and step until max_steps or until stopped.

        Synchronous counterpart of IntervalDriver, for scripts and tests.
        """
        self.start()
        for _ in range(max_steps):
            if not self.execute_step():
                return StopReason.STOPPED
        return StopReason.STEPS

    # ══════════════════════════════════════════════
    # Reset
    # ══════════════════════════════════════════════

    def reset(self):
        """Back to power-on state: zeroed registers, factory switches,
        no cables, counters zeroed, stopped."""
        with self.store.lock:
            self.store.replace(initial_state())
            self.store.notify()
        logger.info("Machine reset")

    def clear(self):
        """Zero registers and counters. Switches, cables and the run flag stay."""
        with self.store.lock:
            state = self.store.state
            for acc in state.accumulators:
                acc.zero()
            state.current_step = 0
            state.program_counter = 0
            state.cycle_count = 0
            self.store.notify()

    # ══════════════════════════════════════════════
    # Program documents
    # ══════════════════════════════════════════════

    def export_program(self, now: Optional[datetime] = None) -> ProgramDocument:
        with self.store.lock:
            return export_program(self.store.state, now)

    def import_program(self, doc):
        """Load a program document (mapping or ProgramDocument).

        Raises ProgramImportError for a malformed document, in which case
        the machine is untouched.
        """
        update = parse_program(doc)
        with self.store.lock:
            state = self.store.state
            if update.switches is not None:
                state.switches = update.switches
            if update.connections is not None:
                state.connections = update.connections
            if update.initial_data is not None:
                for acc, value in zip(state.accumulators, update.initial_data):
                    acc.assign(value)
            self.store.notify()
        applied = [name for name, part in (("switches", update.switches),
                                           ("connections", update.connections),
                                           ("initialData", update.initial_data))
                   if part is not None]
        logger.info(f"Imported program ({', '.join(applied) or 'no fields'})")

    # ══════════════════════════════════════════════
    # Lifetime
    # ══════════════════════════════════════════════

    def close(self):
        """Cancel lamp timers still waiting to fire."""
        self.executor.cancel_pending()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
