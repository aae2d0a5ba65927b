"""
ENIAC Simulator — Execution Unit

One call to step() is one machine step:
  1. Do nothing unless the machine is running
  2. Extinguish every accumulator lamp
  3. Cable-driven path: if any active cable exists, light both ends of
     every accumulator-to-accumulator cable (no value moves)
  4. Switch-driven path (no active cables): op1 selects an operation on
     accumulators[addr1] and accumulators[addr2], result into addr1
  5. Advance current_step / program_counter, cycle_count every 10 steps
  6. Notify with the lamps still lit
  7. After the highlight delay, extinguish the lamps and notify again

Operations (op1):
  1  ADD   acc1 = acc1 + acc2
  2  SUB   acc1 = acc1 - acc2
  3  MUL   acc1 = floor(acc1 * acc2 / 1000)
  4  DIV   acc1 = floor(acc1 * 1000 / acc2), skipped when acc2 == 0
  *  —     registers lit, no arithmetic

Cable-driven steps never do arithmetic; only the lamps follow the wiring.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from .config import (
    STEPS_PER_CYCLE, ARITHMETIC_SCALE,
    OP_ADD, OP_SUBTRACT, OP_MULTIPLY, OP_DIVIDE,
    OPERATION_SWITCH, DESTINATION_SWITCH, SOURCE_SWITCH,
)
from .connections import accumulator_port_id
from .state import MachineState
from .store import StateStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════
# Arithmetic
# ══════════════════════════════════════════════
# Each handler takes (acc1, acc2) register values and returns the new
# acc1 value, or None to leave acc1 untouched. Clamping happens after.

def op_add(a: int, b: int) -> Optional[int]:
    return a + b


def op_subtract(a: int, b: int) -> Optional[int]:
    return a - b


def op_multiply(a: int, b: int) -> Optional[int]:
    return (a * b) // ARITHMETIC_SCALE


def op_divide(a: int, b: int) -> Optional[int]:
    if b == 0:
        return None
    return (a * ARITHMETIC_SCALE) // b


OPERATIONS: Dict[int, Callable[[int, int], Optional[int]]] = {
    OP_ADD:      op_add,
    OP_SUBTRACT: op_subtract,
    OP_MULTIPLY: op_multiply,
    OP_DIVIDE:   op_divide,
}


class ExecutionUnit:
    """Step logic plus the Stopped/Running flag and lamp timers."""

    def __init__(self, store: StateStore, highlight_delay: Optional[float] = None):
        self.store = store
        self.highlight_delay = highlight_delay
        self._pending: List[threading.Timer] = []

    # ══════════════════════════════════════════════
    # Run control
    # ══════════════════════════════════════════════

    def start(self):
        with self.store.lock:
            self.store.state.is_running = True
            self.store.notify()

    def stop(self):
        with self.store.lock:
            self.store.state.is_running = False
            self.store.notify()

    # ══════════════════════════════════════════════
    # Step
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one step. Returns False when stopped (nothing happened)."""
        with self.store.lock:
            state = self.store.state
            if not state.is_running:
                return False

            for acc in state.accumulators:
                acc.is_active = False

            cables = [c for c in state.connections if c.active]
            if cables:
                self._light_cables(state, cables)
            else:
                self._switch_operation(state)

            state.current_step += 1
            state.program_counter += 1
            if state.current_step % STEPS_PER_CYCLE == 0:
                state.cycle_count += 1

            # arm the clear before listeners run
            if self.highlight_delay is not None:
                self._schedule_clear(self.highlight_delay)
            self.store.notify()
        return True

    def _light_cables(self, state: MachineState, cables):
        for conn in cables:
            src = state.accumulator(accumulator_port_id(conn.source))
            dst = state.accumulator(accumulator_port_id(conn.target))
            if src is not None and dst is not None:
                src.is_active = True
                dst.is_active = True

    def _switch_operation(self, state: MachineState):
        op = state.switch_position(OPERATION_SWITCH)
        addr1 = state.switch_position(DESTINATION_SWITCH)
        addr2 = state.switch_position(SOURCE_SWITCH)

        count = len(state.accumulators)
        if not (0 <= addr1 < count and 0 <= addr2 < count):
            logger.debug(f"Switch fallback skipped: address {addr1}/{addr2} "
                         f"outside 0..{count - 1}")
            return
        acc1 = state.accumulators[addr1]
        acc2 = state.accumulators[addr2]
        acc1.is_active = True
        acc2.is_active = True

        handler = OPERATIONS.get(op)
        if handler is None:
            return
        result = handler(acc1.value, acc2.value)
        if result is None:
            logger.debug(f"Division by zero skipped (A{acc2.id:02d} is 0)")
            return
        acc1.assign(result)

    # ══════════════════════════════════════════════
    # Lamps
    # ══════════════════════════════════════════════

    def clear_activity(self):
        """Extinguish all accumulator lamps and notify."""
        with self.store.lock:
            for acc in self.store.state.accumulators:
                acc.is_active = False
            self.store.notify()

    def _schedule_clear(self, delay: float):
        timer = threading.Timer(delay, self._fire_clear)
        timer.daemon = True
        with self.store.lock:
            self._pending = [t for t in self._pending if t.is_alive()]
            self._pending.append(timer)
        timer.start()

    def _fire_clear(self):
        self.clear_activity()

    @property
    def pending_clears(self) -> int:
        with self.store.lock:
            return sum(1 for t in self._pending if t.is_alive())

    def cancel_pending(self):
        """Cancel lamp timers that have not fired yet."""
        with self.store.lock:
            timers, self._pending = self._pending, []
        for t in timers:
            t.cancel()
        if timers:
            logger.debug(f"Cancelled {len(timers)} pending lamp timer(s)")
