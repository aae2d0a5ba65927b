"""
ENIAC Simulator — Machine State Model

Register model:
  Accumulators  — 20 signed decimal registers, 10 digits each.
                  value is clamped to ±9,999,999,999; digits is the
                  zero-padded expansion of abs(value), MSD first.
  Switches      — 8 bounded rotary controls, 0..max_position inclusive.
  Connections   — directed patch cables between named points, in the
                  order they were plugged in.
  Counters      — current_step, program_counter (mirrors current_step),
                  cycle_count (one per STEPS_PER_CYCLE steps).

Everything handed to a consumer is a deep copy made by snapshot().
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List

from .config import (
    ACCUMULATOR_COUNT, DIGIT_COUNT, VALUE_LIMIT, DEFAULT_SWITCHES,
)


def clamp_value(value: int) -> int:
    """Clamp a register value to ±VALUE_LIMIT."""
    return max(-VALUE_LIMIT, min(VALUE_LIMIT, value))


def value_to_digits(value: int) -> List[int]:
    """Decimal expansion of abs(value), zero-padded to DIGIT_COUNT, MSD first.

    Magnitudes wider than the register keep their low-order digits; a
    clamped value never needs that.
    """
    text = str(abs(value)).zfill(DIGIT_COUNT)[-DIGIT_COUNT:]
    return [int(ch) for ch in text]


def digits_to_value(digits: List[int]) -> int:
    """Read a digit sequence back as an unsigned base-10 number."""
    result = 0
    for d in digits:
        result = result * 10 + d
    return result


@dataclass
class Accumulator:
    """One numbered decimal register."""
    id: int
    value: int = 0
    digits: List[int] = field(default_factory=lambda: [0] * DIGIT_COUNT)
    is_active: bool = False

    def assign(self, value: int):
        """Store a clamped value and refresh the digit cache."""
        self.value = clamp_value(int(value))
        self.digits = value_to_digits(self.value)

    def zero(self):
        self.value = 0
        self.digits = [0] * DIGIT_COUNT
        self.is_active = False

    @property
    def sign(self) -> str:
        return '-' if self.value < 0 else '+'


@dataclass
class Switch:
    """A rotary configuration switch. Position range is 0..max_position."""
    id: str
    label: str
    position: int = 0
    max_position: int = 9

    def accepts(self, position: int) -> bool:
        return 0 <= position <= self.max_position


@dataclass
class Connection:
    """A directed patch cable. ``source``/``target`` are opaque point ids."""
    id: str
    source: str
    target: str
    active: bool = True


@dataclass
class MachineState:
    accumulators: List[Accumulator]
    switches: List[Switch]
    connections: List[Connection] = field(default_factory=list)
    is_running: bool = False
    current_step: int = 0
    program_counter: int = 0
    cycle_count: int = 0

    def accumulator(self, acc_id: int):
        """Accumulator with the given 1-based id, or None."""
        for acc in self.accumulators:
            if acc.id == acc_id:
                return acc
        return None

    def switch(self, switch_id: str):
        for sw in self.switches:
            if sw.id == switch_id:
                return sw
        return None

    def switch_position(self, switch_id: str) -> int:
        """Position of a switch; a missing switch reads as 0."""
        sw = self.switch(switch_id)
        return sw.position if sw is not None else 0

    def snapshot(self) -> MachineState:
        """Independent deep copy, safe to hand out."""
        return copy.deepcopy(self)


def default_accumulators() -> List[Accumulator]:
    return [Accumulator(id=i) for i in range(1, ACCUMULATOR_COUNT + 1)]


def default_switches() -> List[Switch]:
    return [Switch(id=sid, label=label, max_position=max_pos)
            for sid, label, max_pos in DEFAULT_SWITCHES]


def initial_state() -> MachineState:
    """Power-on state: zeroed registers, factory switches, no cables."""
    return MachineState(
        accumulators=default_accumulators(),
        switches=default_switches(),
    )


def format_state(state: MachineState) -> str:
    """Render the machine panel as text (one accumulator per row)."""
    mode = "RUNNING" if state.is_running else "STOPPED"
    lines = [
        f"{mode}  step={state.current_step} pc={state.program_counter} "
        f"cycle={state.cycle_count}",
        "",
    ]
    for acc in state.accumulators:
        digits = ''.join(str(d) for d in acc.digits)
        lamp = " *" if acc.is_active else ""
        lines.append(f"  A{acc.id:02d} {acc.sign}{digits}{lamp}")

    lines.append("")
    lines.append("  " + "  ".join(
        f"{sw.id}={sw.position}/{sw.max_position}" for sw in state.switches))

    if state.connections:
        lines.append("")
        for conn in state.connections:
            flag = "" if conn.active else " (off)"
            lines.append(f"  {conn.source} -> {conn.target}  [{conn.id}]{flag}")
    return '\n'.join(lines)
