"""
ENIAC Simulator — Machine Configuration
========================================

Fixed dimensions of the simulated machine, the factory switch panel,
and the patch-point catalog offered by the programming panel.

Numbers here follow the educational model, not the 1946 hardware:
  - 20 accumulators of 10 decimal digits plus sign
  - one cycle counted every 10 steps
  - multiply / divide scaled by 1000 to keep magnitudes bounded
"""

from typing import List, Tuple

# =============================================================================
#  ACCUMULATORS
# =============================================================================
ACCUMULATOR_COUNT = 20
DIGIT_COUNT = 10
VALUE_LIMIT = 9_999_999_999     # ±(10^10 - 1), magnitude of a full register

ACCUMULATOR_PORT_PREFIX = "acc"  # patch point "acc7" → accumulator 7


# =============================================================================
#  TIMING
# =============================================================================
STEPS_PER_CYCLE = 10
HIGHLIGHT_DELAY_S = 0.5         # active lamps stay lit this long after a step
RUN_INTERVAL_S = 1.0            # continuous-run tick used by the interval driver


# =============================================================================
#  ARITHMETIC (selected by switch op1)
# =============================================================================
OP_ADD = 1
OP_SUBTRACT = 2
OP_MULTIPLY = 3
OP_DIVIDE = 4

ARITHMETIC_SCALE = 1000

# Switches read by the switch-driven fallback
OPERATION_SWITCH = "op1"
DESTINATION_SWITCH = "addr1"
SOURCE_SWITCH = "addr2"


# =============================================================================
#  SWITCH PANEL (factory defaults)
# =============================================================================
DEFAULT_SWITCHES = [
    # (id,       label,         max_position)
    ("op1",     "Operation 1",  9),
    ("op2",     "Operation 2",  9),
    ("op3",     "Operation 3",  9),
    ("addr1",   "Address 1",    19),
    ("addr2",   "Address 2",    19),
    ("addr3",   "Address 3",    19),
    ("timing1", "Timing 1",     10),
    ("timing2", "Timing 2",     10),
]


# =============================================================================
#  PATCH POINTS
#  Units other than accumulators are inert for arithmetic, but a cable to
#  any of them still counts as an active connection.
# =============================================================================
FIXED_UNITS = [
    ("master_programmer",    "Master Programmer"),
    ("multiplier",           "Multiplier"),
    ("divider",              "Divider/Square Rooter"),
    ("function_table_1",     "Function Table 1"),
    ("function_table_2",     "Function Table 2"),
    ("function_table_3",     "Function Table 3"),
    ("printer",              "Printer"),
    ("card_reader",          "Card Reader"),
    ("constant_transmitter", "Constant Transmitter"),
]


# =============================================================================
#  PROGRAM DOCUMENTS
# =============================================================================
PROGRAM_NAME = "ENIAC Program"
PROGRAM_DESCRIPTION = "Exported ENIAC program state"
PROGRAM_FILENAME = "eniac-program-{date}.json"


def accumulator_port(acc_id: int) -> str:
    """Patch-point name of an accumulator (1 → 'acc1')."""
    return f"{ACCUMULATOR_PORT_PREFIX}{acc_id}"


def connection_points(switches=None) -> List[Tuple[str, str]]:
    """Every patch point the programming panel offers, as (id, label).

    Order: accumulators, then switches, then fixed units. ``switches`` is
    an iterable of Switch objects; the factory panel is used when omitted.
    """
    points = [(accumulator_port(i), f"Accumulator {i}")
              for i in range(1, ACCUMULATOR_COUNT + 1)]
    if switches is None:
        points.extend((sid, label) for sid, label, _ in DEFAULT_SWITCHES)
    else:
        points.extend((sw.id, sw.label) for sw in switches)
    points.extend(FIXED_UNITS)
    return points
