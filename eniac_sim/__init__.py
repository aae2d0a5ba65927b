"""
ENIAC Simulator Engine
======================
Simulation core of an educational model of the ENIAC: 20 decimal
accumulators, a panel of rotary switches and a plugboard of patch cables,
advanced one step at a time.

Architecture:
    ┌─────────────┐   commands    ┌──────────────────────────────────────┐
    │ UI / CLI /  │──────────────>│ ENIACEngine                          │
    │ tests       │               │  ├─ SwitchRegistry   (switches.py)   │
    │             │<──────────────│  ├─ ConnectionGraph  (connections.py)│
    └─────────────┘   snapshots   │  ├─ ExecutionUnit    (executor.py)   │
                                  │  └─ StateStore       (store.py)      │
                                  └──────────────────────────────────────┘
                                        │ export / import
                                        v
                                  ProgramDocument (program.py, JSON)

    - state.py:       Accumulator / Switch / Connection / MachineState
    - config.py:      machine dimensions, factory switches, patch points
    - driver.py:      fixed-interval run driver (owned by the caller)
"""

__version__ = "1.0.0"

from .config import connection_points
from .connections import accumulator_port_id, is_accumulator_port
from .driver import IntervalDriver
from .engine import ENIACEngine, StopReason
from .program import (
    ProgramDocument, ProgramImportError,
    dumps_program, loads_program, save_program, load_program, default_filename,
)
from .state import (
    Accumulator, Switch, Connection, MachineState,
    clamp_value, value_to_digits, digits_to_value, format_state,
)

__all__ = [
    'ENIACEngine', 'StopReason', 'IntervalDriver',
    'Accumulator', 'Switch', 'Connection', 'MachineState',
    'ProgramDocument', 'ProgramImportError',
    'dumps_program', 'loads_program', 'save_program', 'load_program',
    'default_filename', 'connection_points',
    'accumulator_port_id', 'is_accumulator_port',
    'clamp_value', 'value_to_digits', 'digits_to_value', 'format_state',
]
