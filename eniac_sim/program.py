"""
ENIAC Simulator — Program Documents
====================================

A program document is the portable projection of a machine setup:

  {
    "name":        "ENIAC Program",
    "description": "Exported ENIAC program state",
    "switches":    [{"id", "label", "position", "maxPosition"}, ...],
    "connections": [{"id", "from", "to", "active"}, ...],
    "initialData": [20 register values, accumulator 1 first],
    "createdAt":   "2026-10-17T12:00:00.000Z"
  }

Digit caches and lamp states are not stored; they are rebuilt from the
raw values on import.

Import is tolerant of missing or extra top-level fields: each of
switches / connections / initialData is applied only if present.
A document that is present but malformed (bad JSON, wrong shapes,
switch positions out of range) raises ProgramImportError, and is fully
validated before anything is applied, so a failed import never leaves
the machine half-loaded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .config import (
    PROGRAM_NAME, PROGRAM_DESCRIPTION, PROGRAM_FILENAME,
)
from .state import Connection, MachineState, Switch

__all__ = [
    'ProgramDocument', 'ProgramImportError', 'ProgramUpdate',
    'export_program', 'parse_program', 'dumps_program', 'loads_program',
    'save_program', 'load_program', 'default_filename',
]


class ProgramImportError(Exception):
    """Raised when an import document cannot be understood."""
    def __init__(self, message: str, field: str = ""):
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


def _timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and 'Z' suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + \
        f"{now.microsecond // 1000:03d}Z"


# ──────────────────────────────────────────────
# Document model
# ──────────────────────────────────────────────

def switch_to_dict(sw: Switch) -> Dict[str, Any]:
    return {
        "id": sw.id,
        "label": sw.label,
        "position": sw.position,
        "maxPosition": sw.max_position,
    }


def connection_to_dict(conn: Connection) -> Dict[str, Any]:
    return {
        "id": conn.id,
        "from": conn.source,
        "to": conn.target,
        "active": conn.active,
    }


@dataclass
class ProgramDocument:
    name: str = PROGRAM_NAME
    description: str = PROGRAM_DESCRIPTION
    switches: List[Switch] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    initial_data: List[int] = field(default_factory=list)
    created_at: str = field(default_factory=_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "switches": [switch_to_dict(sw) for sw in self.switches],
            "connections": [connection_to_dict(c) for c in self.connections],
            "initialData": list(self.initial_data),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> ProgramDocument:
        """Build a full document; absent fields take their defaults."""
        update = parse_program(doc)
        return cls(
            name=str(doc.get("name", PROGRAM_NAME)),
            description=str(doc.get("description", PROGRAM_DESCRIPTION)),
            switches=update.switches or [],
            connections=update.connections or [],
            initial_data=update.initial_data or [],
            created_at=str(doc.get("createdAt", _timestamp())),
        )


@dataclass
class ProgramUpdate:
    """Validated fields of an import. None means 'not in the document'."""
    switches: Optional[List[Switch]] = None
    connections: Optional[List[Connection]] = None
    initial_data: Optional[List[int]] = None


def export_program(state: MachineState, now: Optional[datetime] = None) -> ProgramDocument:
    """Project a machine state into a fresh, independent program document."""
    snap = state.snapshot()
    return ProgramDocument(
        switches=snap.switches,
        connections=snap.connections,
        initial_data=[acc.value for acc in snap.accumulators],
        created_at=_timestamp(now),
    )


# ──────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_list(doc: Mapping[str, Any], key: str) -> Optional[list]:
    if key not in doc or doc[key] is None:
        return None
    value = doc[key]
    if not isinstance(value, list):
        raise ProgramImportError(f"expected a list, got {type(value).__name__}", key)
    return value


def _parse_switch(entry, index: int) -> Switch:
    where = f"switches[{index}]"
    if not isinstance(entry, Mapping):
        raise ProgramImportError("expected an object", where)
    sid = entry.get("id")
    if not isinstance(sid, str) or not sid:
        raise ProgramImportError("missing switch id", where)
    position = entry.get("position", 0)
    max_position = entry.get("maxPosition")
    if not _is_int(position) or not _is_int(max_position):
        raise ProgramImportError("position and maxPosition must be integers", where)
    if max_position < 0 or not 0 <= position <= max_position:
        raise ProgramImportError(
            f"position {position} outside 0..{max_position}", where)
    label = entry.get("label", sid)
    return Switch(id=sid, label=str(label), position=position,
                  max_position=max_position)


def _parse_connection(entry, index: int) -> Connection:
    where = f"connections[{index}]"
    if not isinstance(entry, Mapping):
        raise ProgramImportError("expected an object", where)
    source, target = entry.get("from"), entry.get("to")
    if not isinstance(source, str) or not isinstance(target, str):
        raise ProgramImportError("'from' and 'to' must be strings", where)
    conn_id = entry.get("id")
    if conn_id is None:
        conn_id = f"{source}-{target}-{index}"
    active = entry.get("active", True)
    if not isinstance(active, bool):
        raise ProgramImportError("'active' must be a boolean", where)
    return Connection(id=str(conn_id), source=source, target=target, active=active)


def parse_program(doc) -> ProgramUpdate:
    """Validate an import document without touching any machine.

    Duplicate (from, to) pairs and repeated ids keep their first entry,
    matching the rule that a second identical cable is ignored.
    """
    if isinstance(doc, ProgramDocument):
        doc = doc.to_dict()
    if not isinstance(doc, Mapping):
        raise ProgramImportError(
            f"program must be an object, got {type(doc).__name__}")

    update = ProgramUpdate()

    raw = _require_list(doc, "switches")
    if raw is not None:
        switches = []
        seen = set()
        for i, entry in enumerate(raw):
            sw = _parse_switch(entry, i)
            if sw.id in seen:
                raise ProgramImportError(f"duplicate switch id '{sw.id}'", f"switches[{i}]")
            seen.add(sw.id)
            switches.append(sw)
        update.switches = switches

    raw = _require_list(doc, "connections")
    if raw is not None:
        connections = []
        pairs, ids = set(), set()
        for i, entry in enumerate(raw):
            conn = _parse_connection(entry, i)
            if (conn.source, conn.target) in pairs or conn.id in ids:
                continue
            pairs.add((conn.source, conn.target))
            ids.add(conn.id)
            connections.append(conn)
        update.connections = connections

    raw = _require_list(doc, "initialData")
    if raw is not None:
        for i, value in enumerate(raw):
            if not _is_int(value):
                raise ProgramImportError("register values must be integers",
                                         f"initialData[{i}]")
        update.initial_data = list(raw)

    return update


# ──────────────────────────────────────────────
# Text / file boundary
# ──────────────────────────────────────────────

def dumps_program(doc: ProgramDocument) -> str:
    return json.dumps(doc.to_dict(), indent=2)


def loads_program(text) -> Dict[str, Any]:
    """Decode JSON text into a raw document mapping (not yet validated)."""
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ProgramImportError(f"not UTF-8 text: {e}") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProgramImportError(f"invalid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ProgramImportError(
            f"program must be a JSON object, got {type(doc).__name__}")
    return doc


def save_program(doc: ProgramDocument, path) -> Path:
    path = Path(path)
    path.write_text(dumps_program(doc) + "\n", encoding="utf-8")
    return path


def load_program(path) -> Dict[str, Any]:
    return loads_program(Path(path).read_bytes())


def default_filename(now: Optional[datetime] = None) -> str:
    """Download name for an exported program: eniac-program-YYYY-MM-DD.json"""
    now = now or datetime.now(timezone.utc)
    return PROGRAM_FILENAME.format(date=now.strftime("%Y-%m-%d"))
