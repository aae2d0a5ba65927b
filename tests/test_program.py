"""
Program document tests — export, tolerant import, malformed documents,
JSON text and file boundary.
"""

import json
from datetime import datetime, timezone

import pytest
from eniac_sim import (
    ENIACEngine, ProgramDocument, ProgramImportError,
    dumps_program, loads_program, save_program, load_program, default_filename,
)


def _fingerprint(engine):
    snap = engine.get_snapshot()
    return (
        [(s.id, s.label, s.position, s.max_position) for s in snap.switches],
        [(c.id, c.source, c.target, c.active) for c in snap.connections],
        [a.value for a in snap.accumulators],
    )


@pytest.fixture
def programmed():
    engine = ENIACEngine(highlight_delay=None)
    engine.set_switch_position('op1', 3)
    engine.set_switch_position('addr1', 4)
    engine.set_switch_position('timing1', 10)
    engine.add_connection('acc1', 'acc2')
    engine.add_connection('card_reader', 'acc5')
    for i, value in enumerate([5, -7, 0, 123456, 9_999_999_999], start=1):
        engine.set_accumulator_value(i, value)
    return engine


class TestExport:
    def test_fields(self, programmed):
        doc = programmed.export_program().to_dict()
        assert set(doc) == {"name", "description", "switches", "connections",
                            "initialData", "createdAt"}
        assert doc["name"] == "ENIAC Program"
        assert doc["description"] == "Exported ENIAC program state"
        assert doc["initialData"][:5] == [5, -7, 0, 123456, 9_999_999_999]
        assert len(doc["initialData"]) == 20

    def test_wire_names(self, programmed):
        doc = programmed.export_program().to_dict()
        assert doc["switches"][0] == {"id": "op1", "label": "Operation 1",
                                      "position": 3, "maxPosition": 9}
        conn = doc["connections"][0]
        assert (conn["from"], conn["to"], conn["active"]) == ("acc1", "acc2", True)

    def test_created_at(self, programmed):
        now = datetime(2026, 10, 17, 8, 30, 5, 123000, tzinfo=timezone.utc)
        doc = programmed.export_program(now=now)
        assert doc.created_at == "2026-10-17T08:30:05.123Z"

    def test_export_does_not_mutate_or_notify(self, programmed):
        before = _fingerprint(programmed)
        seen = []
        programmed.subscribe(seen.append)
        programmed.export_program()
        assert seen == []
        assert _fingerprint(programmed) == before

    def test_export_is_independent(self, programmed):
        doc = programmed.export_program()
        doc.switches[0].position = 0
        doc.connections.clear()
        assert programmed.get_snapshot().switches[0].position == 3
        assert len(programmed.get_snapshot().connections) == 2


class TestRoundTrip:
    def test_import_own_export(self, programmed):
        before = _fingerprint(programmed)
        programmed.import_program(programmed.export_program())
        assert _fingerprint(programmed) == before

    def test_through_json_into_fresh_engine(self, programmed):
        text = dumps_program(programmed.export_program())
        other = ENIACEngine(highlight_delay=None)
        other.import_program(loads_program(text))
        assert _fingerprint(other) == _fingerprint(programmed)

    def test_through_file(self, programmed, tmp_path):
        path = save_program(programmed.export_program(), tmp_path / "prog.json")
        other = ENIACEngine(highlight_delay=None)
        other.import_program(load_program(path))
        assert _fingerprint(other) == _fingerprint(programmed)

    def test_document_from_dict(self, programmed):
        raw = programmed.export_program().to_dict()
        doc = ProgramDocument.from_dict(raw)
        assert doc.to_dict() == raw


class TestTolerantImport:
    def test_missing_fields_leave_state(self, programmed):
        before = _fingerprint(programmed)
        programmed.import_program({})
        assert _fingerprint(programmed) == before

    def test_only_initial_data(self, programmed):
        switches, connections, _ = _fingerprint(programmed)
        programmed.import_program({"initialData": [1, 2]})
        after_switches, after_connections, values = _fingerprint(programmed)
        assert (after_switches, after_connections) == (switches, connections)
        assert values[:5] == [1, 2, 0, 123456, 9_999_999_999]

    def test_extra_entries_ignored(self):
        engine = ENIACEngine(highlight_delay=None)
        engine.import_program({"initialData": list(range(1, 26))})
        assert [a.value for a in engine.get_snapshot().accumulators] == list(range(1, 21))

    def test_values_clamped_with_digits(self):
        engine = ENIACEngine(highlight_delay=None)
        engine.import_program({"initialData": [10 ** 12, -(10 ** 12), 42]})
        accs = engine.get_snapshot().accumulators
        assert accs[0].value == 9_999_999_999 and accs[0].digits == [9] * 10
        assert accs[1].value == -9_999_999_999
        assert accs[2].digits[-2:] == [4, 2]

    def test_unknown_fields_ignored(self):
        engine = ENIACEngine(highlight_delay=None)
        engine.import_program({"initialData": [3], "theme": "dark", "version": 2})
        assert engine.get_snapshot().accumulators[0].value == 3

    def test_switches_replaced(self, programmed):
        programmed.import_program({"switches": [
            {"id": "op1", "label": "Operation 1", "position": 2, "maxPosition": 9},
        ]})
        switches = programmed.get_snapshot().switches
        assert [(s.id, s.position) for s in switches] == [("op1", 2)]

    def test_connections_replaced(self, programmed):
        programmed.import_program({"connections": [
            {"id": "x", "from": "acc9", "to": "printer", "active": True},
        ]})
        conns = programmed.get_snapshot().connections
        assert [(c.id, c.source, c.target) for c in conns] == [("x", "acc9", "printer")]

    def test_duplicate_cables_collapse(self):
        engine = ENIACEngine(highlight_delay=None)
        engine.import_program({"connections": [
            {"id": "a", "from": "acc1", "to": "acc2"},
            {"id": "b", "from": "acc1", "to": "acc2"},
        ]})
        assert [c.id for c in engine.get_snapshot().connections] == ["a"]

    def test_connection_without_id_gets_one(self):
        engine = ENIACEngine(highlight_delay=None)
        engine.import_program({"connections": [{"from": "acc1", "to": "acc2"}]})
        conn = engine.get_snapshot().connections[0]
        assert conn.id
        assert conn.active

    def test_single_notification(self, programmed):
        seen = []
        programmed.subscribe(seen.append)
        programmed.import_program(programmed.export_program().to_dict())
        assert len(seen) == 1

    def test_import_keeps_run_state_and_counters(self, programmed):
        programmed.start()
        programmed.execute_step()
        programmed.import_program({"initialData": [0]})
        snap = programmed.get_snapshot()
        assert snap.is_running
        assert snap.current_step == 1


class TestMalformedImport:
    @pytest.mark.parametrize("doc", [
        [],
        "program",
        42,
        None,
        {"switches": "op1"},
        {"switches": [{"label": "no id", "position": 0, "maxPosition": 9}]},
        {"switches": [{"id": "op1", "position": 12, "maxPosition": 9}]},
        {"switches": [{"id": "op1", "position": "1", "maxPosition": 9}]},
        {"switches": [{"id": "op1", "position": 0, "maxPosition": 9},
                      {"id": "op1", "position": 1, "maxPosition": 9}]},
        {"connections": [{"from": "acc1"}]},
        {"connections": ["acc1-acc2"]},
        {"connections": [{"from": "acc1", "to": "acc2", "active": "yes"}]},
        {"initialData": {"1": 5}},
        {"initialData": [1, "two", 3]},
        {"initialData": [1.5]},
        {"initialData": [True]},
    ])
    def test_rejected(self, programmed, doc):
        before = _fingerprint(programmed)
        seen = []
        programmed.subscribe(seen.append)
        with pytest.raises(ProgramImportError):
            programmed.import_program(doc)
        assert _fingerprint(programmed) == before
        assert seen == []

    def test_no_partial_application(self, programmed):
        """A bad field late in the document blocks the good ones before it."""
        before = _fingerprint(programmed)
        with pytest.raises(ProgramImportError) as exc:
            programmed.import_program({
                "switches": [{"id": "op1", "position": 1, "maxPosition": 9}],
                "connections": [],
                "initialData": [1, None],
            })
        assert exc.value.field == "initialData[1]"
        assert _fingerprint(programmed) == before

    def test_engine_usable_after_rejection(self, programmed):
        with pytest.raises(ProgramImportError):
            programmed.import_program({"initialData": "oops"})
        programmed.import_program({"initialData": [8]})
        assert programmed.get_snapshot().accumulators[0].value == 8


class TestTextBoundary:
    def test_loads(self):
        doc = loads_program('{"initialData": [1, 2, 3]}')
        assert doc == {"initialData": [1, 2, 3]}

    def test_loads_bytes(self):
        assert loads_program(b'{"name": "x"}') == {"name": "x"}

    @pytest.mark.parametrize("text", ["", "{", "not json", "[1, 2]", "null", '"text"'])
    def test_loads_rejects(self, text):
        with pytest.raises(ProgramImportError):
            loads_program(text)

    def test_loads_bytes_with_bom(self):
        assert loads_program(b'\xef\xbb\xbf{"initialData": [4]}') == {"initialData": [4]}

    def test_loads_rejects_bad_utf8(self):
        with pytest.raises(ProgramImportError):
            loads_program(b'\xff\xfe{}')

    def test_dumps_indented(self, programmed):
        text = dumps_program(programmed.export_program())
        assert text.startswith('{\n  "name": "ENIAC Program"')
        assert json.loads(text)["initialData"][0] == 5

    def test_default_filename(self):
        when = datetime(2026, 10, 17, tzinfo=timezone.utc)
        assert default_filename(when) == "eniac-program-2026-10-17.json"
