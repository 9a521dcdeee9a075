"""Tests for quadtags/undo.py — undo/redo of quadrant moves."""

from dataclasses import replace

from quadtags.classifier import quadrant
from quadtags.engine import MatrixEngine
from quadtags.models import PRIORITY_HIGH, TaskRecord
from quadtags.store import MemoryTaskStore
from quadtags.undo import TOGGLE_ACTION, FieldCommand, FieldSnapshot, UndoStack


def _snap(notes):
    return FieldSnapshot(priority_flag=0, due_date=None, notes=notes)


def test_snapshot_captures_and_restores():
    r = TaskRecord(id="a", notes="#urgent", priority_flag=PRIORITY_HIGH, due_date="2026-10-30")
    snap = FieldSnapshot.capture(r)
    r.notes, r.priority_flag, r.due_date = None, 0, None
    snap.restore(r)
    assert (r.notes, r.priority_flag, r.due_date) == ("#urgent", PRIORITY_HIGH, "2026-10-30")


def test_stack_push_clears_redo_and_caps_history():
    stack = UndoStack(limit=3)
    stack.redo_items.append(FieldCommand("x", _snap(None), _snap("#urgent")))
    for i in range(5):
        stack.push(FieldCommand(str(i), _snap(None), _snap("#urgent")))
    assert not stack.can_redo()
    assert [c.record_id for c in stack.undo_items] == ["2", "3", "4"]
    assert stack.undo_name() == TOGGLE_ACTION


def test_undo_and_redo_quadrant_move(engine, store):
    assert engine.drop_on_quadrant("milk", 1) == []
    assert quadrant(engine.find("milk")) == 1

    assert engine.undo() == []
    assert store.get("milk").notes == "#important"
    assert engine.undo_stack.can_redo()

    assert engine.redo() == []
    assert store.get("milk").notes == "#important #urgent"
    assert engine.undo_stack.can_undo()
    assert not engine.undo_stack.can_redo()


def test_drop_to_same_quadrant_registers_nothing(engine):
    engine.drop_on_quadrant("milk", 2)
    assert not engine.undo_stack.can_undo()


def test_undo_preserves_priority_and_due_date(engine, store):
    engine.drop_on_quadrant("tickets", 4)
    engine.undo()
    r = store.get("tickets")
    assert r.notes == "#i-trip #urgent"
    assert r.due_date == "2026-10-20"


def test_toggle_many_unwinds_in_reverse():
    store = MemoryTaskStore([TaskRecord(id="a", notes="x"), TaskRecord(id="b", notes="y")])
    e = MatrixEngine(store)
    e.refresh()
    e.history.toggle_many(list(e.records), important=False, urgent=True)
    assert store.get("a").notes == "x #urgent"
    assert store.get("b").notes == "y #urgent"

    e.undo()
    assert store.get("b").notes == "y"
    assert store.get("a").notes == "x #urgent"
    e.undo()
    assert store.get("a").notes == "x"
    assert not e.undo_stack.can_undo()


def test_undo_of_vanished_record_is_dropped(engine, store):
    engine.drop_on_quadrant("milk", 1)
    store.put(replace(store.get("milk"), completed=True))
    engine.refresh()

    errors = engine.undo()
    assert errors == ["Record not found: milk"]
    assert not engine.undo_stack.can_undo()
    assert not engine.undo_stack.can_redo()


def test_undo_without_persist_stays_in_memory(engine, store):
    before = store.save_count
    record = engine.find("call")
    engine.history.toggle_importance_and_urgency(record, True, False, persist=False)
    assert engine.find("call").notes == "#important"

    engine.undo()
    assert engine.find("call").notes is None
    assert store.save_count == before


def test_undo_on_empty_stack_is_noop(engine):
    assert engine.undo() == []
    assert engine.redo() == []


def test_new_action_discards_redo(engine):
    engine.drop_on_quadrant("milk", 1)
    engine.undo()
    engine.drop_on_quadrant("call", 3)
    assert not engine.undo_stack.can_redo()
    assert engine.undo_stack.undo_items[-1].record_id == "call"
