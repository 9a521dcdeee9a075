"""Undo/redo for QuadTags marker mutations.

Each mutation is recorded as a FieldCommand holding the record id plus
copies of the fields before and after the change. Commands never keep a
reference to a record object: the store hands out fresh objects on every
fetch, so the record is looked up by id when the command is replayed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from quadtags.models import TaskRecord
from quadtags.mutator import TagMutator

logger = logging.getLogger(__name__)

TOGGLE_ACTION = "Modify Reminder Tags"


@dataclass(frozen=True)
class FieldSnapshot:
    """The fields an undo restores."""

    priority_flag: int
    due_date: str | None
    notes: str | None

    @classmethod
    def capture(cls, record: TaskRecord) -> FieldSnapshot:
        return cls(priority_flag=record.priority_flag, due_date=record.due_date, notes=record.notes)

    def restore(self, record: TaskRecord) -> None:
        record.priority_flag = self.priority_flag
        record.due_date = self.due_date
        record.notes = self.notes


@dataclass(frozen=True)
class FieldCommand:
    record_id: str
    before: FieldSnapshot
    after: FieldSnapshot
    action_name: str = TOGGLE_ACTION
    persist: bool = True

    def apply(self, record: TaskRecord) -> None:
        self.after.restore(record)

    def unapply(self, record: TaskRecord) -> None:
        self.before.restore(record)


@dataclass
class UndoStack:
    """Caller-owned history; a new push discards the redo branch."""

    undo_items: list[FieldCommand] = field(default_factory=list)
    redo_items: list[FieldCommand] = field(default_factory=list)
    limit: int = 100

    def push(self, command: FieldCommand) -> None:
        self.undo_items.append(command)
        if len(self.undo_items) > self.limit:
            del self.undo_items[0]
        self.redo_items.clear()

    def can_undo(self) -> bool:
        return bool(self.undo_items)

    def can_redo(self) -> bool:
        return bool(self.redo_items)

    def pop_undo(self) -> FieldCommand | None:
        return self.undo_items.pop() if self.undo_items else None

    def pop_redo(self) -> FieldCommand | None:
        return self.redo_items.pop() if self.redo_items else None

    def undo_name(self) -> str | None:
        return self.undo_items[-1].action_name if self.undo_items else None

    def redo_name(self) -> str | None:
        return self.redo_items[-1].action_name if self.redo_items else None

    def clear(self) -> None:
        self.undo_items.clear()
        self.redo_items.clear()


class UndoCoordinator:
    """Runs mutations through the TagMutator and records their inverse."""

    def __init__(
        self,
        mutator: TagMutator,
        stack: UndoStack,
        resolve: Callable[[str], TaskRecord | None],
    ) -> None:
        self.mutator = mutator
        self.stack = stack
        self._resolve = resolve

    def run(
        self,
        record: TaskRecord,
        action_name: str,
        operation: Callable[[TaskRecord], list[str]],
        persist: bool = True,
    ) -> list[str]:
        """Snapshot, mutate, snapshot again and register one command."""
        before = FieldSnapshot.capture(record)
        errors = operation(record)
        after = FieldSnapshot.capture(record)
        if before != after:
            self.stack.push(FieldCommand(record.id, before, after, action_name, persist))
        return errors

    def toggle_importance_and_urgency(
        self, record: TaskRecord, important: bool, urgent: bool, persist: bool = True
    ) -> list[str]:
        return self.run(
            record,
            TOGGLE_ACTION,
            lambda r: self.mutator.toggle_importance_and_urgency(r, important, urgent, persist=persist),
            persist=persist,
        )

    def toggle_many(self, records: list[TaskRecord], important: bool, urgent: bool) -> list[str]:
        """Apply one toggle per record; each record gets its own undo entry."""
        errors: list[str] = []
        for r in records:
            errors += self.toggle_importance_and_urgency(r, important, urgent)
        return errors

    def _replay(self, command: FieldCommand, forward: bool) -> tuple[bool, list[str]]:
        record = self._resolve(command.record_id)
        if record is None:
            logger.warning("Dropping %s for %s: record no longer active", command.action_name, command.record_id)
            return False, [f"Record not found: {command.record_id}"]
        if forward:
            command.apply(record)
        else:
            command.unapply(record)
        if not command.persist:
            return True, []
        return True, self.mutator.persist(record)

    def undo(self) -> list[str]:
        command = self.stack.pop_undo()
        if command is None:
            return []
        found, errors = self._replay(command, forward=False)
        if found:
            self.stack.redo_items.append(command)
        return errors

    def redo(self) -> list[str]:
        command = self.stack.pop_redo()
        if command is None:
            return []
        found, errors = self._replay(command, forward=True)
        if found:
            self.stack.undo_items.append(command)
        return errors