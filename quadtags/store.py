"""Task stores for QuadTags.

The engine talks to a store only through fetch(), save() and change
notifications. Two implementations ship here:
- YamlTaskStore: tasks.yaml in the workspace, written atomically.
- MemoryTaskStore: in-process records, for embedding hosts and tests.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Protocol

import yaml

from quadtags.fileio import read_yaml, write_yaml_atomic
from quadtags.models import TaskFile, TaskList, TaskRecord

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]


class StoreError(Exception):
    """A store could not load or persist a record."""


class TaskStore(Protocol):
    def fetch(self) -> list[TaskRecord]: ...

    def save(self, record: TaskRecord) -> None: ...

    def lists(self) -> list[TaskList]: ...

    def subscribe(self, callback: ChangeCallback) -> None: ...


class _Notifier:
    def __init__(self) -> None:
        self._subscribers: list[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> None:
        self._subscribers.append(callback)

    def notify_changed(self) -> None:
        for callback in list(self._subscribers):
            callback()


# ── In-memory store ───────────────────────────────────────────


class MemoryTaskStore(_Notifier):
    """Holds records in memory; fetch() hands out copies like a real store would."""

    def __init__(self, records: list[TaskRecord] | None = None, lists: list[TaskList] | None = None) -> None:
        super().__init__()
        self._records: dict[str, TaskRecord] = {r.id: replace(r) for r in (records or [])}
        self._lists = list(lists or [])
        self.save_count = 0

    def fetch(self) -> list[TaskRecord]:
        return [replace(r) for r in self._records.values()]

    def save(self, record: TaskRecord) -> None:
        if record.id not in self._records:
            raise StoreError(f"Unknown record: {record.id}")
        self._records[record.id] = replace(record)
        self.save_count += 1

    def lists(self) -> list[TaskList]:
        return list(self._lists)

    def get(self, record_id: str) -> TaskRecord | None:
        r = self._records.get(record_id)
        return replace(r) if r else None

    def put(self, record: TaskRecord) -> None:
        """Insert or overwrite a record as if edited outside the engine."""
        self._records[record.id] = replace(record)


# ── YAML file store ───────────────────────────────────────────


class YamlTaskStore(_Notifier):
    """tasks.yaml-backed store.

    External edits to the file are picked up by check_for_changes(), which
    the front ends poll; saves made through this store do not notify.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._mtime = self._current_mtime()

    def _current_mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None

    def load(self) -> TaskFile:
        try:
            return TaskFile.from_dict(read_yaml(self.path))
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

    def lists(self) -> list[TaskList]:
        return self.load().lists

    def fetch(self) -> list[TaskRecord]:
        return self.load().tasks

    def save(self, record: TaskRecord) -> None:
        task_file = self.load()
        for i, t in enumerate(task_file.tasks):
            if t.id == record.id:
                task_file.tasks[i] = replace(record)
                break
        else:
            raise StoreError(f"Unknown record: {record.id}")
        try:
            write_yaml_atomic(self.path, task_file.to_dict())
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e
        self._mtime = self._current_mtime()
        logger.debug("saved %s to %s", record.id, self.path)

    def check_for_changes(self) -> bool:
        """Notify subscribers if the file changed since our last read or write."""
        mtime = self._current_mtime()
        if mtime == self._mtime:
            return False
        self._mtime = mtime
        self.notify_changed()
        return True
