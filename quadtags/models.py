"""Typed dataclasses for the QuadTags data model.

Store-facing models use from_dict/to_dict for YAML serialization.
Unknown keys are ignored; missing keys use defaults.
Derived models (groups, sections, view models) are rebuilt on every read
and only offer to_dict for the front ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


# ── Priority flag ─────────────────────────────────────────────


PRIORITY_NONE = 0
PRIORITY_HIGH = 1
PRIORITY_LOW = 9
VALID_PRIORITIES = {PRIORITY_NONE, PRIORITY_HIGH, PRIORITY_LOW}


def _date_str(value: Any) -> str | None:
    # PyYAML turns unquoted ISO dates into date objects
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# ── Store records ─────────────────────────────────────────────


@dataclass
class TaskRecord:
    id: str = ""
    title: str = ""
    notes: str | None = None
    priority_flag: int = PRIORITY_NONE
    due_date: str | None = None  # ISO date
    completed: bool = False
    list_id: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TaskRecord:
        notes = d.get("notes")
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "") or ""),
            notes=str(notes) if notes not in (None, "") else None,
            priority_flag=int(d.get("priority", PRIORITY_NONE) or PRIORITY_NONE),
            due_date=_date_str(d.get("due")),
            completed=bool(d.get("completed", False)),
            list_id=str(d.get("list", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.notes:
            d["notes"] = self.notes
        d["priority"] = self.priority_flag
        if self.due_date:
            d["due"] = self.due_date
        d["completed"] = self.completed
        if self.list_id:
            d["list"] = self.list_id
        return d


@dataclass
class TaskList:
    id: str = ""
    title: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TaskList:
        return cls(id=str(d.get("id", "")), title=str(d.get("title", "")))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title}


@dataclass
class TaskFile:
    lists: list[TaskList] = field(default_factory=list)
    tasks: list[TaskRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TaskFile:
        if not d or not isinstance(d, dict):
            return cls()
        lists = [TaskList.from_dict(x) for x in (d.get("lists") or []) if isinstance(x, dict)]
        tasks = [TaskRecord.from_dict(x) for x in (d.get("tasks") or []) if isinstance(x, dict)]
        return cls(lists=lists, tasks=tasks)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.lists:
            d["lists"] = [x.to_dict() for x in self.lists]
        d["tasks"] = [t.to_dict() for t in self.tasks]
        return d


# ── Settings ──────────────────────────────────────────────────


DEFAULT_GROUPING = "parent_child"


@dataclass
class Settings:
    grouping: str = DEFAULT_GROUPING  # parent_child, legacy_section
    included_lists: list[str] = field(default_factory=list)
    excluded_lists: list[str] = field(default_factory=list)
    use_exclusion: bool = False
    log_level: str = "WARNING"
    poll_seconds: float = 2.0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        grouping = str(d.get("grouping", DEFAULT_GROUPING)).strip().lower()
        if grouping not in {"parent_child", "legacy_section"}:
            grouping = DEFAULT_GROUPING
        return cls(
            grouping=grouping,
            included_lists=[str(x) for x in (d.get("included_lists") or [])],
            excluded_lists=[str(x) for x in (d.get("excluded_lists") or [])],
            use_exclusion=bool(d.get("use_exclusion", False)),
            log_level=str(d.get("log_level", "WARNING")).upper(),
            poll_seconds=float(d.get("poll_seconds", 2.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "grouping": self.grouping,
            "included_lists": list(self.included_lists),
            "excluded_lists": list(self.excluded_lists),
            "use_exclusion": self.use_exclusion,
            "log_level": self.log_level,
            "poll_seconds": self.poll_seconds,
        }


# ── Derived groupings ─────────────────────────────────────────


@dataclass
class Group:
    slug: str
    parent: TaskRecord
    children: list[TaskRecord] = field(default_factory=list)
    title: str = ""

    def member_ids(self) -> list[str]:
        return [self.parent.id] + [c.id for c in self.children]


@dataclass
class LegacySection:
    slug: str
    title: str = ""
    records: list[TaskRecord] = field(default_factory=list)


# ── View model ────────────────────────────────────────────────


def _record_view(r: TaskRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "title": r.title,
        "notes": r.notes,
        "priority": r.priority_flag,
        "due": r.due_date,
        "list": r.list_id,
    }


@dataclass
class RecordEntry:
    record: TaskRecord
    child_slug: str | None = None
    orphan: bool = False

    def to_dict(self) -> dict[str, Any]:
        d = _record_view(self.record)
        d["childSlug"] = self.child_slug
        d["orphan"] = self.orphan
        return d


@dataclass
class GroupView:
    slug: str
    title: str
    parent: TaskRecord | None = None  # None when the parent sits in another quadrant
    children: list[TaskRecord] = field(default_factory=list)
    kind: str = "parent_child"  # parent_child, legacy_section

    @property
    def parent_visible(self) -> bool:
        return self.parent is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "kind": self.kind,
            "parentVisible": self.parent_visible,
            "parent": _record_view(self.parent) if self.parent else None,
            "children": [_record_view(c) for c in self.children],
        }


@dataclass
class QuadrantView:
    number: int
    title: str
    important: bool
    urgent: bool
    groups: list[GroupView] = field(default_factory=list)
    ungrouped: list[RecordEntry] = field(default_factory=list)

    def record_count(self) -> int:
        n = len(self.ungrouped)
        for g in self.groups:
            n += len(g.children) + (1 if g.parent_visible else 0)
        return n

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "important": self.important,
            "urgent": self.urgent,
            "groups": [g.to_dict() for g in self.groups],
            "ungrouped": [e.to_dict() for e in self.ungrouped],
        }


@dataclass
class MatrixView:
    grouping: str = DEFAULT_GROUPING
    quadrants: list[QuadrantView] = field(default_factory=list)

    def quadrant(self, number: int) -> QuadrantView:
        for q in self.quadrants:
            if q.number == number:
                return q
        raise ValueError(f"Invalid quadrant: {number}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "grouping": self.grouping,
            "quadrants": [q.to_dict() for q in self.quadrants],
        }
