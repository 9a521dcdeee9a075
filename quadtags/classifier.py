"""Eisenhower quadrant classification for QuadTags.

Only the #important / #urgent markers decide the quadrant; due dates and
the priority flag play no part.
"""

from __future__ import annotations

from quadtags.models import TaskRecord
from quadtags.scanner import parse_important, parse_urgent

QUADRANT_TITLES = {
    1: "Important & Urgent",
    2: "Important & Not Urgent",
    3: "Not Important & Urgent",
    4: "Not Important & Not Urgent",
}


def categorize(record: TaskRecord) -> tuple[bool, bool]:
    """Return (important, urgent) for a record."""
    return (
        parse_important(record.title, record.notes),
        parse_urgent(record.title, record.notes),
    )


def quadrant_for(important: bool, urgent: bool) -> int:
    if important and urgent:
        return 1
    if important:
        return 2
    if urgent:
        return 3
    return 4


def quadrant(record: TaskRecord) -> int:
    return quadrant_for(*categorize(record))


def flags_for_quadrant(number: int) -> tuple[bool, bool]:
    """Inverse of quadrant_for: the (important, urgent) a drop target implies."""
    if number not in QUADRANT_TITLES:
        raise ValueError(f"Invalid quadrant: {number}")
    return number in (1, 2), number in (1, 3)


def partition(records: list[TaskRecord]) -> dict[int, list[TaskRecord]]:
    """Split records into the four quadrants, preserving order."""
    out: dict[int, list[TaskRecord]] = {n: [] for n in QUADRANT_TITLES}
    for r in records:
        out[quadrant(r)].append(r)
    return out
