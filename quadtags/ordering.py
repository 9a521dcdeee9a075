"""Session-local manual ordering for QuadTags.

Reordering only rearranges the engine's working list. Marker text is never
touched and nothing is saved, so the next fetch restores store order.
"""

from __future__ import annotations

from typing import TypeVar

from quadtags.models import TaskRecord

T = TypeVar("T")


def move_items(items: list[T], from_indices: list[int], to_index: int) -> list[T]:
    """Move the items at *from_indices* so they land before position *to_index*.

    *to_index* refers to positions in the original list (len(items) means the
    end). Moved items keep their relative order.
    """
    picked = sorted(set(from_indices))
    for i in picked:
        if i < 0 or i >= len(items):
            raise IndexError(f"Index out of range: {i}")
    if to_index < 0 or to_index > len(items):
        raise IndexError(f"Destination out of range: {to_index}")

    picked_set = set(picked)
    moving = [items[i] for i in picked]
    remaining = [x for i, x in enumerate(items) if i not in picked_set]
    dest = to_index - sum(1 for i in picked if i < to_index)
    return remaining[:dest] + moving + remaining[dest:]


def reorder_subset(
    records: list[TaskRecord], subset_ids: list[str], from_indices: list[int], to_index: int
) -> list[TaskRecord]:
    """Reorder the records listed in *subset_ids* among the slots they occupy.

    Indices address the subset in *subset_ids* order; records outside the
    subset keep their positions.
    """
    by_id = {r.id: r for r in records}
    subset = [by_id[i] for i in subset_ids if i in by_id]
    reordered = iter(move_items(subset, from_indices, to_index))
    members = {r.id for r in subset}
    return [next(reordered) if r.id in members else r for r in records]


def move_to_front(records: list[TaskRecord], record_id: str) -> list[TaskRecord]:
    for i, r in enumerate(records):
        if r.id == record_id:
            return [r] + records[:i] + records[i + 1:]
    return list(records)
