"""Matrix view model: four quadrants, each with its groups and loose records."""

from __future__ import annotations

from quadtags.classifier import QUADRANT_TITLES, flags_for_quadrant, partition
from quadtags.grouping import (
    STRATEGY_LEGACY_SECTION,
    build_groups,
    build_legacy_sections,
    grouped_ids,
    is_orphan,
)
from quadtags.models import GroupView, MatrixView, QuadrantView, RecordEntry, TaskRecord
from quadtags.scanner import parse_child_slug


def _quadrant_shell(number: int) -> QuadrantView:
    important, urgent = flags_for_quadrant(number)
    return QuadrantView(number=number, title=QUADRANT_TITLES[number], important=important, urgent=urgent)


def _parent_child_quadrants(visible: list[TaskRecord], everything: list[TaskRecord]) -> list[QuadrantView]:
    groups = build_groups(everything)
    members = grouped_ids(groups)
    out = []
    for number, records in partition(visible).items():
        q = _quadrant_shell(number)
        ids = {r.id for r in records}
        # A group shows wherever its parent or any child is visible
        for g in groups:
            parent = g.parent if g.parent.id in ids else None
            children = [c for c in g.children if c.id in ids]
            if parent is None and not children:
                continue
            q.groups.append(GroupView(slug=g.slug, title=g.title, parent=parent, children=children))
        for r in records:
            if r.id in members:
                continue
            q.ungrouped.append(
                RecordEntry(record=r, child_slug=parse_child_slug(r.notes), orphan=is_orphan(r, everything))
            )
        out.append(q)
    return out


def _legacy_quadrants(visible: list[TaskRecord], everything: list[TaskRecord]) -> list[QuadrantView]:
    sections = build_legacy_sections(everything)
    members = {r.id for s in sections for r in s.records}
    out = []
    for number, records in partition(visible).items():
        q = _quadrant_shell(number)
        ids = {r.id for r in records}
        for s in sections:
            shown = [r for r in s.records if r.id in ids]
            if shown:
                q.groups.append(GroupView(slug=s.slug, title=s.title, children=shown, kind=STRATEGY_LEGACY_SECTION))
        q.ungrouped = [RecordEntry(record=r) for r in records if r.id not in members]
        out.append(q)
    return out


def build_matrix(
    visible: list[TaskRecord],
    strategy: str = "parent_child",
    everything: list[TaskRecord] | None = None,
) -> MatrixView:
    """Build the matrix for the *visible* records.

    Groups and orphan status are worked out against *everything* (all active
    records, defaulting to *visible*) so that list filtering never turns a
    child into an orphan.
    """
    if everything is None:
        everything = visible
    if strategy == STRATEGY_LEGACY_SECTION:
        quadrants = _legacy_quadrants(visible, everything)
    else:
        quadrants = _parent_child_quadrants(visible, everything)
    return MatrixView(grouping=strategy, quadrants=quadrants)
