"""MatrixEngine: the QuadTags façade the front ends talk to.

The engine holds the working record set (active records only) and the undo
history; everything else is derived from marker text on every read.
"""

from __future__ import annotations

import logging

from quadtags.classifier import flags_for_quadrant
from quadtags.grouping import (
    STRATEGY_LEGACY_SECTION,
    build_groups,
    build_legacy_sections,
    candidate_parents,
    find_group,
    find_orphans,
    is_orphan,
    legacy_ungrouped,
    ungrouped,
)
from quadtags.models import Group, LegacySection, MatrixView, Settings, TaskList, TaskRecord
from quadtags.mutator import TagMutator
from quadtags.ordering import move_to_front, reorder_subset
from quadtags.scanner import normalize_slug, parse_child_slug, parse_parent_slug, slugs_equal
from quadtags.store import StoreError, TaskStore
from quadtags.undo import UndoCoordinator, UndoStack
from quadtags.view import build_matrix

logger = logging.getLogger(__name__)

MISSING_SLUG = "Missing group name"


class MatrixEngine:
    def __init__(
        self,
        store: TaskStore,
        settings: Settings | None = None,
        undo_stack: UndoStack | None = None,
        subscribe: bool = True,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.records: list[TaskRecord] = []
        self._last_request = 0
        self._applied_request = 0
        self.mutator = TagMutator(store, lambda: self.records, self.refresh)
        self.undo_stack = undo_stack if undo_stack is not None else UndoStack()
        self.history = UndoCoordinator(self.mutator, self.undo_stack, self.find)
        if subscribe:
            store.subscribe(self.store_did_change)

    # ── Fetching ───────────────────────────────────────────────

    def begin_fetch(self) -> int:
        """Reserve a request id for a fetch that is about to start."""
        self._last_request += 1
        return self._last_request

    def complete_fetch(self, request_id: int, records: list[TaskRecord]) -> bool:
        """Install fetched records unless a newer fetch has already landed."""
        if request_id <= self._applied_request:
            logger.debug("Discarding stale fetch %d (applied %d)", request_id, self._applied_request)
            return False
        self._applied_request = request_id
        self.records = [r for r in records if not r.completed]
        return True

    def refresh(self) -> bool:
        request_id = self.begin_fetch()
        try:
            records = self.store.fetch()
        except StoreError as e:
            logger.error("Fetch failed: %s", e)
            return False
        return self.complete_fetch(request_id, records)

    def store_did_change(self) -> None:
        self.refresh()

    # ── Lookup & filtering ─────────────────────────────────────

    def find(self, record_id: str) -> TaskRecord | None:
        for r in self.records:
            if r.id == record_id:
                return r
        return None

    def _require(self, record_id: str) -> TaskRecord:
        record = self.find(record_id)
        if record is None:
            raise KeyError(f"Record not found: {record_id}")
        return record

    def lists(self) -> list[TaskList]:
        try:
            return self.store.lists()
        except StoreError as e:
            logger.error("Cannot load lists: %s", e)
            return []

    def visible_records(self) -> list[TaskRecord]:
        """Working set filtered by the include/exclude list selection."""
        s = self.settings
        if s.use_exclusion:
            if not s.excluded_lists:
                return list(self.records)
            excluded = set(s.excluded_lists)
            return [r for r in self.records if r.list_id not in excluded]
        if not s.included_lists:
            return list(self.records)
        included = set(s.included_lists)
        return [r for r in self.records if r.list_id in included]

    # ── Reads (recomputed every call) ──────────────────────────

    def groups(self) -> list[Group]:
        return build_groups(self.records)

    def legacy_sections(self) -> list[LegacySection]:
        return build_legacy_sections(self.records)

    def ungrouped(self) -> list[TaskRecord]:
        if self.settings.grouping == STRATEGY_LEGACY_SECTION:
            return legacy_ungrouped(self.records)
        return ungrouped(self.records)

    def orphans(self) -> list[TaskRecord]:
        return find_orphans(self.records)

    def is_orphan(self, record_id: str) -> bool:
        return is_orphan(self._require(record_id), self.records)

    def matrix(self) -> MatrixView:
        return build_matrix(self.visible_records(), self.settings.grouping, self.records)

    # ── Quadrant moves (undoable) ──────────────────────────────

    def drop_on_quadrant(self, record_id: str, number: int) -> list[str]:
        important, urgent = flags_for_quadrant(number)
        return self.history.toggle_importance_and_urgency(self._require(record_id), important, urgent)

    def drop_group_on_quadrant(self, slug: str, number: int) -> list[str]:
        """Move a whole group; each member gets its own undo entry."""
        group = self._require_group(slug)
        important, urgent = flags_for_quadrant(number)
        ids = group.member_ids()
        errors: list[str] = []
        for record_id in ids:
            # every save re-fetches, so look each record up again
            record = self.find(record_id)
            if record is not None:
                errors += self.history.toggle_importance_and_urgency(record, important, urgent)
        return errors

    def undo(self) -> list[str]:
        return self.history.undo()

    def redo(self) -> list[str]:
        return self.history.redo()

    # ── Grouping ───────────────────────────────────────────────

    def _require_group(self, slug: str) -> Group:
        group = find_group(self.groups(), slug)
        if group is None:
            raise KeyError(f"Group not found: {slug}")
        return group

    def drop_on_record(self, target_id: str, dropped_id: str, slug: str | None = None) -> tuple[str | None, list[str]]:
        """Group *dropped* under *target*.

        If the target already anchors a group the dropped record joins it.
        Otherwise *slug* names a new group anchored on the target, and the
        target moves to the front of the working list.
        """
        target = self._require(target_id)
        self._require(dropped_id)
        if target_id == dropped_id:
            return None, ["Cannot group a record with itself"]

        existing = parse_parent_slug(target.notes)
        if existing:
            return existing, self.mutator.set_child_marker(self._require(dropped_id), existing)

        new_slug = normalize_slug(slug or "")
        if not new_slug:
            return None, [MISSING_SLUG]
        errors = self.mutator.set_parent_marker(target, new_slug)
        if errors:
            return None, errors
        errors = self.mutator.set_child_marker(self._require(dropped_id), new_slug)
        self.move_to_front(target_id)
        return new_slug, errors

    def remove_from_group(self, record_id: str) -> list[str]:
        record = self._require(record_id)
        slug = parse_child_slug(record.notes)
        if slug is None:
            return []
        return self.mutator.remove_child_marker(record, slug)

    def dissolve_group(self, slug: str) -> list[str]:
        group = self._require_group(slug)
        return self.mutator.remove_parent_marker_and_ungroup_children(group.parent, group.slug)

    def rename_group(self, slug: str, text: str) -> tuple[str | None, list[str]]:
        group = self._require_group(slug)
        return self.mutator.rename_group(group.parent, text, group.children)

    def resolve_orphan(self, record_id: str, adopt: bool = False) -> list[str]:
        """Either drop the dangling child marker or re-attach to a matching parent."""
        record = self._require(record_id)
        slug = parse_child_slug(record.notes)
        if slug is None:
            return []
        if not adopt:
            return self.mutator.remove_child_marker(record, slug)
        parents = candidate_parents(record, self.records)
        if not parents:
            return [f"No parent for #i-{slug}"]
        parent_slug = parse_parent_slug(parents[0].notes) or slug
        return self.mutator.set_child_marker(record, parent_slug)

    # ── Legacy sections ────────────────────────────────────────

    def set_section(
        self, record_id: str, tag: str, enforce_unique: bool = True, in_title: bool = False
    ) -> tuple[str, list[str]]:
        return self.mutator.set_legacy_section_tag(self._require(record_id), tag, enforce_unique, in_title)

    def group_into_section(self, anchor_id: str, member_ids: list[str], tag: str) -> tuple[str, list[str]]:
        """Tag the anchor with a unique section, then give members the same final tag."""
        final, errors = self.mutator.set_legacy_section_tag(self._require(anchor_id), tag, True, in_title=True)
        if errors:
            return final, errors
        for member_id in member_ids:
            if member_id == anchor_id:
                continue
            _, member_errors = self.mutator.set_legacy_section_tag(self._require(member_id), final, enforce_unique=False)
            errors += member_errors
        return final, errors

    def clear_section(self, record_id: str) -> list[str]:
        return self.mutator.remove_legacy_section_marker(self._require(record_id))

    # ── Lifecycle ──────────────────────────────────────────────

    def complete(self, record_id: str) -> list[str]:
        return self.mutator.complete(self._require(record_id))

    # ── Session-local ordering ─────────────────────────────────

    def move_within_ungrouped(self, from_indices: list[int], to_index: int) -> None:
        ids = [r.id for r in self.ungrouped()]
        self.records = reorder_subset(self.records, ids, from_indices, to_index)

    def move_within_group(self, slug: str, from_indices: list[int], to_index: int) -> None:
        if self.settings.grouping == STRATEGY_LEGACY_SECTION:
            sections = [s for s in self.legacy_sections() if slugs_equal(s.slug, slug)]
            if not sections:
                return
            ids = [r.id for r in sections[0].records]
        else:
            group = find_group(self.groups(), slug)
            if group is None:
                return
            ids = [c.id for c in group.children]
        self.records = reorder_subset(self.records, ids, from_indices, to_index)

    def move_to_front(self, record_id: str) -> None:
        self.records = move_to_front(self.records, record_id)
