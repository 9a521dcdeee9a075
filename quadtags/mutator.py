"""Marker mutations for QuadTags.

TagMutator is the only place that edits marker text. Each operation edits
the record in place, saves it through the store and asks for a re-fetch.

Errors follow the (result, errors) convention: operations return a list of
error strings, empty on success. A conflict leaves every field untouched.
A failed save is logged and reported but the in-memory edit stays, and no
re-fetch is requested.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from quadtags.models import TaskRecord
from quadtags.scanner import (
    IMPORTANT_MARKER,
    SLUG_CHARS,
    URGENT_MARKER,
    append_marker,
    child_marker,
    has_marker,
    has_parent_and_child,
    normalize_slug,
    parent_marker,
    parse_child_slug,
    parse_legacy_section,
    parse_parent_slug,
    remove_literal,
    section_marker,
    slugs_equal,
    strip_group_markers,
    strip_legacy_markers,
)
from quadtags.store import StoreError, TaskStore

logger = logging.getLogger(__name__)

CONFLICT = "Conflict"
SAVE_FAILED = "Failed to save"
INVALID = "Invalid"


def is_conflict(errors: list[str]) -> bool:
    return any(e.startswith(CONFLICT) for e in errors)


def is_save_failure(errors: list[str]) -> bool:
    return any(e.startswith(SAVE_FAILED) for e in errors)


def _valid_slug(slug: str) -> bool:
    return bool(re.fullmatch(SLUG_CHARS, slug))


def _set_notes(record: TaskRecord, notes: str) -> None:
    record.notes = notes if notes else None


class TagMutator:
    """Edits marker text on records from the engine's working set."""

    def __init__(
        self,
        store: TaskStore,
        records: Callable[[], list[TaskRecord]],
        on_saved: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self._records = records
        self._on_saved = on_saved

    def _others(self, record: TaskRecord) -> list[TaskRecord]:
        return [r for r in self._records() if r.id != record.id]

    def _request_refresh(self) -> None:
        if self._on_saved is not None:
            self._on_saved()

    def persist(self, record: TaskRecord, refresh: bool = True) -> list[str]:
        """Save one record. A failure is logged and returned, never raised."""
        try:
            self.store.save(record)
        except StoreError as e:
            logger.error("%s %s: %s", SAVE_FAILED, record.id, e)
            return [f"{SAVE_FAILED} {record.id}: {e}"]
        if refresh:
            self._request_refresh()
        return []

    # ── Parent / child markers ─────────────────────────────────

    def parent_conflict(self, record: TaskRecord, slug: str) -> TaskRecord | None:
        """Another active record already anchoring *slug*, if any."""
        for r in self._others(record):
            if slugs_equal(parse_parent_slug(r.notes), slug):
                return r
        return None

    def _apply_parent(self, record: TaskRecord, slug: str) -> list[str]:
        if not _valid_slug(slug):
            return [f"{INVALID} slug: {slug!r}"]
        holder = self.parent_conflict(record, slug)
        if holder is not None:
            logger.warning(
                "Refusing duplicate parent marker #p-%s on %s: already held by %s",
                slug, record.id, holder.id,
            )
            return [f"{CONFLICT}: #p-{slug} already exists on {holder.id}"]
        if has_parent_and_child(record.notes):
            logger.warning("Record %s had both parent and child markers; cleaning up", record.id)
        _set_notes(record, append_marker(strip_group_markers(record.notes), parent_marker(slug)))
        return []

    def _apply_child(self, record: TaskRecord, slug: str) -> list[str]:
        if not _valid_slug(slug):
            return [f"{INVALID} slug: {slug!r}"]
        if has_parent_and_child(record.notes):
            logger.warning("Record %s had both parent and child markers; cleaning up", record.id)
        _set_notes(record, append_marker(strip_group_markers(record.notes), child_marker(slug)))
        return []

    def set_parent_marker(self, record: TaskRecord, slug: str) -> list[str]:
        """Make *record* the anchor of group *slug* (at most one per slug)."""
        errors = self._apply_parent(record, slug)
        if errors:
            return errors
        return self.persist(record)

    def set_child_marker(self, record: TaskRecord, slug: str) -> list[str]:
        """Put *record* in group *slug*, replacing any parent/child marker it had."""
        errors = self._apply_child(record, slug)
        if errors:
            return errors
        return self.persist(record)

    def _remove_child(self, record: TaskRecord, slug: str) -> bool:
        if not record.notes:
            return False
        new_notes = remove_literal(record.notes, child_marker(slug))
        if new_notes == record.notes:
            return False
        _set_notes(record, new_notes)
        return True

    def remove_child_marker(self, record: TaskRecord, slug: str) -> list[str]:
        """Drop `#i-<slug>` only; saves nothing if the marker was not there."""
        if not self._remove_child(record, slug):
            return []
        return self.persist(record)

    def remove_parent_marker_and_ungroup_children(self, parent: TaskRecord, slug: str) -> list[str]:
        """Dissolve group *slug*: un-anchor the parent and release every child."""
        errors: list[str] = []
        if parent.notes:
            new_notes = remove_literal(parent.notes, parent_marker(slug))
            if new_notes != parent.notes:
                _set_notes(parent, new_notes)
                errors += self.persist(parent, refresh=False)

        for r in self._others(parent):
            if slugs_equal(parse_child_slug(r.notes), slug) and self._remove_child(r, slug):
                errors += self.persist(r, refresh=False)

        if not errors:
            self._request_refresh()
        return errors

    def rename_group(
        self, parent: TaskRecord, text: str, children: list[TaskRecord]
    ) -> tuple[str | None, list[str]]:
        """Rename a group from free text, re-tagging its children.

        The name is normalized into a slug and suffixed (2, 3, ...) until no
        other parent holds it. Returns (final slug, errors).
        """
        current = parse_parent_slug(parent.notes)
        base = normalize_slug(text)
        if not base or base == current:
            return current, []

        final = base
        n = 2
        while self.parent_conflict(parent, final) is not None:
            final = f"{base}{n}"
            n += 1

        errors = self._apply_parent(parent, final)
        if errors:
            return current, errors
        errors += self.persist(parent, refresh=False)
        for child in children:
            if child.id == parent.id:
                continue
            errors += self._apply_child(child, final)
            errors += self.persist(child, refresh=False)
        if not errors:
            self._request_refresh()
        return final, errors

    # ── Legacy #section- markers ───────────────────────────────

    def section_tag_taken(self, record: TaskRecord, tag: str) -> bool:
        return any(slugs_equal(parse_legacy_section(r.title, r.notes), tag) for r in self._others(record))

    def set_legacy_section_tag(
        self,
        record: TaskRecord,
        tag: str,
        enforce_unique: bool = True,
        in_title: bool = False,
    ) -> tuple[str, list[str]]:
        """Replace the record's section markers in title and notes; returns (final tag, errors).

        With enforce_unique the tag becomes tag2, tag3, ... until no other
        record holds it. Callers pass the returned tag on to related records.
        """
        if not _valid_slug(tag):
            return tag, [f"{INVALID} slug: {tag!r}"]

        _set_notes(record, strip_legacy_markers(record.notes))
        if parse_legacy_section(record.title, None) is not None:
            record.title = strip_legacy_markers(record.title)
        final = tag
        if enforce_unique:
            n = 2
            while self.section_tag_taken(record, final):
                final = f"{tag}{n}"
                n += 1

        _set_notes(record, append_marker(record.notes, section_marker(final)))
        if in_title:
            record.title = append_marker(record.title, section_marker(final))
        return final, self.persist(record)

    def remove_legacy_section_marker(self, record: TaskRecord) -> list[str]:
        _set_notes(record, strip_legacy_markers(record.notes))
        if parse_legacy_section(record.title, None) is not None:
            record.title = strip_legacy_markers(record.title)
        return self.persist(record)

    # ── Importance / urgency ───────────────────────────────────

    def toggle_importance_and_urgency(
        self, record: TaskRecord, important: bool, urgent: bool, persist: bool = True
    ) -> list[str]:
        """Set or clear the #important / #urgent markers independently.

        priority_flag and due_date are left alone.
        """
        notes = record.notes or ""
        for marker, wanted in ((IMPORTANT_MARKER, important), (URGENT_MARKER, urgent)):
            if wanted:
                if not has_marker(notes, marker):
                    notes = append_marker(notes, marker)
            else:
                notes = remove_literal(notes, marker)
        _set_notes(record, notes)
        if not persist:
            return []
        return self.persist(record)

    # ── Lifecycle ──────────────────────────────────────────────

    def complete(self, record: TaskRecord) -> list[str]:
        record.completed = True
        return self.persist(record)
