"""Group reconstruction from marker state for QuadTags.

Two strategies coexist:
- parent_child: `#p-<slug>` anchors a group, `#i-<slug>` joins it.
- legacy_section: flat `#section-<slug>` sections from older data.

Everything here is recomputed from the records on every call; nothing is
cached between reads.
"""

from __future__ import annotations

from quadtags.models import PRIORITY_HIGH, Group, LegacySection, TaskRecord
from quadtags.scanner import (
    normalize_title,
    parse_child_slug,
    parse_legacy_section,
    parse_parent_slug,
    prettify_slug,
    slugs_equal,
)

PARENT = "parent"
CHILD = "child"

STRATEGY_PARENT_CHILD = "parent_child"
STRATEGY_LEGACY_SECTION = "legacy_section"
GROUPING_STRATEGIES = {STRATEGY_PARENT_CHILD, STRATEGY_LEGACY_SECTION}


def _sort_key(slug: str) -> str:
    return prettify_slug(slug).casefold()


# ── Parent / child groups ─────────────────────────────────────


def parse_group_role(record: TaskRecord) -> tuple[str, str] | None:
    """Return ("parent", slug), ("child", slug) or None.

    Records carrying both markers are malformed and get no role.
    """
    parent = parse_parent_slug(record.notes)
    child = parse_child_slug(record.notes)
    if parent and child:
        return None
    if parent:
        return PARENT, parent
    if child:
        return CHILD, child
    return None


def build_groups(records: list[TaskRecord]) -> list[Group]:
    """Build one group per parent slug, sorted by display title.

    Children whose slug has no parent are left out; they show up as orphans
    in the ungrouped listing.
    """
    parents: dict[str, TaskRecord] = {}
    children: dict[str, list[TaskRecord]] = {}
    for r in records:
        role = parse_group_role(r)
        if role is None:
            continue
        kind, slug = role
        key = slug.casefold()
        if kind == PARENT:
            parents[key] = r
        else:
            children.setdefault(key, []).append(r)

    groups = []
    for key, parent in parents.items():
        slug = parse_parent_slug(parent.notes) or key
        groups.append(
            Group(slug=slug, parent=parent, children=children.get(key, []), title=prettify_slug(slug))
        )
    groups.sort(key=lambda g: _sort_key(g.slug))
    return groups


def find_group(groups: list[Group], slug: str) -> Group | None:
    for g in groups:
        if slugs_equal(g.slug, slug):
            return g
    return None


def grouped_ids(groups: list[Group]) -> set[str]:
    ids: set[str] = set()
    for g in groups:
        ids.update(g.member_ids())
    return ids


def ungrouped(records: list[TaskRecord], groups: list[Group] | None = None) -> list[TaskRecord]:
    """Records not placed in any group: plain, orphaned and malformed ones."""
    if groups is None:
        groups = build_groups(records)
    ids = grouped_ids(groups)
    return [r for r in records if r.id not in ids]


# ── Orphans ───────────────────────────────────────────────────


def candidate_parents(record: TaskRecord, records: list[TaskRecord]) -> list[TaskRecord]:
    """Records whose parent slug matches this record's child slug."""
    slug = parse_child_slug(record.notes)
    if slug is None:
        return []
    return [
        r for r in records
        if r.id != record.id and slugs_equal(parse_parent_slug(r.notes), slug)
    ]


def is_orphan(record: TaskRecord, records: list[TaskRecord]) -> bool:
    """A child marker with no active record carrying the matching parent marker."""
    if parse_child_slug(record.notes) is None:
        return False
    return not candidate_parents(record, records)


def find_orphans(records: list[TaskRecord]) -> list[TaskRecord]:
    return [r for r in records if is_orphan(r, records)]


# ── Legacy #section- grouping ─────────────────────────────────


def build_legacy_sections(records: list[TaskRecord]) -> list[LegacySection]:
    """Group by `#section-<slug>`.

    Within a section: the record whose title matches the section name comes
    first, then high-priority records, then the original fetch order.
    """
    order = {r.id: i for i, r in enumerate(records)}
    buckets: dict[str, list[TaskRecord]] = {}
    slugs: dict[str, str] = {}
    for r in records:
        slug = parse_legacy_section(r.title, r.notes)
        if slug is None:
            continue
        key = slug.casefold()
        slugs.setdefault(key, slug)
        buckets.setdefault(key, []).append(r)

    sections = []
    for key, members in buckets.items():
        slug = slugs[key]
        title = prettify_slug(slug)
        wanted = normalize_title(title)

        def rank(r: TaskRecord, wanted: str = wanted) -> tuple[int, int, int]:
            is_parent = normalize_title(r.title) == wanted
            is_high = r.priority_flag == PRIORITY_HIGH
            return (0 if is_parent else 1, 0 if is_high else 1, order.get(r.id, len(order)))

        sections.append(LegacySection(slug=slug, title=title, records=sorted(members, key=rank)))
    sections.sort(key=lambda s: _sort_key(s.slug))
    return sections


def legacy_ungrouped(records: list[TaskRecord]) -> list[TaskRecord]:
    return [r for r in records if parse_legacy_section(r.title, r.notes) is None]
