"""Marker grammar for QuadTags: recognition and text editing of hashtag markers.

Recognized markers (case-insensitive):
    #important          importance flag (notes; bare word in title)
    #urgent             urgency flag (notes; bare word in title)
    #section-<slug>     legacy flat section (title or notes)
    #p-<slug>           group parent (notes only)
    #i-<slug>           group child (notes only)

<slug> is one or more of [A-Za-z0-9_-]. Written markers always use the
lowercase prefixes above.
"""

from __future__ import annotations

import re

SLUG_CHARS = r"[A-Za-z0-9_-]+"

IMPORTANT_MARKER = "#important"
URGENT_MARKER = "#urgent"
SECTION_PREFIX = "#section-"
PARENT_PREFIX = "#p-"
CHILD_PREFIX = "#i-"

_SECTION_RE = re.compile(r"#section-(" + SLUG_CHARS + ")", re.IGNORECASE)
_PARENT_RE = re.compile(r"#p-(" + SLUG_CHARS + ")", re.IGNORECASE)
_CHILD_RE = re.compile(r"#i-(" + SLUG_CHARS + ")", re.IGNORECASE)


# ── Recognition ───────────────────────────────────────────────


def _first_slug(pattern: re.Pattern[str], text: str | None) -> str | None:
    if not text:
        return None
    m = pattern.search(text)
    if not m or not m.group(1):
        return None
    return m.group(1)


def parse_important(title: str | None, notes: str | None) -> bool:
    """Strict `#important` tag in notes, or the bare word anywhere in the title."""
    if notes and IMPORTANT_MARKER in notes.lower():
        return True
    return bool(title) and "important" in title.lower()


def parse_urgent(title: str | None, notes: str | None) -> bool:
    """Strict `#urgent` tag in notes, or the bare word anywhere in the title."""
    if notes and URGENT_MARKER in notes.lower():
        return True
    return bool(title) and "urgent" in title.lower()


def parse_legacy_section(title: str | None, notes: str | None) -> str | None:
    """Return the `#section-<slug>` slug, searching the title before the notes."""
    for text in (title, notes):
        slug = _first_slug(_SECTION_RE, text)
        if slug:
            return slug
    return None


def parse_parent_slug(notes: str | None) -> str | None:
    return _first_slug(_PARENT_RE, notes)


def parse_child_slug(notes: str | None) -> str | None:
    return _first_slug(_CHILD_RE, notes)


def has_parent_and_child(notes: str | None) -> bool:
    """True for malformed notes that carry both a parent and a child marker."""
    return parse_parent_slug(notes) is not None and parse_child_slug(notes) is not None


def has_marker(notes: str | None, marker: str) -> bool:
    return bool(notes) and marker.lower() in notes.lower()


def slugs_equal(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.casefold() == b.casefold()


# ── Slug helpers ──────────────────────────────────────────────


def prettify_slug(slug: str) -> str:
    """'weekend_trip-plan' -> 'Weekend Trip Plan'."""
    words = slug.replace("_", " ").replace("-", " ").split()
    return " ".join(w.capitalize() for w in words)


def normalize_title(text: str) -> str:
    """Lowercase and drop spaces, dashes and underscores for loose title matching."""
    return text.lower().replace(" ", "").replace("-", "").replace("_", "")


def normalize_slug(text: str) -> str:
    """Turn free text typed by a user into a slug.

    'Weekend Trip: Oslo' -> 'weekend-trip-oslo'
    """
    chars = [c if ("a" <= c <= "z" or "0" <= c <= "9" or c == "-") else "-" for c in text.strip().lower()]
    slug = re.sub(r"-{2,}", "-", "".join(chars))
    return slug.strip("-")


# ── Marker builders ───────────────────────────────────────────


def parent_marker(slug: str) -> str:
    return PARENT_PREFIX + slug


def child_marker(slug: str) -> str:
    return CHILD_PREFIX + slug


def section_marker(slug: str) -> str:
    return SECTION_PREFIX + slug


# ── Text editing ──────────────────────────────────────────────


def normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces/tabs into one space and trim the ends."""
    return re.sub(r"[ \t]{2,}", " ", text).strip()


def remove_marker(text: str | None, pattern: str) -> str:
    """Remove every whitespace-delimited occurrence of the regex *pattern*.

    The marker must be bounded by whitespace or the string ends, so removing
    `#i-trip` leaves `#i-trips` alone.
    """
    if not text:
        return ""
    rx = re.compile(r"(?<!\S)" + pattern + r"(?!\S)", re.IGNORECASE)
    return normalize_whitespace(rx.sub("", text))


def remove_literal(text: str | None, marker: str) -> str:
    return remove_marker(text, re.escape(marker))


def append_marker(text: str | None, marker: str) -> str:
    text = text or ""
    if text:
        return f"{text} {marker}"
    return marker


def strip_group_markers(notes: str | None) -> str:
    """Remove all `#p-` and `#i-` markers."""
    return remove_marker(notes, r"#[pi]-" + SLUG_CHARS)


def strip_legacy_markers(text: str | None) -> str:
    """Remove all `#section-` markers."""
    return remove_marker(text, r"#section-" + SLUG_CHARS)
