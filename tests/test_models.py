"""Tests for quadtags/models.py — dataclass serialization and view models."""

from datetime import date

from quadtags.models import (
    PRIORITY_HIGH,
    PRIORITY_NONE,
    GroupView,
    MatrixView,
    QuadrantView,
    RecordEntry,
    Settings,
    TaskFile,
    TaskRecord,
)


def test_task_record_from_dict():
    r = TaskRecord.from_dict({
        "id": "a",
        "title": "Book tickets",
        "notes": "#i-trip",
        "priority": 1,
        "due": date(2026, 10, 20),
        "list": "home",
    })
    assert r.id == "a"
    assert r.notes == "#i-trip"
    assert r.priority_flag == PRIORITY_HIGH
    assert r.due_date == "2026-10-20"
    assert r.completed is False
    assert r.list_id == "home"


def test_task_record_defaults():
    r = TaskRecord.from_dict({"id": 7, "notes": ""})
    assert r.id == "7"
    assert r.title == ""
    assert r.notes is None
    assert r.priority_flag == PRIORITY_NONE
    assert r.due_date is None


def test_task_record_to_dict_omits_empty_fields():
    d = TaskRecord(id="a", title="t").to_dict()
    assert d == {"id": "a", "title": "t", "priority": 0, "completed": False}


def test_task_file_ignores_junk_entries():
    tf = TaskFile.from_dict({"tasks": [{"id": "a"}, "oops", None], "lists": [{"id": "home", "title": "Home"}]})
    assert [t.id for t in tf.tasks] == ["a"]
    assert tf.lists[0].title == "Home"
    assert TaskFile.from_dict(None).tasks == []


def test_settings_defaults():
    s = Settings.from_dict({})
    assert s.grouping == "parent_child"
    assert s.included_lists == []
    assert s.use_exclusion is False
    assert s.log_level == "WARNING"


def test_settings_invalid_grouping_falls_back():
    assert Settings.from_dict({"grouping": "folders"}).grouping == "parent_child"
    assert Settings.from_dict({"grouping": "Legacy_Section"}).grouping == "legacy_section"


def test_settings_round_trip():
    s = Settings(grouping="legacy_section", excluded_lists=["work"], use_exclusion=True, log_level="DEBUG")
    assert Settings.from_dict(s.to_dict()) == s


def test_view_to_dict():
    parent = TaskRecord(id="p", title="Trip", notes="#p-trip")
    child = TaskRecord(id="c", title="Tickets", notes="#i-trip")
    loose = TaskRecord(id="x", title="Loose", notes="#i-gone")
    q = QuadrantView(
        number=4,
        title="Not Important & Not Urgent",
        important=False,
        urgent=False,
        groups=[GroupView(slug="trip", title="Trip", parent=None, children=[child])],
        ungrouped=[RecordEntry(record=loose, child_slug="gone", orphan=True)],
    )
    d = MatrixView(quadrants=[q]).to_dict()
    g = d["quadrants"][0]["groups"][0]
    assert g["parentVisible"] is False
    assert g["parent"] is None
    assert g["children"][0]["id"] == "c"
    e = d["quadrants"][0]["ungrouped"][0]
    assert e["orphan"] is True and e["childSlug"] == "gone"
    assert q.record_count() == 2

    q.groups[0].parent = parent
    assert q.record_count() == 3
