"""Tests for quadtags/classifier.py — quadrant classification."""

import pytest

from quadtags.classifier import categorize, flags_for_quadrant, partition, quadrant
from quadtags.models import PRIORITY_HIGH, TaskRecord


def test_buy_milk_important_only():
    r = TaskRecord(id="a", title="Buy milk", notes="#important")
    assert categorize(r) == (True, False)
    assert quadrant(r) == 2


def test_quadrant_mapping():
    assert quadrant(TaskRecord(notes="#important #urgent")) == 1
    assert quadrant(TaskRecord(notes="#urgent")) == 3
    assert quadrant(TaskRecord(notes="")) == 4


def test_priority_and_due_date_do_not_classify():
    r = TaskRecord(title="Pay rent", priority_flag=PRIORITY_HIGH, due_date="2026-10-18")
    assert categorize(r) == (False, False)
    assert quadrant(r) == 4


def test_title_word_classifies():
    assert categorize(TaskRecord(title="Urgent: call bank")) == (False, True)
    assert categorize(TaskRecord(title="#important: Buy milk")) == (True, False)


def test_flags_for_quadrant_inverts_mapping():
    for n in (1, 2, 3, 4):
        important, urgent = flags_for_quadrant(n)
        notes = " ".join(t for t, on in (("#important", important), ("#urgent", urgent)) if on)
        assert quadrant(TaskRecord(notes=notes)) == n


def test_flags_for_quadrant_invalid():
    with pytest.raises(ValueError, match="Invalid quadrant"):
        flags_for_quadrant(5)


def test_partition_preserves_order():
    records = [
        TaskRecord(id="a", notes="#urgent"),
        TaskRecord(id="b"),
        TaskRecord(id="c", notes="#urgent"),
    ]
    parts = partition(records)
    assert [r.id for r in parts[3]] == ["a", "c"]
    assert [r.id for r in parts[4]] == ["b"]
    assert parts[1] == [] and parts[2] == []
