"""Shared test fixtures for QuadTags tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from quadtags.engine import MatrixEngine
from quadtags.models import TaskRecord
from quadtags.store import MemoryTaskStore


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with tasks.yaml and config.yaml."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    tasks = {
        "lists": [
            {"id": "home", "title": "Home"},
            {"id": "work", "title": "Work"},
        ],
        "tasks": [
            {"id": "milk", "title": "Buy milk", "notes": "#important", "priority": 0, "list": "home"},
            {"id": "trip", "title": "Plan trip", "notes": "#p-trip #important #urgent", "list": "home"},
            {"id": "tickets", "title": "Book tickets", "notes": "#i-trip #urgent", "due": "2026-10-20", "list": "home"},
            {"id": "hotel", "title": "Find hotel", "notes": "#i-trip", "list": "home"},
            {"id": "report", "title": "Quarterly report", "notes": "#i-q3", "priority": 1, "list": "work"},
            {"id": "done", "title": "Old thing", "completed": True, "list": "work"},
        ],
    }
    (root / "tasks.yaml").write_text(
        yaml.dump(tasks, default_flow_style=False, sort_keys=False), encoding="utf-8"
    )

    config = {"grouping": "parent_child", "log_level": "DEBUG", "poll_seconds": 1}
    (root / "config.yaml").write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    os.environ["QUADTAGS_ROOT"] = str(root)
    yield root
    if "QUADTAGS_ROOT" in os.environ:
        del os.environ["QUADTAGS_ROOT"]


def sample_records() -> list[TaskRecord]:
    return [
        TaskRecord(id="milk", title="Buy milk", notes="#important", list_id="home"),
        TaskRecord(id="trip", title="Plan trip", notes="#p-trip", list_id="home"),
        TaskRecord(id="tickets", title="Book tickets", notes="#i-trip #urgent", due_date="2026-10-20", list_id="home"),
        TaskRecord(id="hotel", title="Find hotel", notes="#i-trip", list_id="home"),
        TaskRecord(id="report", title="Quarterly report", notes="#i-q3", priority_flag=1, list_id="work"),
        TaskRecord(id="call", title="Call plumber", list_id="home"),
    ]


@pytest.fixture
def store() -> MemoryTaskStore:
    return MemoryTaskStore(sample_records())


@pytest.fixture
def engine(store: MemoryTaskStore) -> MatrixEngine:
    e = MatrixEngine(store)
    e.refresh()
    return e
