#!/usr/bin/env python3
"""QuadTags TUI — Eisenhower matrix over tasks.yaml, powered by Textual."""

from __future__ import annotations

import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Vertical
from textual.widgets import DataTable, Footer, Header, Label

from quadtags import (
    QUADRANT_TITLES,
    MatrixEngine,
    QuadrantView,
    StoreError,
    TaskRecord,
    YamlTaskStore,
    load_settings,
    parse_parent_slug,
    setup_logging,
    tasks_path,
    workspace_root,
)


CSS = """
#matrix {
    grid-size: 2 2;
    grid-gutter: 1 2;
    height: 1fr;
}

.quadrant {
    border: tall $primary-background-darken-2;
    padding: 0 1;
}

.quadrant:focus-within {
    border: tall $accent;
}

.quadrant-title {
    text-style: bold;
    color: $accent;
}

.quadrant DataTable {
    height: 1fr;
}
"""


def _row_label(record: TaskRecord, prefix: str = "") -> str:
    return f"{prefix}{record.title}"


class QuadrantPane(Vertical):
    """One quadrant: title + table of groups and loose records."""

    def __init__(self, number: int, **kwargs) -> None:
        super().__init__(classes="quadrant", **kwargs)
        self.number = number

    def compose(self) -> ComposeResult:
        yield Label(QUADRANT_TITLES[self.number], classes="quadrant-title")
        yield DataTable(id=f"table-{self.number}", cursor_type="row")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.add_columns("Task", "Group", "Due")

    def show(self, view: QuadrantView) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for g in view.groups:
            if g.parent is not None:
                table.add_row(_row_label(g.parent, "▸ "), f"#p-{g.slug}", g.parent.due_date or "", key=g.parent.id)
            else:
                table.add_row(f"▸ ({g.title})", "", "")
            for child in g.children:
                table.add_row(_row_label(child, "   · "), f"#i-{g.slug}", child.due_date or "", key=child.id)
        for entry in view.ungrouped:
            group = ""
            if entry.child_slug:
                group = f"#i-{entry.child_slug}" + (" ⚠" if entry.orphan else "")
            table.add_row(_row_label(entry.record), group, entry.record.due_date or "", key=entry.record.id)

    def selected_id(self) -> str | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        try:
            key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        except Exception:
            return None
        return key.value if key is not None else None


class QuadTagsApp(App):
    """QuadTags — interactive Eisenhower matrix."""

    TITLE = "QuadTags"
    CSS = CSS

    BINDINGS = [
        Binding("1", "move(1)", "Q1"),
        Binding("2", "move(2)", "Q2"),
        Binding("3", "move(3)", "Q3"),
        Binding("4", "move(4)", "Q4"),
        Binding("c", "complete", "Complete"),
        Binding("g", "ungroup", "Ungroup"),
        Binding("o", "resolve_orphan", "Fix orphan"),
        Binding("u", "undo", "Undo"),
        Binding("ctrl+r", "redo", "Redo"),
        Binding("r", "refresh", "Refresh"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self, engine: MatrixEngine, poll_seconds: float = 2.0) -> None:
        super().__init__()
        self.engine = engine
        self.poll_seconds = poll_seconds

    def compose(self) -> ComposeResult:
        yield Header()
        yield Grid(*(QuadrantPane(n, id=f"q{n}") for n in QUADRANT_TITLES), id="matrix")
        yield Footer()

    def on_mount(self) -> None:
        self.engine.store.subscribe(self._on_store_changed)
        self.action_refresh()
        if isinstance(self.engine.store, YamlTaskStore):
            self.set_interval(self.poll_seconds, self.engine.store.check_for_changes)

    # ── Fetching ───────────────────────────────────────────────

    def _on_store_changed(self) -> None:
        self.action_refresh()

    def action_refresh(self) -> None:
        self._fetch(self.engine.begin_fetch())

    @work(thread=True)
    def _fetch(self, request_id: int) -> None:
        try:
            records = self.engine.store.fetch()
        except StoreError as e:
            self.call_from_thread(self.notify, str(e), title="Fetch failed", severity="error")
            return
        self.call_from_thread(self._apply_fetch, request_id, records)

    def _apply_fetch(self, request_id: int, records: list[TaskRecord]) -> None:
        if self.engine.complete_fetch(request_id, records):
            self._render()

    def _render(self) -> None:
        view = self.engine.matrix()
        for q in view.quadrants:
            self.query_one(f"#q{q.number}", QuadrantPane).show(q)
        self.sub_title = f"{len(self.engine.records)} tasks · {len(self.engine.orphans())} orphans"

    # ── Actions ────────────────────────────────────────────────

    def _selected(self) -> str | None:
        for pane in self.query(QuadrantPane):
            if pane.has_focus_within:
                return pane.selected_id()
        return None

    def _report(self, errors: list[str]) -> None:
        if errors:
            self.notify("; ".join(errors), title="Not applied", severity="warning")
        self._render()

    @on(DataTable.RowSelected)
    def _on_row_selected(self, event: DataTable.RowSelected) -> None:
        record = self.engine.find(str(event.row_key.value)) if event.row_key else None
        if record is not None:
            self.notify(record.notes or "(no notes)", title=record.title)

    def action_move(self, number: int) -> None:
        record_id = self._selected()
        if record_id is None:
            return
        record = self.engine.find(record_id)
        slug = parse_parent_slug(record.notes) if record else None
        if slug:
            self._report(self.engine.drop_group_on_quadrant(slug, number))
        else:
            self._report(self.engine.drop_on_quadrant(record_id, number))

    def action_complete(self) -> None:
        record_id = self._selected()
        if record_id is not None:
            self._report(self.engine.complete(record_id))

    def action_ungroup(self) -> None:
        record_id = self._selected()
        if record_id is None:
            return
        record = self.engine.find(record_id)
        slug = parse_parent_slug(record.notes) if record else None
        if slug:
            self._report(self.engine.dissolve_group(slug))
        else:
            self._report(self.engine.remove_from_group(record_id))

    def action_resolve_orphan(self) -> None:
        record_id = self._selected()
        if record_id is not None and self.engine.is_orphan(record_id):
            self._report(self.engine.resolve_orphan(record_id))

    def action_undo(self) -> None:
        self._report(self.engine.undo())

    def action_redo(self) -> None:
        self._report(self.engine.redo())

    def action_quit_app(self) -> None:
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    path = tasks_path(root)
    if not path.exists():
        print(f"Task file not found: {path}")
        print("Set QUADTAGS_ROOT to a directory containing tasks.yaml.")
        sys.exit(1)

    settings = load_settings(root)
    setup_logging(settings.log_level)
    engine = MatrixEngine(YamlTaskStore(path), settings, subscribe=False)
    QuadTagsApp(engine, settings.poll_seconds).run()


if __name__ == "__main__":
    main()
