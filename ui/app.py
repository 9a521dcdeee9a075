from __future__ import annotations

import os
import secrets
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from quadtags import (
    MatrixEngine,
    MatrixView,
    YamlTaskStore,
    is_conflict,
    is_save_failure,
    load_settings,
    save_settings,
    setup_logging,
    tasks_path,
    workspace_root,
)

ASSET_V = "20261018-01"


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _render_matrix(view: MatrixView) -> str:
    cells = []
    for q in view.quadrants:
        rows = []
        for g in q.groups:
            head = _escape(g.parent.title) if g.parent else f'<span class="muted">{_escape(g.title)}</span>'
            kids = "".join(f"<li>{_escape(c.title)}</li>" for c in g.children)
            rows.append(f'<li class="group"><b>{head}</b> <code>{_escape(g.slug)}</code><ul>{kids}</ul></li>')
        for e in q.ungrouped:
            flag = ' <span class="orphan" title="no parent for this group">!</span>' if e.orphan else ""
            rows.append(f"<li>{_escape(e.record.title)}{flag}</li>")
        body = "".join(rows) or '<li class="muted">(empty)</li>'
        cells.append(f'<section class="q q{q.number}"><h2>{_escape(q.title)}</h2><ul>{body}</ul></section>')
    return "".join(cells)


# ── Engine ────────────────────────────────────────────────────

_ENGINE: MatrixEngine | None = None


def get_engine() -> MatrixEngine:
    """Process-wide engine over the workspace tasks.yaml; polls for outside edits."""
    global _ENGINE
    if _ENGINE is None:
        root = workspace_root()
        settings = load_settings(root)
        setup_logging(settings.log_level)
        _ENGINE = MatrixEngine(YamlTaskStore(tasks_path(root)), settings)
        _ENGINE.refresh()
    elif isinstance(_ENGINE.store, YamlTaskStore):
        _ENGINE.store.check_for_changes()
    return _ENGINE


def _raise_for(errors: list[str]) -> None:
    if not errors:
        return
    detail = "; ".join(errors)
    if is_conflict(errors):
        raise HTTPException(status_code=409, detail=detail)
    if is_save_failure(errors):
        raise HTTPException(status_code=502, detail=detail)
    if any(e.startswith("Record not found") for e in errors):
        raise HTTPException(status_code=404, detail=detail)
    raise HTTPException(status_code=400, detail=detail)


def _quadrant_from(payload: dict[str, Any]) -> int:
    try:
        number = int(payload.get("quadrant", 0))
    except (TypeError, ValueError):
        number = 0
    if number not in (1, 2, 3, 4):
        raise HTTPException(status_code=400, detail="quadrant must be 1-4")
    return number


def _require_record(engine: MatrixEngine, record_id: str) -> None:
    if engine.find(record_id) is None:
        raise HTTPException(status_code=404, detail=f"Record not found: {record_id}")


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="QuadTags UI", version="0.1.0")

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("QUADTAGS_USERNAME", "")
    expected_password = os.environ.get("QUADTAGS_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Pages ─────────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> HTMLResponse:
    grid = _render_matrix(engine.matrix())
    html = f"""<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>QuadTags</title>
<style>
body {{ font-family: system-ui, sans-serif; margin: 1rem; }}
main {{ display: grid; grid-template-columns: 1fr 1fr; gap: 1rem; }}
.q {{ border: 1px solid #ccc; border-radius: 6px; padding: 0 1rem; }}
.q1 {{ background: #fdecea; }} .q2 {{ background: #eef6ee; }}
.q3 {{ background: #fff6e0; }} .q4 {{ background: #f3f3f3; }}
.muted {{ color: #888; }} .orphan {{ color: #c90; font-weight: bold; }}
</style>
</head>
<body data-v="{ASSET_V}">
<header>QuadTags &middot; {_escape(username)}</header>
<main>{grid}</main>
</body>
</html>"""
    return HTMLResponse(html)


# ── Matrix API ────────────────────────────────────────────────

@app.get("/api/matrix")
def api_matrix(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Current matrix view, recomputed from marker text."""
    data = engine.matrix().to_dict()
    data["canUndo"] = engine.undo_stack.can_undo()
    data["canRedo"] = engine.undo_stack.can_redo()
    return data


@app.post("/api/refresh")
def api_refresh(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"ok": engine.refresh(), "count": len(engine.records)}


@app.post("/api/records/{record_id}/quadrant")
def api_move_record(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Drop a record on a quadrant (undoable)."""
    number = _quadrant_from(payload)
    _require_record(engine, record_id)
    _raise_for(engine.drop_on_quadrant(record_id, number))
    return {"ok": True, "record_id": record_id, "quadrant": number}


@app.post("/api/records/{record_id}/group")
def api_group_record(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Drop record_id onto payload['target']; payload['slug'] names a new group."""
    target = payload.get("target")
    if not target:
        raise HTTPException(status_code=400, detail="Missing target")
    _require_record(engine, record_id)
    _require_record(engine, str(target))
    slug, errors = engine.drop_on_record(str(target), record_id, payload.get("slug"))
    _raise_for(errors)
    return {"ok": True, "slug": slug}


@app.delete("/api/records/{record_id}/group")
def api_ungroup_record(record_id: str, engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_record(engine, record_id)
    _raise_for(engine.remove_from_group(record_id))
    return {"ok": True, "record_id": record_id}


@app.post("/api/records/{record_id}/orphan")
def api_resolve_orphan(
    record_id: str,
    payload: dict[str, Any] = Body(default={}),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    _require_record(engine, record_id)
    _raise_for(engine.resolve_orphan(record_id, adopt=bool(payload.get("adopt", False))))
    return {"ok": True, "record_id": record_id}


@app.post("/api/records/{record_id}/section")
def api_set_section(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    tag = str(payload.get("tag", "")).strip()
    if not tag:
        raise HTTPException(status_code=400, detail="Missing tag")
    _require_record(engine, record_id)
    final, errors = engine.set_section(record_id, tag, enforce_unique=bool(payload.get("enforce_unique", True)))
    _raise_for(errors)
    return {"ok": True, "tag": final}


@app.delete("/api/records/{record_id}/section")
def api_clear_section(record_id: str, engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_record(engine, record_id)
    _raise_for(engine.clear_section(record_id))
    return {"ok": True, "record_id": record_id}


@app.post("/api/records/{record_id}/complete")
def api_complete(record_id: str, engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_record(engine, record_id)
    _raise_for(engine.complete(record_id))
    return {"ok": True, "record_id": record_id}


# ── Groups ────────────────────────────────────────────────────

def _group_or_404(engine: MatrixEngine, slug: str) -> None:
    if not any(g.slug.casefold() == slug.casefold() for g in engine.groups()):
        raise HTTPException(status_code=404, detail=f"Group not found: {slug}")


@app.post("/api/groups/{slug}/rename")
def api_rename_group(
    slug: str,
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    _group_or_404(engine, slug)
    final, errors = engine.rename_group(slug, str(payload.get("name", "")))
    _raise_for(errors)
    return {"ok": True, "slug": final}


@app.post("/api/groups/{slug}/quadrant")
def api_move_group(
    slug: str,
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    number = _quadrant_from(payload)
    _group_or_404(engine, slug)
    _raise_for(engine.drop_group_on_quadrant(slug, number))
    return {"ok": True, "slug": slug, "quadrant": number}


@app.delete("/api/groups/{slug}")
def api_dissolve_group(slug: str, engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    _group_or_404(engine, slug)
    _raise_for(engine.dissolve_group(slug))
    return {"ok": True, "slug": slug}


# ── List selection ────────────────────────────────────────────

def _selection(engine: MatrixEngine) -> dict[str, Any]:
    s = engine.settings
    return {
        "lists": [l.to_dict() for l in engine.lists()],
        "included_lists": list(s.included_lists),
        "excluded_lists": list(s.excluded_lists),
        "use_exclusion": s.use_exclusion,
    }


@app.get("/api/lists")
def api_lists(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return _selection(engine)


@app.post("/api/lists")
def api_select_lists(
    payload: dict[str, Any] = Body(...),
    engine: MatrixEngine = Depends(get_engine),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Update the include/exclude list selection; persisted to config.yaml for file-backed engines."""
    s = engine.settings
    for key in ("included_lists", "excluded_lists"):
        if key in payload:
            value = payload[key]
            if not isinstance(value, list):
                raise HTTPException(status_code=400, detail=f"{key} must be a list")
            setattr(s, key, [str(x) for x in value])
    if "use_exclusion" in payload:
        s.use_exclusion = bool(payload["use_exclusion"])
    if isinstance(engine.store, YamlTaskStore):
        save_settings(s, engine.store.path.parent)
    return _selection(engine)


# ── Undo ──────────────────────────────────────────────────────

@app.post("/api/undo")
def api_undo(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    if not engine.undo_stack.can_undo():
        raise HTTPException(status_code=409, detail="Nothing to undo")
    _raise_for(engine.undo())
    return {"ok": True, "canUndo": engine.undo_stack.can_undo(), "canRedo": engine.undo_stack.can_redo()}


@app.post("/api/redo")
def api_redo(engine: MatrixEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
    if not engine.undo_stack.can_redo():
        raise HTTPException(status_code=409, detail="Nothing to redo")
    _raise_for(engine.redo())
    return {"ok": True, "canUndo": engine.undo_stack.can_undo(), "canRedo": engine.undo_stack.can_redo()}
