"""Workspace root, path helpers, settings and logging setup for QuadTags."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from quadtags.fileio import read_yaml, write_yaml_atomic
from quadtags.models import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def workspace_root() -> Path:
    """Get the workspace root directory (contains tasks.yaml and config.yaml)."""
    return Path(
        os.environ.get("QUADTAGS_ROOT", str(Path.home() / "quadtags"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def tasks_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tasks.yaml"


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


# ── Settings ──────────────────────────────────────────────────

def load_settings(root: Path | None = None) -> Settings:
    """Load config.yaml into Settings, defaulting anything missing."""
    return Settings.from_dict(read_yaml(config_path(root)))


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(config_path(root), settings.to_dict())


# ── Logging ───────────────────────────────────────────────────

def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Attach one stream handler to the quadtags logger (idempotent)."""
    logger = logging.getLogger("quadtags")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    return logger
