"""QuadTags core library — marker-driven Eisenhower matrix and task grouping.

Public API re-exports for convenient imports:
    from quadtags import MatrixEngine, YamlTaskStore, categorize, build_groups, ...
"""

# Models
from quadtags.models import (
    PRIORITY_NONE,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    TaskRecord,
    TaskList,
    TaskFile,
    Settings,
    Group,
    LegacySection,
    RecordEntry,
    GroupView,
    QuadrantView,
    MatrixView,
)

# Marker grammar
from quadtags.scanner import (
    parse_important,
    parse_urgent,
    parse_legacy_section,
    parse_parent_slug,
    parse_child_slug,
    has_parent_and_child,
    prettify_slug,
    normalize_slug,
)

# Classification
from quadtags.classifier import (
    QUADRANT_TITLES,
    categorize,
    quadrant,
    flags_for_quadrant,
    partition,
)

# Grouping
from quadtags.grouping import (
    GROUPING_STRATEGIES,
    parse_group_role,
    build_groups,
    build_legacy_sections,
    ungrouped,
    is_orphan,
    find_orphans,
    candidate_parents,
)

# Mutation & undo
from quadtags.mutator import TagMutator, is_conflict, is_save_failure
from quadtags.undo import FieldSnapshot, FieldCommand, UndoStack, UndoCoordinator

# Ordering
from quadtags.ordering import move_items, reorder_subset, move_to_front

# View model
from quadtags.view import build_matrix

# Stores
from quadtags.store import StoreError, TaskStore, MemoryTaskStore, YamlTaskStore

# Engine
from quadtags.engine import MatrixEngine

# Workspace
from quadtags.workspace import (
    workspace_root,
    tasks_path,
    config_path,
    load_settings,
    save_settings,
    setup_logging,
)
