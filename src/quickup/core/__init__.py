"""Core update logic for quickup.

This package contains the update and rollback machinery:
- versioning: Version parsing and ordering
- installation: Installation record (.env) access
- rollback_journal: Single-slot rollback record
- release_resolver: Release selection and artifact priority
- backup_manager: Scripts directory snapshots
- script_sync: Maintenance script drift detection and update
- lock_manager: Single-instance run lock
- orchestrator: Update/rollback state machine
"""

from .backup_manager import create_snapshot, list_snapshots, prune_snapshots, restore_snapshot
from .context import UpdaterContext, build_context
from .installation import is_known_version, load_installation, set_installed_version
from .lock_manager import acquire_lock, hold_lock, release_lock, update_heartbeat
from .orchestrator import UpdateOptions, UpdateOrchestrator, UpdateState
from .release_resolver import ReleaseResolver, ReleaseSelector
from .rollback_journal import RollbackJournal
from .script_sync import ScriptSyncEngine
from .versioning import VersionOrder, compare, is_downgrade, normalize, parse_version

__all__ = [
    "ReleaseResolver",
    "ReleaseSelector",
    "RollbackJournal",
    "ScriptSyncEngine",
    "UpdateOptions",
    "UpdateOrchestrator",
    "UpdateState",
    "UpdaterContext",
    "VersionOrder",
    "acquire_lock",
    "build_context",
    "compare",
    "create_snapshot",
    "hold_lock",
    "is_downgrade",
    "is_known_version",
    "list_snapshots",
    "load_installation",
    "normalize",
    "parse_version",
    "prune_snapshots",
    "release_lock",
    "restore_snapshot",
    "set_installed_version",
    "update_heartbeat",
]
