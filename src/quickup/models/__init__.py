"""Pydantic data models for quickup.

This package defines the data structures used throughout quickup for:
- Version identifiers (VersionIdentifier, BuildKind)
- Release metadata and selected artifacts (ReleaseDescriptor, Artifact)
- Managed script state and sync outcomes (ManagedScript, SyncResult)
- Installation and lock state (InstallationRecord, Lock)
- Script directory snapshots (BackupSnapshot)
- Orchestrator results (UpdateResult)

All models are Pydantic BaseModel subclasses, enabling:
- Automatic JSON serialization for --json output and on-disk metadata
- Field validation and type coercion

Example:
    >>> from quickup.models import ReleaseDescriptor
    >>> ReleaseDescriptor(tag="v0.2.0").version
    '0.2.0'
"""

from .backup import BackupSnapshot
from .installation import UNKNOWN_VERSION, InstallationRecord
from .lock import Lock
from .release import Artifact, ArtifactKind, ReleaseAsset, ReleaseDescriptor
from .result import UpdateOutcome, UpdateResult
from .script import FETCH_FAILED, MISSING, ManagedScript, ScriptStatus, SyncResult
from .version import DEV_MARKER, BuildKind, VersionIdentifier

__all__ = [
    "DEV_MARKER",
    "FETCH_FAILED",
    "MISSING",
    "UNKNOWN_VERSION",
    "Artifact",
    "ArtifactKind",
    "BackupSnapshot",
    "BuildKind",
    "InstallationRecord",
    "Lock",
    "ManagedScript",
    "ReleaseAsset",
    "ReleaseDescriptor",
    "ScriptStatus",
    "SyncResult",
    "UpdateOutcome",
    "UpdateResult",
    "VersionIdentifier",
]
