"""External service integrations for quickup.

This package provides interfaces to external systems:
- github: GitHub releases API and raw content
- fetcher: Streaming artifact downloads
- installer: pipx install and post-install probe
- storage: Atomic text-file persistence
- retry: Fixed-backoff retry policy
"""

from .fetcher import ArtifactFetcher, artifact_filename
from .github import GitHubAPIError, GitHubClient, parse_release
from .installer import PipxInstaller, run_command
from .retry import RetryPolicy
from .storage import FileStorage, MemoryStorage, Storage

__all__ = [
    "ArtifactFetcher",
    "FileStorage",
    "GitHubAPIError",
    "GitHubClient",
    "MemoryStorage",
    "PipxInstaller",
    "RetryPolicy",
    "Storage",
    "artifact_filename",
    "parse_release",
    "run_command",
]
