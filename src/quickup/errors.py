"""Errors raised by quickup.

Every error carries the process exit status the CLI uses when it
surfaces the error to the operator.
"""


class QuickupError(Exception):
    """Base exception for quickup errors."""

    exit_code = 1


class NotInstalled(QuickupError):
    """Raised when no installation record exists."""

    exit_code = 3


class NetworkUnavailable(QuickupError):
    """Raised when the release endpoints cannot be reached at all."""

    exit_code = 4


class ReleaseUnavailable(QuickupError):
    """Raised when no matching release could be resolved after retries."""

    exit_code = 5


class ArtifactFetchFailed(QuickupError):
    """Raised when a download still fails after the retry bound."""

    exit_code = 6


class InstallFailed(QuickupError):
    """Raised when the package installer reports failure."""

    exit_code = 7


class NoRollbackAvailable(QuickupError):
    """Raised when a rollback is requested with an empty journal."""

    exit_code = 8


class LockError(QuickupError):
    """Raised when another quickup process holds the run lock."""

    exit_code = 9


class ValidationFailed(QuickupError):
    """Post-update smoke check failed.

    Never fatal: the orchestrator records it as a warning.
    """


class InvalidTransition(QuickupError):
    """Raised on an illegal orchestrator state transition."""
