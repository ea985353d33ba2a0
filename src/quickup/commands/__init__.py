"""CLI command implementations for quickup.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .init import init
from .scripts import scripts_app
from .status import status
from .update import rollback, update

__all__ = [
    "init",
    "rollback",
    "scripts_app",
    "status",
    "update",
]
