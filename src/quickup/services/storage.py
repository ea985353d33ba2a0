"""Small storage interface for persistent state files.

The installation record and the rollback record are plain text files.
Components receive a Storage instead of touching the filesystem so
tests can swap in MemoryStorage.
"""

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Protocol


class Storage(Protocol):
    """Text storage keyed by path."""

    def read_text(self, path: Path) -> str | None:
        """Return file content, or None if the file does not exist."""
        ...

    def write_text(self, path: Path, content: str) -> None:
        """Durably replace the file content."""
        ...

    def delete(self, path: Path) -> None:
        """Remove the file if it exists."""
        ...


class FileStorage:
    """Storage backed by the local filesystem.

    Writes go to a temporary file in the same directory, are fsynced,
    then renamed over the target so readers never see a partial file.
    """

    def read_text(self, path: Path) -> str | None:
        try:
            return path.read_text()
        except FileNotFoundError:
            return None

    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
        _fsync_dir(path.parent)

    def delete(self, path: Path) -> None:
        path.unlink(missing_ok=True)


class MemoryStorage:
    """In-memory Storage for tests."""

    def __init__(self, files: dict[Path, str] | None = None) -> None:
        self.files: dict[Path, str] = dict(files or {})

    def read_text(self, path: Path) -> str | None:
        return self.files.get(path)

    def write_text(self, path: Path, content: str) -> None:
        self.files[path] = content

    def delete(self, path: Path) -> None:
        self.files.pop(path, None)


def _fsync_dir(directory: Path) -> None:
    """Flush a directory entry so a rename survives a crash (POSIX only)."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
