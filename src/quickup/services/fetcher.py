"""Artifact downloads with bounded retries.

Downloads stream into ``<dest>.part`` and are renamed into place only
once complete, so callers never observe a partial file. A failed
attempt removes the partial file before the next one starts.
"""

import contextlib
import logging
import os
from pathlib import Path

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from ..errors import ArtifactFetchFailed
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
ARCHIVE_SUFFIXES = (".whl", ".tar.gz", ".zip")


class ArtifactFetcher:
    """Streams URLs to local files."""

    def __init__(
        self,
        http: httpx.Client,
        scratch_dir: Path,
        retry: RetryPolicy | None = None,
        console: Console | None = None,
        show_progress: bool = True,
    ) -> None:
        self.http = http
        self.scratch_dir = scratch_dir
        self.retry = retry or RetryPolicy()
        self.console = console or Console(stderr=True)
        self.show_progress = show_progress

    def fetch(self, url: str, filename: str) -> Path:
        """Download url into the scratch directory.

        Args:
            url: Source URL
            filename: Name of the local file

        Returns:
            Path to the complete file

        Raises:
            ArtifactFetchFailed: If every attempt failed
        """
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        return self.download_to(url, self.scratch_dir / filename)

    def download_to(self, url: str, dest: Path) -> Path:
        """Download url to dest, retrying with the fixed policy."""
        try:
            self.retry.run(
                lambda: self._download_once(url, dest),
                retry_on=(httpx.HTTPError, OSError),
                description=f"Download of {dest.name}",
            )
        except (httpx.HTTPError, OSError) as e:
            raise ArtifactFetchFailed(
                f"Failed to download {url} after {self.retry.attempts} attempts: {e}"
            ) from e
        logger.debug("Downloaded %s to %s", url, dest)
        return dest

    def _download_once(self, url: str, dest: Path) -> None:
        part = dest.with_name(dest.name + ".part")
        with contextlib.suppress(FileNotFoundError):
            part.unlink()
        try:
            with self.http.stream("GET", url) as response:
                response.raise_for_status()
                total = int(response.headers.get("Content-Length", 0)) or None
                with open(part, "wb") as f, self._progress() as progress:
                    task = progress.add_task(dest.name, total=total)
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        progress.update(task, advance=len(chunk))
                    f.flush()
                    os.fsync(f.fileno())
            os.replace(part, dest)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                part.unlink()
            raise

    def _progress(self) -> Progress:
        return Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=self.console,
            transient=True,
            disable=not self.show_progress,
        )


def artifact_filename(url: str, package: str, version: str) -> str:
    """Local filename for a download URL.

    API tarball URLs have no extension, so they get a synthetic name.
    """
    name = url.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(ARCHIVE_SUFFIXES):
        return name
    return f"{package}-{version}.tar.gz"
