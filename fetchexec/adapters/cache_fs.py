"""
A filesystem cache of downloaded installers.

Entries are named after the CRC32 of their URL and are only ever created by
renaming a fully written `<name>.tmp` onto `<name>`, so a file under its final
name is always complete. Once present an entry is reused until the caller
forces a re-fetch.
"""
import os
import threading
import weakref
from pathlib import Path
from typing import Optional

import requests
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)

from fetchexec.adapters.http_fetcher import HttpFetcher
from fetchexec.internal import paths
from fetchexec.internal.constants import DOWNLOAD_CHUNK_SIZE, TEMP_SUFFIX
from fetchexec.internal.logging import get_logger
from fetchexec.kernel.artifacts import ArtifactCache, ArtifactRef
from fetchexec.kernel.errors import FilesystemError, NetworkError, UnexpectedStatusError


class _KeyedLocks:
    """
    One lock per cache path, so two installs of the same URL fetch once.
    Entries live only while some caller holds the lock object.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def for_key(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def __len__(self) -> int:
        return len(self._locks)


_LOCKS = _KeyedLocks()


def _content_length(response: requests.Response) -> Optional[int]:
    try:
        return int(response.headers["Content-Length"])
    except (KeyError, TypeError, ValueError):
        return None


class FileSystemArtifactCache(ArtifactCache):
    """
    Maps URLs to deterministic local paths and downloads what is missing.
    """

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        cache_dir: Optional[Path] = None,
        show_progress: bool = False,
        console: Optional[Console] = None,
    ):
        self.logger = get_logger(self.__class__.__name__)
        self.fetcher = fetcher or HttpFetcher()
        self.cache_dir = Path(cache_dir) if cache_dir is not None else paths.get_cache_dir()
        self.show_progress = show_progress
        self.console = console or Console(stderr=True)

    def cache_path(self, url: str, extension: Optional[str] = None) -> Path:
        return ArtifactRef(url=url, cache_dir=self.cache_dir, extension=extension).cache_path

    def ensure(self, url: str, extension: Optional[str] = None, force: bool = False) -> Path:
        destination = self.cache_path(url, extension)

        if not force and destination.is_file():
            self.logger.debug("Cache hit", url=url, path=str(destination))
            return destination

        with _LOCKS.for_key(str(destination)):
            # Another thread may have finished the same download while we waited.
            if not force and destination.is_file():
                return destination
            self.download(url, destination)

        return destination

    def download(self, url: str, destination: Path) -> None:
        """
        Download `url` to `destination`, always overwriting it. The body goes
        to `destination.tmp` first and is renamed into place only once fully
        written and closed.
        """
        temp_path = destination.with_name(destination.name + TEMP_SUFFIX)
        self.logger.info("Downloading", url=url, path=str(destination))

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Unable to create cache directory {destination.parent}: {e}") from e

        try:
            with self.fetcher.get(url) as response:
                if response.status_code != 200:
                    raise UnexpectedStatusError(url, response.status_code)
                self._write_body(response, temp_path, label=destination.name)
            os.replace(temp_path, destination)
        except requests.RequestException as e:
            self._discard(temp_path)
            self.logger.error("Error downloading file", url=url, error=str(e))
            raise NetworkError(f"Error downloading {url}: {e}") from e
        except OSError as e:
            self._discard(temp_path)
            self.logger.error("Cannot write cache entry", url=url, path=str(destination), error=str(e))
            raise FilesystemError(f"Cannot write {destination}: {e}") from e
        except BaseException:
            self._discard(temp_path)
            raise

        self.logger.info("Download complete", url=url, path=str(destination), size=destination.stat().st_size)

    def _write_body(self, response: requests.Response, temp_path: Path, label: str) -> None:
        total = _content_length(response)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=self.console,
            disable=not self.show_progress,
            transient=True,
        ) as progress:
            task_id = progress.add_task(f"↓ {label}", total=total)
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    progress.advance(task_id, len(chunk))

    def _discard(self, temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            # A stale .tmp never shadows a real entry; leave it for the next attempt.
            self.logger.warning("Could not remove partial download", path=str(temp_path), error=str(e))
