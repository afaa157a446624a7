"""
Defines how an installer artifact is identified and where it lives in the cache.

The cache path is a pure function of (URL, extension, cache directory): the
filename is the CRC32 of the URL in uppercase hex followed by the extension.
"""
import zlib
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlsplit

from fetchexec.kernel.errors import InvalidURLError


def crc32_hex(s: str) -> str:
    """CRC32 (IEEE) of a string as unpadded uppercase hex."""
    return f"{zlib.crc32(s.encode('utf-8')) & 0xFFFFFFFF:X}"


def url_extension(url: str) -> str:
    """
    Returns the extension of the last path segment of a URL, dot included.

    Only the path is considered, never the query string or fragment. A
    segment without a dot has no extension.
    """
    try:
        path = urlsplit(url).path
    except ValueError as e:
        raise InvalidURLError(f"Unable to parse the URL: {url}") from e

    segment = path.rsplit("/", 1)[-1]
    dot = segment.rfind(".")
    return segment[dot:] if dot >= 0 else ""


def cache_filename(url: str, extension: Optional[str] = None) -> str:
    ext = extension if extension else url_extension(url)
    return crc32_hex(url) + ext


@dataclass(frozen=True)
class ArtifactRef:
    """
    A reference to an installer artifact: where it comes from and where it is cached.
    Two refs with the same URL and extension always resolve to the same path.
    """
    url: str
    cache_dir: Path
    extension: Optional[str] = None

    def __post_init__(self):
        if not self.url:
            raise InvalidURLError("url cannot be empty")

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir) / cache_filename(self.url, self.extension)


class ArtifactCache(Protocol):
    """
    The interface (port) for anything that can make an artifact available locally.
    """

    @abstractmethod
    def cache_path(self, url: str, extension: Optional[str] = None) -> Path:
        """
        Computes where the artifact for `url` lives. Must not touch the network.
        """
        ...

    @abstractmethod
    def ensure(self, url: str, extension: Optional[str] = None, force: bool = False) -> Path:
        """
        Ensures the artifact is present locally, downloading it if missing
        or if `force` is set, and returns its path.
        """
        ...
