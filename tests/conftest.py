import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fetchexec.internal.constants import ENV_CACHE_DIR, ENV_HOME, ENV_HTTP_TIMEOUT, ENV_LOG_LEVEL
from fetchexec.kernel.environment import EnvironmentContext


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """
    Point the app home and the download cache at per-test directories so
    nothing leaks into the real temp dir or ~/.fetchexec.
    """
    home = tmp_path / "home"
    cache = tmp_path / "cache"
    monkeypatch.setenv(ENV_HOME, str(home))
    monkeypatch.setenv(ENV_CACHE_DIR, str(cache))
    monkeypatch.delenv(ENV_HTTP_TIMEOUT, raising=False)
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
    return {"home": home, "cache": cache}


@pytest.fixture
def cache_dir(isolated_dirs):
    path = isolated_dirs["cache"]
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def context():
    return EnvironmentContext({"FOO": "bar", "PROGRAMFILES": r"C:\Program Files"})


@pytest.fixture
def make_zip(tmp_path):
    """
    Build a zip archive from {name: bytes}. Names ending in '/' become
    directory entries.
    """
    def _make(entries: dict, name: str = "archive.zip") -> Path:
        archive = tmp_path / name
        with zipfile.ZipFile(archive, "w") as zf:
            for entry_name, data in entries.items():
                if entry_name.endswith("/"):
                    info = zipfile.ZipInfo(entry_name)
                    info.create_system = 3
                    info.external_attr = (0o40755 << 16) | 0x10
                    zf.writestr(info, b"")
                else:
                    zf.writestr(entry_name, data)
        return archive

    return _make


def make_streaming_response(chunks, status_code=200, headers=None, error=None):
    """
    A stand-in for a streaming requests.Response. Yields `chunks`, then
    raises `error` if given.
    """
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}

    def iter_content(chunk_size=None):
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    response.iter_content.side_effect = iter_content
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def streaming_response():
    return make_streaming_response
