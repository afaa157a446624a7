import gc
import io
import threading
import time

import pytest
import requests
from rich.console import Console

from fetchexec.adapters.cache_fs import FileSystemArtifactCache, _KeyedLocks
from fetchexec.adapters.http_fetcher import HttpFetcher
from fetchexec.kernel.artifacts import cache_filename
from fetchexec.kernel.errors import FilesystemError, NetworkError, UnexpectedStatusError
from tests.conftest import make_streaming_response

URL = "http://example.com/tools/setup.exe"


@pytest.fixture
def fetcher():
    return HttpFetcher(timeout=5)


@pytest.fixture
def cache(fetcher, cache_dir):
    return FileSystemArtifactCache(fetcher=fetcher, cache_dir=cache_dir)


def _leftovers(directory):
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".tmp"))


def test_cache_path_is_crc32_of_url(cache, cache_dir):
    assert cache.cache_path(URL) == cache_dir / cache_filename(URL)
    assert cache.cache_path(URL, ".msi").suffix == ".msi"


def test_default_cache_dir_comes_from_environment(isolated_dirs, fetcher):
    assert FileSystemArtifactCache(fetcher=fetcher).cache_dir == isolated_dirs["cache"]


def test_miss_downloads_into_cache(cache, requests_mock):
    requests_mock.get(URL, content=b"installer-bytes")

    path = cache.ensure(URL)

    assert path == cache.cache_path(URL)
    assert path.read_bytes() == b"installer-bytes"
    assert _leftovers(path.parent) == []


def test_hit_does_not_fetch_again(cache, requests_mock):
    requests_mock.get(URL, content=b"v1")

    first = cache.ensure(URL)
    second = cache.ensure(URL)

    assert first == second
    assert requests_mock.call_count == 1


def test_force_fetches_again_and_overwrites(cache, requests_mock):
    requests_mock.get(URL, [{"content": b"v1"}, {"content": b"v2"}])

    cache.ensure(URL)
    path = cache.ensure(URL, force=True)

    assert requests_mock.call_count == 2
    assert path.read_bytes() == b"v2"


def test_explicit_extension_names_the_entry(cache, requests_mock):
    url = "http://example.com/download?id=42"
    requests_mock.get(url, content=b"PK")

    path = cache.ensure(url, ".zip")

    assert path.name == cache_filename(url) + ".zip"


def test_http_error_leaves_no_entry(cache, requests_mock):
    requests_mock.get(URL, status_code=404)

    with pytest.raises(UnexpectedStatusError):
        cache.ensure(URL)

    assert not cache.cache_path(URL).exists()
    assert _leftovers(cache.cache_dir) == []


def test_non_200_success_status_is_rejected(cache, requests_mock):
    requests_mock.get(URL, status_code=203, content=b"partial")

    with pytest.raises(UnexpectedStatusError) as excinfo:
        cache.ensure(URL)

    assert excinfo.value.status_code == 203
    assert not cache.cache_path(URL).exists()


def test_interrupted_download_leaves_no_entry(cache, fetcher, mocker):
    response = make_streaming_response(
        [b"first-half"], error=requests.exceptions.ChunkedEncodingError("connection reset")
    )
    mocker.patch.object(fetcher, "get", return_value=response)

    with pytest.raises(NetworkError):
        cache.ensure(URL)

    assert not cache.cache_path(URL).exists()
    assert _leftovers(cache.cache_dir) == []
    response.__exit__.assert_called_once()


def test_failed_refetch_keeps_previous_entry(cache, requests_mock):
    requests_mock.get(URL, [{"content": b"good"}, {"status_code": 500}])

    path = cache.ensure(URL)
    with pytest.raises(UnexpectedStatusError):
        cache.ensure(URL, force=True)

    assert path.read_bytes() == b"good"


def test_unwritable_cache_dir_is_filesystem_error(fetcher, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    cache = FileSystemArtifactCache(fetcher=fetcher, cache_dir=blocker / "cache")

    with pytest.raises(FilesystemError):
        cache.ensure(URL)


def test_progress_rendering_does_not_change_content(fetcher, cache_dir, requests_mock):
    requests_mock.get(URL, content=b"x" * 4096, headers={"Content-Length": "4096"})
    console = Console(file=io.StringIO(), force_terminal=False)
    cache = FileSystemArtifactCache(fetcher=fetcher, cache_dir=cache_dir, show_progress=True, console=console)

    assert cache.ensure(URL).stat().st_size == 4096


class SlowFetcher:
    def __init__(self):
        self.calls = 0
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls += 1
        time.sleep(0.2)
        return make_streaming_response([b"payload"])


def test_concurrent_ensure_fetches_once(cache_dir):
    fetcher = SlowFetcher()
    cache = FileSystemArtifactCache(fetcher=fetcher, cache_dir=cache_dir)
    results, errors = [], []

    def worker():
        try:
            results.append(cache.ensure(URL))
        except Exception as e:  # surfaced by the assertions below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert fetcher.calls == 1
    assert len(set(results)) == 1
    assert results[0].read_bytes() == b"payload"


def test_lock_registry_forgets_released_keys():
    locks = _KeyedLocks()
    lock = locks.for_key("a")

    assert locks.for_key("a") is lock
    assert len(locks) == 1

    del lock
    gc.collect()
    assert len(locks) == 0


def test_downloads_do_not_accumulate_locks(cache, requests_mock, mocker):
    locks = mocker.patch("fetchexec.adapters.cache_fs._LOCKS", _KeyedLocks())
    for i in range(20):
        url = f"http://example.com/pkg-{i}/setup.exe"
        requests_mock.get(url, content=b"MZ")
        cache.ensure(url)

    gc.collect()
    assert len(locks) == 0
