import io
import sys
import zipfile

import pytest

from fetchexec.adapters.archive_zip import ZipExtractor
from fetchexec.adapters.cache_fs import FileSystemArtifactCache
from fetchexec.adapters.http_fetcher import HttpFetcher
from fetchexec.adapters.process import SubprocessRunner
from fetchexec.kernel.contracts import ExitStatus, PackageDescriptor
from fetchexec.kernel.environment import EnvironmentContext
from fetchexec.kernel.pipeline import InstallPipeline

BUNDLE_URL = "http://downloads.example.com/{{.CHANNEL}}/bundle.zip"

# Writes its argument into a marker file, standing in for a silent installer.
SETUP_SCRIPT = b"import sys, pathlib\npathlib.Path(sys.argv[1]).write_text('installed')\n"


def _bundle():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("setup/install.py", SETUP_SCRIPT)
    return buffer.getvalue()


@pytest.fixture
def pipeline(cache_dir):
    return InstallPipeline(
        cache=FileSystemArtifactCache(fetcher=HttpFetcher(timeout=5), cache_dir=cache_dir),
        extractor=ZipExtractor(),
        runner=SubprocessRunner(),
    )


@pytest.fixture
def e2e_context(tmp_path):
    return EnvironmentContext.from_environ(
        {"Path": "/usr/bin"},
        overrides={
            "CHANNEL": "stable",
            "PYTHON": sys.executable,
            "MARKER": str(tmp_path / "marker.txt"),
        },
    )


def _descriptor(**overrides):
    fields = dict(
        name="bundle",
        url=BUNDLE_URL,
        archive=True,
        kind="custom",
        command='"{{.PYTHON}}" "{{.EXTRACT_DIR}}/setup/install.py" "{{.MARKER}}"',
    )
    fields.update(overrides)
    return PackageDescriptor(**fields)


def test_fetch_extract_and_run(pipeline, e2e_context, requests_mock, tmp_path):
    requests_mock.get("http://downloads.example.com/stable/bundle.zip", content=_bundle())

    report = pipeline.install(_descriptor(), e2e_context)

    assert report.ok
    assert report.outcome.status is ExitStatus.SUCCESS
    assert report.cache_path.is_file()
    assert (report.extract_dir / "setup" / "install.py").is_file()
    assert (tmp_path / "marker.txt").read_text() == "installed"


def test_second_install_reuses_cached_download(pipeline, e2e_context, requests_mock):
    requests_mock.get("http://downloads.example.com/stable/bundle.zip", content=_bundle())

    first = pipeline.install(_descriptor(), e2e_context)
    second = pipeline.install(_descriptor(), e2e_context)

    assert requests_mock.call_count == 1
    assert first.cache_path == second.cache_path
    assert second.ok


def test_batch_install_isolates_failures(pipeline, e2e_context, requests_mock, tmp_path):
    requests_mock.get("http://downloads.example.com/stable/bundle.zip", content=_bundle())
    requests_mock.get("http://downloads.example.com/stable/gone.exe", status_code=404)

    reports = pipeline.install_all(
        [
            _descriptor(name="gone", url="http://downloads.example.com/{{.CHANNEL}}/gone.exe", archive=False),
            _descriptor(),
        ],
        e2e_context,
    )

    assert not reports[0].ok
    assert reports[0].cache_path is None
    assert reports[1].ok
    assert (tmp_path / "marker.txt").read_text() == "installed"
