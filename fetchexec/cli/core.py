"""
Core, reusable logic for CLI commands.
Responsible ONLY for wiring adapters and snapshotting the environment.
"""
from typing import Iterable

import typer

from fetchexec.adapters.archive_zip import ZipExtractor
from fetchexec.adapters.cache_fs import FileSystemArtifactCache
from fetchexec.adapters.http_fetcher import HttpFetcher
from fetchexec.adapters.process import SubprocessRunner
from fetchexec.kernel.environment import EnvironmentContext
from fetchexec.kernel.pipeline import InstallPipeline


def build_cache(show_progress: bool = True) -> FileSystemArtifactCache:
    return FileSystemArtifactCache(fetcher=HttpFetcher(), show_progress=show_progress)


def build_pipeline(show_progress: bool = True) -> InstallPipeline:
    return InstallPipeline(
        cache=build_cache(show_progress=show_progress),
        extractor=ZipExtractor(),
        runner=SubprocessRunner(),
    )


def parse_vars(pairs: Iterable[str]) -> dict[str, str]:
    """Turn repeated KEY=VALUE options into a mapping."""
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--var")
        result[key] = value
    return result


def snapshot_context(pairs: Iterable[str] = ()) -> EnvironmentContext:
    """The single point where the process environment is read."""
    return EnvironmentContext.from_environ(overrides=parse_vars(pairs))
