"""
This module defines the install pipeline: expand, fetch/cache, extract, run.
It orchestrates a single package install, delegating each stage to the
adapters it is constructed with (ArtifactCache, ArchiveExtractor, ProcessRunner).
"""
from pathlib import Path
from typing import Iterable, Mapping, Optional

from fetchexec.internal.logging import get_logger
from fetchexec.kernel import installers
from fetchexec.kernel.artifacts import ArtifactCache
from fetchexec.kernel.contracts import (
    ArchiveExtractor,
    InstallReport,
    PackageDescriptor,
    ProcessRunner,
)
from fetchexec.kernel.environment import EnvironmentContext
from fetchexec.kernel.errors import FetchExecError, InvalidURLError
from fetchexec.kernel.expander import expand

INSTALLER_VAR = "INSTALLER"
EXTRACT_DIR_VAR = "EXTRACT_DIR"


def default_extract_dir(cache_path: Path) -> Path:
    """Archives unpack next to themselves, into a directory named after the cache key."""
    key = cache_path.name.split(".", 1)[0]
    if key == cache_path.name:
        key += ".d"
    return cache_path.with_name(key)


class InstallPipeline:
    """
    Runs the fetch-cache-execute lifecycle for one package at a time.
    Stages are synchronous; each error surfaces as a typed FetchExecError.
    """

    def __init__(self, cache: ArtifactCache, extractor: ArchiveExtractor, runner: ProcessRunner):
        self.logger = get_logger(self.__class__.__name__)
        self.cache = cache
        self.extractor = extractor
        self.runner = runner

    def install(
        self,
        descriptor: PackageDescriptor,
        context: Optional[Mapping[str, str]] = None,
        report: Optional[InstallReport] = None,
    ) -> InstallReport:
        context = context if context is not None else EnvironmentContext.from_environ()
        report = report or InstallReport(package=descriptor.name)
        log = self.logger.bind(package=descriptor.name)

        # 1. Resolve the URL
        report.url = expand(descriptor.url, context)
        if not report.url.strip():
            raise InvalidURLError(f"URL template {descriptor.url!r} expanded to an empty URL")

        # 2. Make the artifact available locally
        log.info("Ensuring artifact", url=report.url, force=descriptor.force)
        report.cache_path = self.cache.ensure(report.url, descriptor.extension, descriptor.force)

        # 3. Unpack archives
        variables = {INSTALLER_VAR: str(report.cache_path)}
        if descriptor.archive or installers.is_archive_kind(descriptor.kind):
            if descriptor.extract_to:
                report.extract_dir = Path(expand(descriptor.extract_to, context))
            else:
                report.extract_dir = default_extract_dir(report.cache_path)
            self.extractor.extract(report.cache_path, report.extract_dir)
            variables[EXTRACT_DIR_VAR] = str(report.extract_dir)

        # 4. Run the installer
        scoped = EnvironmentContext(context).with_overrides(variables)
        invocation = installers.build_invocation(descriptor.kind, scoped, descriptor.command)
        report.argv = list(invocation.argv)
        report.outcome = self.runner.run(invocation.argv)

        if report.outcome.reboot_required:
            log.warning("Installed, reboot required")
        else:
            log.info("Installed")
        return report

    def install_all(
        self,
        descriptors: Iterable[PackageDescriptor],
        context: Optional[Mapping[str, str]] = None,
    ) -> list[InstallReport]:
        """
        Install each package in turn. A failing package is recorded on its
        report and does not stop the rest of the batch.
        """
        context = context if context is not None else EnvironmentContext.from_environ()
        reports = []
        for descriptor in descriptors:
            report = InstallReport(package=descriptor.name)
            try:
                self.install(descriptor, context, report=report)
            except FetchExecError as e:
                self.logger.error("Install failed", package=descriptor.name, error=str(e), error_type=type(e).__name__)
                report.error = e
            reports.append(report)
        return reports
