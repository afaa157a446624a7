from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

from fetchexec.kernel.errors import FetchExecError


class ExitStatus(str, Enum):
    SUCCESS = "success"
    REBOOT_REQUIRED = "reboot_required"
    FAILURE = "failure"


@dataclass(frozen=True)
class ExitClassification:
    """
    How an installer process ended. REBOOT_REQUIRED is a success for the
    pipeline but is reported separately so the caller can tell the user.
    """
    status: ExitStatus
    code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in (ExitStatus.SUCCESS, ExitStatus.REBOOT_REQUIRED)

    @property
    def reboot_required(self) -> bool:
        return self.status is ExitStatus.REBOOT_REQUIRED


@dataclass(frozen=True)
class InstallerInvocation:
    """
    The argument vector to run for one install attempt, after template expansion.
    Built fresh per attempt and never stored.
    """
    argv: tuple[str, ...]

    def __post_init__(self):
        if not all(isinstance(arg, str) for arg in self.argv):
            raise TypeError("All arguments must be strings")

    @property
    def is_empty(self) -> bool:
        return len(self.argv) == 0


@dataclass
class PackageDescriptor:
    """
    A single package's installer metadata, already resolved by the caller.
    `url`, `command` and `extract_to` may reference {{.VARIABLES}}.
    """
    name: str
    url: str
    extension: Optional[str] = None
    archive: bool = False
    kind: str = "as-is"
    command: Union[str, Sequence[str], None] = None
    extract_to: Optional[str] = None
    force: bool = False

    def __post_init__(self):
        if not self.name:
            raise ValueError("name cannot be empty")
        if not self.url:
            raise ValueError("url cannot be empty")


@dataclass
class InstallReport:
    package: str
    url: Optional[str] = None
    cache_path: Optional[Path] = None
    extract_dir: Optional[Path] = None
    argv: list[str] = field(default_factory=list)
    outcome: Optional[ExitClassification] = None
    error: Optional[FetchExecError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.outcome is not None and self.outcome.succeeded


class ArchiveExtractor(Protocol):
    """
    Unpacks a cached archive into a directory.
    """

    def extract(self, archive_path: Path, target_dir: Path) -> list[Path]:
        ...


class ProcessRunner(Protocol):
    """
    Runs an installer and classifies how it exited.
    Raises ProcessStartError / ProcessExitError on failure.
    """

    def run(self, argv: Sequence[str]) -> ExitClassification:
        ...
