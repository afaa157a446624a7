"""
Typed failures raised by the fetch-cache-execute pipeline.

Every stage raises a subclass of FetchExecError so a caller installing many
packages can isolate one package's failure and move on to the next.
"""
from typing import Sequence


class FetchExecError(RuntimeError):
    """Base class for every pipeline failure."""


class TemplateExpansionError(FetchExecError):
    """A template referenced a variable missing from the context, or was malformed."""

    def __init__(self, message: str, template: str, variable: str | None = None):
        super().__init__(message)
        self.template = template
        self.variable = variable


class NetworkError(FetchExecError):
    """Connection or transport failure while talking to a remote host."""


class InvalidURLError(NetworkError):
    """The URL could not be parsed into something a request can be issued for."""


class UnexpectedStatusError(FetchExecError):
    def __init__(self, url: str, status_code: int, expected: str = "200"):
        super().__init__(f"Unexpected HTTP response code from {url}. Wanted {expected} but got {status_code}")
        self.url = url
        self.status_code = status_code


class FilesystemError(FetchExecError):
    """Creating, writing, copying or renaming a file failed."""


class ArchiveFormatError(FetchExecError):
    """The archive is corrupt or one of its entries cannot be read."""


class ProcessStartError(FetchExecError):
    def __init__(self, argv: Sequence[str], reason: str):
        super().__init__(f"Unable to start {argv[0] if argv else '<empty>'}: {reason}")
        self.argv = list(argv)


class ProcessExitError(FetchExecError):
    def __init__(self, argv: Sequence[str], code: int):
        super().__init__(f"Command exited with code {code}: {' '.join(argv)}")
        self.argv = list(argv)
        self.code = code


class UnknownInstallerError(FetchExecError):
    """The installer kind is not known, or lacks what it needs to build a command."""
