"""
Silent-install invocations for the installer technologies we know about.

Each kind maps to an argv template; {{.INSTALLER}} is the cached artifact.
"""
from typing import Mapping, Optional, Sequence, Union

from fetchexec.kernel.contracts import InstallerInvocation
from fetchexec.kernel.errors import UnknownInstallerError
from fetchexec.kernel.expander import expand_argv, split_command

CUSTOM = "custom"
ZIP = "zip"

INSTALLER_COMMANDS: dict[str, tuple[str, ...]] = {
    "advancedinstaller": ("{{.INSTALLER}}", "/q", "/i"),
    "as-is": ("{{.INSTALLER}}",),
    "innosetup": ("{{.INSTALLER}}", "/norestart", "/sp-", "/verysilent"),
    "msi": ("msiexec.exe", "/q", "/i", "{{.INSTALLER}}", "ALLUSERS=1", "REBOOT=ReallySuppress"),
    "nsis": ("{{.INSTALLER}}", "/S", "/NCRC"),
    ZIP: (),  # extraction is the whole install
}


def known_kinds() -> list[str]:
    return sorted([*INSTALLER_COMMANDS, CUSTOM])


def is_archive_kind(kind: str) -> bool:
    return kind == ZIP


def build_invocation(
    kind: str,
    context: Mapping[str, str],
    command: Union[str, Sequence[str], None] = None,
) -> InstallerInvocation:
    if kind == CUSTOM:
        if not command:
            raise UnknownInstallerError("Installer kind 'custom' requires a command")
        template = split_command(command) if isinstance(command, str) else list(command)
    else:
        try:
            template = list(INSTALLER_COMMANDS[kind])
        except KeyError:
            raise UnknownInstallerError(
                f"Unknown installer kind {kind!r}. Known kinds: {', '.join(known_kinds())}"
            ) from None

    return InstallerInvocation(argv=tuple(expand_argv(template, context)))


def describe(kind: str) -> Optional[str]:
    """Human-readable argv template for a kind, or None for custom/unknown."""
    template = INSTALLER_COMMANDS.get(kind)
    if template is None:
        return None
    return " ".join(template) if template else "(extract only)"
