from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from fetchexec.cli import core
from fetchexec.kernel.contracts import PackageDescriptor
from fetchexec.kernel.errors import FetchExecError, ProcessExitError

console = Console(stderr=True)


def install(
    url: str = typer.Argument(..., help="Installer download URL; may reference {{.VARIABLES}}."),
    kind: str = typer.Option("as-is", "--kind", "-k", help="Installer technology (see `fetchexec kinds`)."),
    command: Optional[str] = typer.Option(None, "--command", "-c", help="Command template for --kind custom."),
    ext: Optional[str] = typer.Option(None, "--ext", help="Extension for the cached file (defaults to the URL's)."),
    archive: bool = typer.Option(False, "--archive", help="Unpack the download before running the command."),
    extract_to: Optional[str] = typer.Option(None, "--extract-to", help="Extraction directory template."),
    force: bool = typer.Option(False, "--force", "-f", help="Download even if already cached."),
    var: Optional[List[str]] = typer.Option(None, "--var", help="Extra template variable, KEY=VALUE. Repeatable."),
    name: Optional[str] = typer.Option(None, "--name", help="Package name used in logs."),
):
    """
    Fetch an installer (cached), optionally unpack it, and run it silently.
    """
    if command and kind == "as-is":
        kind = "custom"

    context = core.snapshot_context(var or [])
    descriptor = PackageDescriptor(
        name=name or Path(url).name or url,
        url=url,
        extension=ext,
        archive=archive,
        kind=kind,
        command=command,
        extract_to=extract_to,
        force=force,
    )

    try:
        report = core.build_pipeline().install(descriptor, context)
    except ProcessExitError as exc:
        console.print(f"[red]Installer failed with exit code {exc.code}[/red]")
        raise typer.Exit(1)
    except FetchExecError as exc:
        console.print(f"[red]Installation failed:[/red] {exc}")
        raise typer.Exit(1)

    if report.outcome is not None and report.outcome.reboot_required:
        console.print(f"[yellow]'{descriptor.name}' installed; a reboot is required to complete it.[/yellow]")
    else:
        console.print(f"[green]'{descriptor.name}' installed successfully.[/green]")
    console.print(f"[dim]Cached installer:[/dim] {report.cache_path}")
    if report.extract_dir is not None:
        console.print(f"[dim]Extracted to:[/dim] {report.extract_dir}")
