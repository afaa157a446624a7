from pathlib import Path

import typer
from rich.console import Console

from fetchexec.adapters.archive_zip import ZipExtractor
from fetchexec.kernel.errors import FetchExecError

console = Console(stderr=True)


def extract(
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, help="Zip archive to unpack."),
    target_dir: Path = typer.Argument(..., help="Directory to unpack into (created if missing)."),
):
    """
    Unpack a zip archive, preserving its directory layout.
    """
    try:
        written = ZipExtractor().extract(archive, target_dir)
    except FetchExecError as exc:
        console.print(f"[red]Extraction failed:[/red] {exc}")
        raise typer.Exit(1)

    console.print(f"[green]Extracted {len(written)} entries into[/green] {target_dir}")
