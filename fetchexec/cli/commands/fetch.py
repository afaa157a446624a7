from typing import List, Optional

import typer
from rich.console import Console

from fetchexec.cli import core
from fetchexec.kernel.errors import FetchExecError
from fetchexec.kernel.expander import expand

console = Console(stderr=True)


def fetch(
    url: str = typer.Argument(..., help="Download URL; may reference {{.VARIABLES}}."),
    ext: Optional[str] = typer.Option(None, "--ext", help="Extension for the cached file (defaults to the URL's)."),
    force: bool = typer.Option(False, "--force", "-f", help="Download even if already cached."),
    var: Optional[List[str]] = typer.Option(None, "--var", help="Extra template variable, KEY=VALUE. Repeatable."),
):
    """
    Download an installer into the cache and print its local path.
    """
    context = core.snapshot_context(var or [])
    try:
        resolved = expand(url, context)
        path = core.build_cache().ensure(resolved, ext, force)
    except FetchExecError as exc:
        console.print(f"[red]Fetch failed:[/red] {exc}")
        raise typer.Exit(1)

    typer.echo(str(path))
