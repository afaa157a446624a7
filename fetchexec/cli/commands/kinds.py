from rich.console import Console
from rich.table import Table

from fetchexec.kernel import installers

console = Console()


def kinds():
    """
    List the installer kinds and the command each one runs.
    """
    table = Table(title="Installer Kinds")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Command")

    for kind in installers.known_kinds():
        table.add_row(kind, installers.describe(kind) or "--command, expanded")
    console.print(table)
