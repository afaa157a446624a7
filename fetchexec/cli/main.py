import typer

from fetchexec.cli.commands import (
    extract,
    fetch,
    install,
    kinds,
    version,
)
from fetchexec.internal import paths
from fetchexec.internal.logging import setup_logging

cli_app = typer.Typer(
    name="fetchexec",
    help="Fetch, cache and run package installers.",
    no_args_is_help=True,
)


@cli_app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", help="Log level for the log file and console."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also print logs to the console."),
):
    setup_logging(log_level_name=log_level, log_file_path=paths.get_log_file(), console_output=verbose)


cli_app.command("fetch")(fetch.fetch)
cli_app.command("extract")(extract.extract)
cli_app.command("install")(install.install)
cli_app.command("kinds")(kinds.kinds)
cli_app.command("version")(version.version)

if __name__ == "__main__":
    cli_app()
