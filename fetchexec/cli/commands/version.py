import importlib.metadata

import typer

from fetchexec.internal.logging import get_logger

logger = get_logger(__name__)


def version():
    """
    Show the fetchexec version.
    """
    try:
        package_version = importlib.metadata.version("fetchexec")
        typer.echo(f"fetchexec version: {package_version}")
    except importlib.metadata.PackageNotFoundError:
        typer.echo("fetchexec is not installed or version metadata not found.")
        typer.echo("Please install the package first (e.g., pip install . or pip install -e .)")
        logger.warning("fetchexec package version not found.")
        raise typer.Exit(1)
