"""
regen CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import platform

import typer

from regen import __version__


def configure_logging(verbose: bool) -> None:
    """Route engine logging to stderr; DEBUG with --verbose, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"regen version {__version__}")
        typer.echo(f"  Python:   {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform: {platform.system()} {platform.release()}")
        raise typer.Exit()
