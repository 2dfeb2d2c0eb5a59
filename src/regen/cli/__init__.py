"""
regen CLI.

The main entry point is ``regen.cli:main``.
"""

from __future__ import annotations

import typer

from .build import clean_command, compile_command, merge_command, status_command
from .utils import version_callback

app = typer.Typer(
    help="""regen – incremental recomputation engine

Commands:
  • compile: recompile changed files and their dependents
  • merge:   merge inputs into output directories
  • status:  show persisted state
  • clean:   delete persisted state
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
) -> None:
    """regen CLI main callback for global options."""
    pass


app.command(name="compile")(compile_command)
app.command(name="merge")(merge_command)
app.command(name="status")(status_command)
app.command(name="clean")(clean_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
