"""Main Typer application — imports and registers all CLI commands.

Entry point: ``otaserve`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from otaserve.cli.commands.inspect_cmd import inspect_cmd
from otaserve.cli.commands.serve import serve_cmd

app = typer.Typer(
    name="otaserve",
    help="otaserve: over-the-air update server for the Expo Updates protocol.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="serve", help="Run the update server.")(serve_cmd)
app.command(name="inspect", help="Show what a client would be served.")(inspect_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
