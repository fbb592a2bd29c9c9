"""``otaserve serve`` — run the update server under uvicorn."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler

from otaserve.bridge.crypto_bridge import SigningKeyError
from otaserve.config import ServerConfig
from otaserve.server.app import create_app

console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def serve_cmd(
    bind: str = typer.Option(
        "0.0.0.0",
        "--bind",
        "-b",
        help="Interface to listen on.",
    ),
    listen_port: int = typer.Option(
        None,
        "--listen-port",
        help="Port to listen on. Defaults to the configured public port, else 3000.",
    ),
    updates_root: Path = typer.Option(
        None,
        "--updates-root",
        "-u",
        help="Directory of published bundles. Overrides OTASERVE_UPDATES_ROOT.",
    ),
) -> None:
    """Serve manifests, directives and assets over HTTP."""
    config = ServerConfig()
    if updates_root is not None:
        config = config.model_copy(update={"updates_root": updates_root})
    configure_logging(config.log_level)

    if not config.updates_root.is_dir():
        console.print(
            f"[bold red]Updates directory not found:[/bold red] {config.updates_root}"
        )
        raise typer.Exit(code=1)

    try:
        app = create_app(config)
    except SigningKeyError as exc:
        console.print(f"[bold red]Unusable code signing key:[/bold red] {exc}")
        raise typer.Exit(code=1)
    port = listen_port or config.port or 3000
    console.print(
        f"[bold cyan]Serving[/bold cyan] {config.updates_root} "
        f"on {bind}:{port} as {config.asset_base_url}"
    )
    uvicorn.run(app, host=bind, port=port, log_level=config.log_level.lower())
