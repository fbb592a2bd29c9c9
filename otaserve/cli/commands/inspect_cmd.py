"""``otaserve inspect RUNTIME_VERSION`` — show what a client would be served.

Runs the same negotiation as ``GET /manifest`` against the local updates
directory and prints the outcome. Nothing is signed or framed.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from otaserve.config import ServerConfig
from otaserve.core.negotiator import ProtocolNegotiator
from otaserve.models.protocol import (
    NegotiationOutcome,
    Rejected,
    ServingManifest,
    ServingRollback,
    UpdateRequest,
)

console = Console()


def _describe(outcome: NegotiationOutcome) -> list[str]:
    if isinstance(outcome, ServingManifest):
        manifest = outcome.manifest
        return [
            f"[bold]Update ID:[/bold]     {manifest.id}",
            f"[bold]Created:[/bold]       {manifest.created_at}",
            f"[bold]Launch asset:[/bold]  {manifest.launch_asset.key}{manifest.launch_asset.file_extension}",
            f"[bold]Assets:[/bold]        {len(manifest.assets)}",
        ]
    if isinstance(outcome, ServingRollback):
        return [f"[bold]Commit time:[/bold]   {outcome.directive.parameters.commit_time}"]
    if isinstance(outcome, Rejected):
        return [
            f"[bold]Reason:[/bold]        {outcome.reason.value}",
            f"[bold]Status:[/bold]        {outcome.status_code}",
            f"[bold]Message:[/bold]       {outcome.message}",
        ]
    return ["[dim]The client is already running the latest update.[/dim]"]


def inspect_cmd(
    runtime_version: str = typer.Argument(..., help="Runtime version the client declares."),
    platform: str = typer.Option("ios", "--platform", "-p", help="ios or android."),
    protocol_version: int = typer.Option(1, "--protocol-version", help="0 or 1."),
    current_update_id: str = typer.Option(
        None, "--current-update-id", help="Update the client is running."
    ),
    embedded_update_id: str = typer.Option(
        None, "--embedded-update-id", help="Update embedded in the client binary."
    ),
    updates_root: Path = typer.Option(
        None,
        "--updates-root",
        "-u",
        help="Directory of published bundles. Overrides OTASERVE_UPDATES_ROOT.",
    ),
) -> None:
    """Print the bundle, its type and the negotiated outcome."""
    config = ServerConfig()
    if updates_root is not None:
        config = config.model_copy(update={"updates_root": updates_root})

    try:
        request = UpdateRequest(
            runtime_version=runtime_version,
            platform=platform,
            protocol_version=protocol_version,
            current_update_id=current_update_id,
            embedded_update_id=embedded_update_id,
        )
    except ValueError as exc:
        console.print(f"[bold red]Invalid request:[/bold red] {exc}")
        raise typer.Exit(code=2)

    negotiator = ProtocolNegotiator.from_config(config)
    trace = asyncio.run(negotiator.trace(request))
    outcome = trace.outcome

    rejected = isinstance(outcome, Rejected)
    console.print(
        Panel(
            "\n".join([
                f"[bold]Runtime:[/bold]       {runtime_version} ({platform}, protocol {protocol_version})",
                f"[bold]Bundle:[/bold]        {trace.bundle_path or '-'}",
                f"[bold]Type:[/bold]          {trace.update_type.value if trace.update_type else '-'}",
                f"[bold]Outcome:[/bold]       {outcome.state.value}",
                "",
                *_describe(outcome),
            ]),
            title="[bold]otaserve[/bold]",
            border_style="red" if rejected else "green",
            padding=(1, 2),
        )
    )
    if rejected:
        raise typer.Exit(code=1)
