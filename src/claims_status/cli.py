"""Command-line entry point for running and exercising the claim status service."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import CLAIM_ID_PATTERN
from .repository import DataLoadError
from .runtime import SERVICE_VERSION, create_runtime, load_settings
from .summarizer import format_amount

app = typer.Typer(
    name="claims-status",
    help="Claim status API and summary tooling",
    add_completion=False,
)

console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port (default: PORT or 3000)"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """
    Run the HTTP API with uvicorn.

    Startup fails if the claims or notes document cannot be loaded.
    """
    settings = load_settings(env_file)
    bind_host = host or settings.service.host
    bind_port = port or settings.service.port

    console.print(
        Panel.fit(
            "[bold cyan]Claim Status API[/bold cyan]\n"
            f"Listening on: [yellow]http://{bind_host}:{bind_port}[/yellow]\n"
            f"Health check: [yellow]http://localhost:{bind_port}/health[/yellow]",
            border_style="cyan",
        )
    )

    uvicorn.run(
        "claims_status.api.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.service.log_level.lower(),
    )


@app.command()
def claims(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
):
    """List the loaded claims."""

    async def _load():
        runtime = await create_runtime(env_path=env_file)
        await runtime.aclose()
        return runtime

    try:
        runtime = asyncio.run(_load())
    except DataLoadError as exc:
        console.print(f"[red]Error loading data:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Loaded Claims")
    table.add_column("Claim ID", style="cyan")
    table.add_column("Number")
    table.add_column("Type", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Estimate", justify="right")
    table.add_column("Notes", justify="right", style="dim")

    for claim in runtime.store.claims():
        table.add_row(
            claim.id,
            claim.claim_number,
            claim.type,
            claim.status,
            f"${format_amount(claim.estimated_amount)}",
            str(len(runtime.store.notes_text(claim.id))),
        )

    console.print(table)


@app.command()
def summarize(
    claim_id: str = typer.Argument(..., help="Claim ID in CLM### format"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Generate a summary for one claim and print it.

    Example:
        claims-status summarize CLM001
    """
    if not CLAIM_ID_PATTERN.fullmatch(claim_id):
        console.print("[red]Invalid claim ID format.[/red] Expected CLM### (e.g., CLM001)")
        raise typer.Exit(code=2)

    async def _summarize():
        runtime = await create_runtime(env_path=env_file)
        if verbose:
            logging.getLogger().setLevel(logging.DEBUG)
        try:
            claim = runtime.store.find_claim(claim_id)
            if claim is None:
                return runtime, None, "Claim not found"
            if runtime.store.find_notes(claim_id) is None:
                return runtime, None, "No notes found for claim"
            bundle = await runtime.generator.generate_summary(claim, runtime.store.notes_text(claim_id))
            return runtime, bundle, None
        finally:
            await runtime.aclose()

    try:
        runtime, bundle, error = asyncio.run(_summarize())
    except DataLoadError as exc:
        console.print(f"[red]Error loading data:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if error:
        console.print(f"[yellow]{error}:[/yellow] {claim_id}")
        raise typer.Exit(code=1)

    console.print(
        Panel.fit(
            f"[bold]Summary:[/bold] {bundle.summary}\n"
            f"[bold]Customer:[/bold] {bundle.customer_summary}\n"
            f"[bold]Adjuster:[/bold] {bundle.adjuster_summary}\n"
            f"[bold]Next step:[/bold] {bundle.next_step}",
            title=f"[bold]{claim_id}[/bold] ({runtime.ai_status})",
            border_style="cyan",
        )
    )
    console.print(f"[dim]Tokens used: {bundle.usage_tokens}[/dim]")


@app.command()
def version():
    """Display basic version information."""
    console.print(
        Panel.fit(
            "[bold cyan]Claim Status API[/bold cyan]\n"
            f"Version: {SERVICE_VERSION}",
            border_style="cyan",
        )
    )


def main():
    """
    Main entry point for the CLI.
    """
    app()


if __name__ == "__main__":
    main()
