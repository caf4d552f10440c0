"""Command line interface for the lucidtalk SDK."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from . import __version__
from . import config as config_mod
from .errors import AIProviderNotConfiguredError, ConfigurationError, LucidTalkError
from .log import setup_logging
from .models import Config, Session, TranscriptionEvent
from .prompts import DEFAULT_TEMPLATE, template_names
from .sdk import LucidTalk

app = typer.Typer(add_completion=False, help="Privacy-first meeting transcription.")
console = Console()


def _format_timestamp(value: int) -> str:
    return datetime.fromtimestamp(value / 1000).strftime("%H:%M:%S")


def _parse_api_keys(values: List[str]) -> Dict[str, str]:
    keys: Dict[str, str] = {}
    for value in values:
        provider, sep, key = value.partition("=")
        if not sep or not provider or not key:
            raise ConfigurationError(f"Expected PROVIDER=KEY, got {value!r}")
        keys[provider.strip()] = key.strip()
    return keys


def _print_event(event: TranscriptionEvent) -> None:
    speaker = f"[bold]{escape(event.speaker)}[/bold]: " if event.speaker else ""
    console.print(f"[dim][{_format_timestamp(event.timestamp)}][/dim] {speaker}{escape(event.text)}")


def _print_started(session: Session) -> None:
    console.print(f"[green]Session started:[/green] {session.id}")
    if session.drive_key:
        console.print(f"[cyan]P2P drive key:[/cyan] {session.drive_key}")


def _print_stopped(session: Session) -> None:
    duration = ((session.end_time or session.start_time) - session.start_time) / 1000
    console.print(f"[yellow]Session ended:[/yellow] {session.id} ({duration:.1f}s)")


async def _record(
    cfg: Config, overrides: Dict[str, object], duration: float, summary: bool, template: str
) -> None:
    async with LucidTalk(cfg, **overrides) as sdk:
        sdk.on_transcription(_print_event)
        sdk.once("session:started", _print_started)
        sdk.on("session:stopped", _print_stopped)
        sdk.on_error(lambda error: console.print(f"[red]Error:[/red] {error}"))

        await sdk.start_transcription()
        try:
            await asyncio.sleep(duration)
        finally:
            await sdk.stop_transcription()

        if not summary:
            return
        try:
            text = await sdk.summarize(template=template)
        except AIProviderNotConfiguredError:
            console.print("[dim]Summary not available (no AI provider configured).[/dim]")
            return
        console.print(Panel(escape(str(text)), title="Summary", border_style="green"))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    if version:
        typer.echo(f"lucidtalk v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def record(
    duration: float = typer.Option(15.0, "--duration", "-d", min=0.0, help="Seconds to record before stopping."),
    privacy: Optional[str] = typer.Option(None, help="Privacy mode (local-only, p2p-only, hybrid)."),
    p2p: Optional[bool] = typer.Option(None, "--p2p/--no-p2p", help="Enable P2P session sharing."),
    ai: Optional[str] = typer.Option(None, help="AI provider (local, openai, anthropic, groq)."),
    backend_path: Optional[str] = typer.Option(None, help="Directory holding the backend managers."),
    storage_path: Optional[str] = typer.Option(None, help="Where sessions are written."),
    mock_interval: Optional[float] = typer.Option(None, help="Seconds between mock events."),
    summary: bool = typer.Option(True, "--summary/--no-summary", help="Summarise once recording stops."),
    template: str = typer.Option(
        DEFAULT_TEMPLATE, help=f"Summary prompt template ({', '.join(template_names())})."
    ),
    log_level: str = typer.Option("WARNING", help="Log level for SDK diagnostics."),
) -> None:
    """Record one session and stream its transcription."""

    if template not in template_names():
        typer.secho(
            f"Unknown template {template!r}; choose one of: {', '.join(template_names())}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    setup_logging(log_level)
    overrides = {
        key: value
        for key, value in {
            "privacy": privacy,
            "p2p": p2p,
            "ai": ai,
            "backend_path": backend_path,
            "storage_path": storage_path,
            "mock_interval": mock_interval,
        }.items()
        if value is not None
    }

    try:
        cfg = config_mod.load_config()
        asyncio.run(_record(cfg, overrides, duration, summary, template))
    except LucidTalkError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def config(
    privacy: Optional[str] = typer.Option(None, help="Privacy mode (local-only, p2p-only, hybrid)."),
    p2p: Optional[bool] = typer.Option(None, "--p2p/--no-p2p", help="Enable P2P session sharing."),
    ai: Optional[str] = typer.Option(None, help="AI provider (local, openai, anthropic, groq)."),
    storage_path: Optional[str] = typer.Option(None, help="Where sessions are written."),
    backend_path: Optional[str] = typer.Option(None, help="Directory holding the backend managers."),
    api_key: List[str] = typer.Option([], "--api-key", help="Provider key as PROVIDER=KEY; repeatable."),
    show: bool = typer.Option(False, "--show", help="Display the active configuration."),
) -> None:
    """Update or inspect configuration settings."""

    updates: Dict[str, object] = {
        key: value
        for key, value in {
            "privacy": privacy,
            "p2p": p2p,
            "ai": ai,
            "storage_path": storage_path,
            "backend_path": backend_path,
        }.items()
        if value is not None
    }

    try:
        if show or not (updates or api_key):
            cfg = config_mod.load_config()
            payload = asdict(cfg)
            payload["api_keys"] = {provider: "***" for provider in cfg.api_keys}
            typer.echo(json.dumps(payload, indent=2, default=str))
            return

        if api_key:
            keys = dict(config_mod.load_config().api_keys)
            keys.update(_parse_api_keys(api_key))
            updates["api_keys"] = keys
        config_mod.update_config(**updates)
    except ConfigurationError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho("Configuration updated.", fg=typer.colors.BLUE)


if __name__ == "__main__":  # pragma: no cover
    app()
