"""
Main CLI application using Typer.

Operator commands for running the channel and inspecting its configuration.
Commands that report results accept ``--json`` for machine-readable output.
"""

from __future__ import annotations

import json

import typer

from ..adapters.probes import RumbleFeedProbe
from ..infra.exceptions import ConfigurationError, ProbeError
from ..infra.logging import configure_logging
from ..infra.settings import settings
from ..runtime.config import DEFAULT_CHANNEL_CONFIG, ChannelConfig
from ..runtime.playlist import CompositeEntry, resolve as resolve_entry
from ..runtime.providers import FileChannelConfigProvider

app = typer.Typer(help="RelayTV operator CLI", no_args_is_help=True)


def _format_json_output(result: dict) -> str:
    return json.dumps(result, indent=2)


def load_channel_config(path: str | None) -> ChannelConfig:
    """Load the channel file at ``path`` (or CHANNEL_CONFIG), else the built-in channel.

    Intervals not set in the file come from the process settings.
    """
    path = path or settings.channel_config
    if path:
        provider = FileChannelConfigProvider(path)
        return provider.get_channel_config(
            poll_interval_sec=settings.poll_interval_sec,
            tick_interval_sec=settings.tick_interval_sec,
        )
    return DEFAULT_CHANNEL_CONFIG.with_intervals(
        settings.poll_interval_sec, settings.tick_interval_sec
    )


@app.command("serve")
def serve(
    config_file: str = typer.Option(None, "--config", "-c", help="Path to channel file (.json/.yaml)"),
    host: str = typer.Option(None, help="Override bind host"),
    port: int = typer.Option(None, help="Override HTTP port"),
    log_level: str = typer.Option(None, "--log-level", help="Override log level"),
):
    """Run the channel: fallback playback, live polling, and the viewer server."""
    from ..web.server import build_application, run_server

    level = log_level or settings.log_level
    configure_logging(level)

    try:
        config = load_channel_config(config_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    application = build_application(config, settings)
    run_server(
        application,
        host=host or settings.host,
        port=port or settings.port,
        log_level=level,
    )


@app.command("validate-config")
def validate_config(
    config_file: str = typer.Argument(None, help="Channel file; defaults to CHANNEL_CONFIG or built-in"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Load and validate a channel file."""
    try:
        config = load_channel_config(config_file)
    except ConfigurationError as e:
        if json_output:
            typer.echo(_format_json_output({"status": "error", "errors": [str(e)]}))
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    composite_count = sum(1 for entry in config.playlist if isinstance(entry, CompositeEntry))
    result = {
        "status": "ok",
        "sources": config.source_names,
        "playlist_entries": len(config.playlist),
        "composite_entries": composite_count,
        "total_duration_sec": config.playlist.total_duration_sec,
        "poll_interval_sec": config.poll_interval_sec,
        "tick_interval_sec": config.tick_interval_sec,
    }
    if json_output:
        typer.echo(_format_json_output(result))
        return

    typer.echo("✓ channel configuration is valid")
    typer.echo(f"  sources: {', '.join(config.source_names)}")
    typer.echo(
        f"  playlist: {len(config.playlist)} entries ({composite_count} composite), "
        f"{config.playlist.total_duration_sec}s per cycle"
    )


@app.command("probe")
def probe(
    source_name: str = typer.Argument(..., help="Source name to probe"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Run the live probe once for one source."""
    live_probe = RumbleFeedProbe(settings.feed_url_template, timeout_sec=settings.probe_timeout_sec)
    try:
        reference_id = live_probe.fetch_live_reference(source_name)
    except ProbeError as e:
        if json_output:
            typer.echo(_format_json_output({"status": "error", "source": source_name, "errors": [str(e)]}))
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(
            _format_json_output(
                {
                    "status": "ok",
                    "source": source_name,
                    "is_live": reference_id is not None,
                    "reference_id": reference_id,
                }
            )
        )
    elif reference_id:
        typer.echo(f"{source_name}: live ({reference_id})")
    else:
        typer.echo(f"{source_name}: not live")


@app.command("resolve")
def resolve(
    entry_index: int = typer.Argument(..., help="Playlist entry index"),
    offset_sec: int = typer.Argument(..., help="Seconds elapsed into the entry"),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to channel file"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show which part plays at a position in the fallback playlist."""
    try:
        config = load_channel_config(config_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if not 0 <= entry_index < len(config.playlist):
        typer.echo(f"Error: entry index must be in [0, {len(config.playlist)})", err=True)
        raise typer.Exit(code=1)
    entry = config.playlist[entry_index]
    if not 0 <= offset_sec < entry.duration_sec:
        typer.echo(f"Error: offset must be in [0, {entry.duration_sec})", err=True)
        raise typer.Exit(code=1)

    part = resolve_entry(entry, offset_sec)
    if json_output:
        typer.echo(
            _format_json_output(
                {
                    "reference_id": part.reference_id,
                    "part_index": part.part_index,
                    "offset_within_part_sec": part.offset_within_part_sec,
                }
            )
        )
    else:
        typer.echo(
            f"{part.reference_id} (part {part.part_index}) at {part.offset_within_part_sec}s"
        )


def cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
