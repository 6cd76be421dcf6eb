"""CLI entry point for channel-relay."""

import sys
from datetime import datetime

from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import ChannelHeaderOverrideInvalid
from core.header_override import build_header_override_spec
from core.request_types import RelayInfo
from ui.dashboard import Dashboard
from ui.log_utils import write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--check":
            sys.exit(0 if check_channels(config) else 1)

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    if not config.channels:
        console.print("[red][ERROR][/red] No channels configured!")
        console.print(f"[dim]Edit {CONFIG_FILE} and add at least one entry to channels[/dim]")
        sys.exit(1)

    if not check_channels(config):
        console.print("[yellow]Warning:[/yellow] requests to invalid channels will fail")

    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host="127.0.0.1",
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Relay started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))
        dashboard.stop()


def check_channels(config: Config) -> bool:
    """Validate every channel's header override and print a summary table."""
    table = Table(title="Channels", header_style="bold")
    table.add_column("Channel")
    table.add_column("Override", justify="right")
    table.add_column("Fill", justify="right")
    table.add_column("Remove", justify="right")
    table.add_column("Status")

    ok = True
    for channel in config.channels:
        info = RelayInfo(
            channel_name=channel.name,
            api_key=channel.api_key,
        )
        try:
            spec = build_header_override_spec(channel.headers_override, info)
        except ChannelHeaderOverrideInvalid as e:
            ok = False
            table.add_row(channel.name, "-", "-", "-", f"[red]invalid:[/red] {e}")
            continue
        table.add_row(
            channel.name,
            str(len(spec.override)),
            str(len(spec.fill)),
            str(len(spec.remove)),
            "[green]ok[/green]",
        )

    console.print(table)
    return ok


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Channel Relay[/bold cyan]

Relays API requests to upstream channels, applying per-channel header overrides.

[bold]Usage:[/bold]
    channel-relay              Start with live dashboard
    channel-relay --check      Validate channel header overrides
    channel-relay --config     Show config location
    channel-relay --help       Show this help

[bold]Header overrides:[/bold]
    Legacy:      {"X-Header": "value"}
    Structured:  {"override": {...}, "fill": {...}, "remove": [...]}
    Values may use {api_key} for the channel's API key.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
