"""Real-time CLI dashboard for relay monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock
from typing import Any

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_upstream_log

console = Console()


class RequestInfo:
    """Info about a single relayed request."""

    def __init__(self, channel: str, model: str, path: str, header_names: list[str], timestamp: datetime):
        self.channel = channel
        self.model = model
        self.path = path
        self.header_names = header_names
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent relayed requests per channel."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 8
        self._request_count: Counter[str] = Counter()
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_request(
        self,
        channel: str,
        model: str,
        body: dict[str, Any],
        headers: dict[str, str],
        *,
        path: str,
        api_key: str = "",
    ) -> None:
        """Log a request prepared for an upstream channel."""
        with self._lock:
            self._request_count[channel] += 1
            info = RequestInfo(
                channel=channel,
                model=model,
                path=path,
                header_names=sorted(headers),
                timestamp=datetime.now(),
            )
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]

            write_upstream_log(channel, model, body, headers, path=path, secrets=(api_key,))
            write_cli_log("RELAY", path, channel=channel, model=model)

            self._refresh()

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=4),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with per-channel stats."""
        stats = Text()
        stats.append("Channel Relay", style="bold cyan")
        for channel in self.config.channels:
            stats.append("  |  ")
            stats.append(f"{channel.name}: {self._request_count[channel.name]}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Channel", width=16)
            table.add_column("Model", width=24)
            table.add_column("Path", ratio=1)
            table.add_column("Headers", ratio=2)

            for req in self._recent:
                headers_str = ", ".join(req.header_names[:4])
                if len(req.header_names) > 4:
                    headers_str += f" +{len(req.header_names) - 4}"

                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.channel[:16],
                    req.model[:24],
                    req.path,
                    headers_str,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Point your client's base URL at http://localhost:{self.config.proxy.port}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
