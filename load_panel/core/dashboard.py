"""Rich renderables for the terminal control panel."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from rich import box
from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from load_panel import __version__

from .models import ResultSummary, SystemInfo, TestResult
from .observers import DispatchObserver

GIB = 1024 ** 3


def _utilization_style(percent: float) -> str:
    if percent > 80:
        return "red"
    if percent > 50:
        return "yellow"
    return "green"


def _fmt(value: Optional[float], digits: int = 2) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def render_system_info(info: Optional[SystemInfo]) -> RenderableType:
    """Three cards: CPU, memory and host details."""
    if info is None:
        return Panel(Align.center("[dim]Waiting for system info...[/dim]"), box=box.ROUNDED)

    util = info.cpu.cpu_utilization or 0.0
    cpu = Table.grid(padding=(0, 1))
    cpu.add_column(style="dim")
    cpu.add_column(justify="right")
    cpu.add_row("Cores", str(info.cpu.cpu_count))
    cpu.add_row("Model", Text(info.cpu.cpu_model, overflow="ellipsis", no_wrap=True))
    cpu.add_row("Load (1m)", _fmt(info.cpu.load_average_1min))
    cpu.add_row("Load (5m)", _fmt(info.cpu.load_average_5min))
    cpu.add_row("Load (10m)", _fmt(info.cpu.load_average_10min))
    cpu.add_row("Utilization", Text(f"{util:.1f}%", style=f"bold {_utilization_style(util)}"))
    cpu.add_row("", ProgressBar(total=100, completed=min(util, 100), complete_style=_utilization_style(util)))

    mem_pct = info.memory.usage_percent or 0.0
    mem = Table.grid(padding=(0, 1))
    mem.add_column(style="dim")
    mem.add_column(justify="right")
    mem.add_row("Total", f"{info.memory.total / GIB:.2f} GB")
    mem.add_row("Used", f"{info.memory.used / GIB:.2f} GB")
    mem.add_row("Usage", f"{mem_pct:.1f}%")
    mem.add_row("", ProgressBar(total=100, completed=min(mem_pct, 100), complete_style="blue"))

    host = Table.grid(padding=(0, 1))
    host.add_column(style="dim")
    host.add_column(justify="right")
    host.add_row("Platform", info.platform)
    host.add_row("Arch", info.arch)
    host.add_row("Hostname", info.hostname)
    host.add_row("Runtime", info.node_version)

    grid = Table.grid(expand=True)
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)
    grid.add_row(
        Panel(cpu, title="CPU", box=box.ROUNDED),
        Panel(mem, title="Memory", box=box.ROUNDED),
        Panel(host, title="System", box=box.ROUNDED),
    )
    return grid


def render_summary(summary: ResultSummary) -> RenderableType:
    grid = Table.grid(expand=True)
    for _ in range(3):
        grid.add_column(justify="center", ratio=1)
    grid.add_row(
        Text("Total Tests", style="dim"),
        Text("Avg Execution Time", style="dim"),
        Text("Avg CPU Usage", style="dim"),
    )
    grid.add_row(
        Text(str(summary.count), style="bold white"),
        Text(f"{summary.mean_execution_time_ms:.2f} ms", style="bold white"),
        Text(f"{summary.mean_cpu_ms:.2f} ms", style="bold white"),
    )
    return Panel(grid, title="Test Results", box=box.ROUNDED)


def render_results_table(results: Sequence[TestResult], limit: int = 20) -> RenderableType:
    table = Table(box=box.SIMPLE, expand=True, header_style="bold dim white")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Intensity", justify="right")
    table.add_column("CPU User (ms)", justify="right")
    table.add_column("CPU System (ms)", justify="right")
    for result in list(results)[:limit]:
        table.add_row(
            f"{result.execution_time_ms:g}",
            f"{result.intensity:,}",
            f"{result.cpu_user:.2f}",
            f"{result.cpu_system:.2f}",
        )
    hidden = len(results) - limit
    if hidden > 0:
        table.caption = f"... and {hidden} more"
    return table


class PanelDashboard(DispatchObserver):
    """Live view driven by engine events and periodic refreshes."""

    def __init__(self, panel: Any, console: Optional[Console] = None) -> None:
        self.panel = panel
        self.console = console or Console()
        self.live: Optional[Live] = None
        self.mode = "idle"
        self.failures = 0
        self.last_error: Optional[str] = None

    def bind(self, live: Live) -> None:
        self.live = live
        self.refresh()

    def refresh(self) -> None:
        if self.live is not None:
            self.live.update(self.render())

    def on_mode_change(self, mode: str) -> None:
        self.mode = mode
        self.refresh()

    def on_result(self, mode: str, result: Any) -> None:
        self.refresh()

    def on_failure(self, mode: str, error: str) -> None:
        self.failures += 1
        self.last_error = error
        self.refresh()

    def on_throughput(self, request_count: int, requests_per_second: float) -> None:
        self.refresh()

    def render(self) -> RenderableType:
        parts: List[RenderableType] = [
            self._render_header(),
            render_system_info(self.panel.telemetry.latest),
            render_summary(self.panel.summary()),
            render_results_table(self.panel.aggregator.results),
        ]
        return Group(*parts)

    def _render_header(self) -> RenderableType:
        engine = self.panel.engine
        grid = Table.grid(expand=True)
        grid.add_column(justify="left", ratio=1)
        grid.add_column(justify="right", ratio=2)

        title = Text(f"Server Performance Monitor v{__version__}", style="bold magenta")
        stats = Text()
        stats.append(f"Mode: {self.mode}  ", style="bold white")
        stats.append(f"Requests: {engine.request_count}  ", style="dim white")
        stats.append(f"Rate: {engine.current_rps:.2f} req/s  ", style="cyan")
        stats.append(
            "Limits: unlocked" if self.panel.policy.unlocked else "Limits: locked",
            style="green" if self.panel.policy.unlocked else "yellow",
        )
        if self.failures:
            stats.append(f"  Failures: {self.failures}", style="red")
        grid.add_row(title, stats)
        return Panel(grid, box=box.ROUNDED, padding=(0, 1))
