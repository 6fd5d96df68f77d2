"""Command-line interface for load-panel."""

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.prompt import Prompt

from .core.dashboard import PanelDashboard, render_results_table, render_summary, render_system_info
from .core.panel import ControlPanel, DispatchOutcome
from .core.quota import UnlockOutcome
from .settings import PanelSettings

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="load-panel",
        description="Drive load against a compute endpoint and watch live telemetry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One request
  load-panel single --intensity 500

  # Ten simultaneous requests
  load-panel batch --concurrency 10 --intensity 500

  # One request per second for 30 seconds, with a live view
  load-panel continuous --duration 30

  # Exceed the default ceilings
  load-panel batch --concurrency 5000 --unlock-secret "$SECRET"
        """,
    )
    parser.add_argument("--api-url", help="Base URL of the compute API (default from settings)")
    parser.add_argument("--unlock-secret", help="Secret used to lift the quota ceilings when needed")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    single = sub.add_parser("single", help="Run a single test request")
    single.add_argument("--intensity", type=int, help="Work units per request")

    batch = sub.add_parser("batch", help="Run concurrent test requests")
    batch.add_argument("--concurrency", "-n", type=int, help="Number of simultaneous requests")
    batch.add_argument("--intensity", type=int, help="Work units per request")

    continuous = sub.add_parser("continuous", help="Dispatch one request per interval until stopped")
    continuous.add_argument("--intensity", type=int, help="Work units per request")
    continuous.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl+C)",
    )

    sub.add_parser("info", help="Show the endpoint's system snapshot")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _try_unlock(panel: ControlPanel, secret: Optional[str]) -> bool:
    """Run the unlock flow after a denial. Returns True once unlocked."""
    if secret is None:
        if not sys.stdin.isatty():
            return False
        secret = Prompt.ask("Enter password to unlock limits", password=True, console=console)
    if panel.unlock(secret) is UnlockOutcome.UNLOCKED:
        console.print("[green]Limits unlocked for this session[/green]")
        return True
    console.print("[red]Incorrect password[/red]")
    return False


async def _admitted(
    panel: ControlPanel,
    propose: Callable[[], Awaitable[DispatchOutcome]],
    secret: Optional[str],
) -> Optional[DispatchOutcome]:
    outcome = await propose()
    if not outcome.denied:
        return outcome
    exceeded = " and ".join(outcome.admission.exceeded)
    console.print(
        f"[yellow]Request limits exceeded ({exceeded}). Current limits: "
        f"{panel.settings.max_concurrency} concurrent requests and "
        f"{panel.settings.max_intensity:,} intensity per request.[/yellow]"
    )
    if not _try_unlock(panel, secret):
        return None
    return await propose()


def _print_results(panel: ControlPanel) -> None:
    console.print(render_summary(panel.summary()))
    if len(panel.aggregator):
        console.print(render_results_table(panel.aggregator.results))


async def _run_continuous(panel: ControlPanel, intensity: Optional[int], duration: Optional[float], secret: Optional[str]) -> int:
    async def _start() -> DispatchOutcome:
        return panel.start_continuous(intensity)

    outcome = await _admitted(panel, _start, secret)
    if outcome is None:
        return 1

    dashboard = PanelDashboard(panel, console=console)
    panel.engine.attach_observer(dashboard)
    panel.telemetry.start()
    with Live(dashboard.render(), console=console, refresh_per_second=4, transient=False) as live:
        dashboard.bind(live)
        try:
            if duration is None:
                while True:
                    await asyncio.sleep(1)
            else:
                await asyncio.sleep(duration)
        finally:
            panel.stop_continuous()
            dashboard.refresh()

    console.print(
        f"[bold]Continuous run finished:[/bold] {panel.engine.request_count} requests, "
        f"{panel.engine.current_rps:.2f} req/s"
    )
    return 0


async def _main_async(args: argparse.Namespace) -> int:
    overrides = {}
    if args.api_url:
        overrides["api_url"] = args.api_url
    settings = PanelSettings(**overrides)

    async with ControlPanel(settings) as panel:
        if args.command == "info":
            snapshot = await panel.telemetry.poll_once()
            if snapshot is None:
                console.print("[red]Could not fetch system info[/red]")
                return 1
            console.print(render_system_info(snapshot))
            return 0

        if args.command == "continuous":
            return await _run_continuous(panel, args.intensity, args.duration, args.unlock_secret)

        if args.command == "single":
            outcome = await _admitted(panel, lambda: panel.single(args.intensity), args.unlock_secret)
        else:
            outcome = await _admitted(
                panel, lambda: panel.batch(args.concurrency, args.intensity), args.unlock_secret
            )
        if outcome is None:
            return 1
        if not outcome.results:
            console.print("[red]Test failed; see log for details[/red]")
        _print_results(panel)
        return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return asyncio.run(_main_async(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
        return 0
    except ValueError as e:
        console.print(f"[red]Invalid argument: {e}[/red]")
        return 2


if __name__ == "__main__":
    sys.exit(main())
