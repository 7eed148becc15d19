"""Entry point for the healthwatch service: `healthwatch` console script."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from healthwatch.config import Settings
from healthwatch.health.aggregator import Aggregator
from healthwatch.health.engine import HealthStatus
from healthwatch.health.errors import ConfigurationError
from healthwatch.health.registry import ProbeRegistry
from healthwatch.health.reporter import encode, to_machine_readable

console = Console()

_STATUS_STYLE = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.DEGRADED: "yellow",
    HealthStatus.UNHEALTHY: "red",
}


def run_server(settings: Settings) -> None:
    """Start the FastAPI server."""
    from healthwatch.api.server import create_app

    app = create_app(settings)
    console.print(
        Panel.fit(
            f"[bold]{settings.api_name}[/bold]\n"
            f"Bind:    {settings.host}:{settings.port}\n"
            f"Probes:  {len(app.state.registry)} (timeout {settings.probe_timeout:g}s)\n"
            f"Health:  {settings.health_path}  {settings.health_info_path}  {settings.health_ui_path}\n"
            f"Monitor: {settings.monitor_path}",
            title="healthwatch",
            border_style="green",
        )
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def run_check(settings: Settings, as_json: bool = False) -> int:
    """Run every probe once and print the report. Returns the exit code."""
    aggregator = Aggregator(ProbeRegistry.from_settings(settings))
    try:
        report = aggregator.run_sync()
    finally:
        aggregator.close()

    if as_json:
        print(encode(to_machine_readable(report)))
    else:
        table = Table(title=settings.api_name)
        table.add_column("Probe")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Details")
        for name, result in report.entries.items():
            style = _STATUS_STYLE[result.status]
            table.add_row(
                name,
                f"[{style}]{result.status.value}[/{style}]",
                f"{result.duration_ms:.0f}ms",
                result.error or result.description or "",
            )
        console.print(table)
        style = _STATUS_STYLE[report.status]
        console.print(f"Overall: [bold {style}]{report.status.value}[/bold {style}]")

    return 0 if report.status is HealthStatus.HEALTHY else 1


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Health aggregation service")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the HTTP server")

    check_parser = sub.add_parser("check", help="Run all probes once and exit")
    check_parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    try:
        if args.command == "serve":
            run_server(settings)
        elif args.command == "check":
            sys.exit(run_check(settings, as_json=args.json))
        else:
            parser.print_help()
            sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
