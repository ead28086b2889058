"""Command-line interface for the metrics agent and server."""

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from .central import ServerConfig, run_server
from .edge import AgentConfig, run_agent
from .errors import ConfigError
from .utils import setup_logging

agent_app = typer.Typer(
    name="runmetrics-agent",
    help="Collects runtime metrics of its own process and reports them to the metrics server",
    add_completion=False,
)

server_app = typer.Typer(
    name="runmetrics-server",
    help="HTTP server that receives metrics from agents and keeps them in memory",
    add_completion=False,
)

console = Console(stderr=True)


def _config_table(title: str, rows: dict) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in rows.items():
        table.add_row(key, str(value))
    return table


def _fail(message: str):
    console.print(f"[bold red]Invalid configuration:[/bold red] {message}")
    raise typer.Exit(1)


@agent_app.command()
def agent(
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Metrics server address (default: localhost:8080)"),
    poll_interval: Optional[int] = typer.Option(None, "--poll-interval", "-p", help="Poll interval in seconds (default: 2)"),
    report_interval: Optional[int] = typer.Option(None, "--report-interval", "-r", help="Report interval in seconds (default: 10)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    use_json: bool = typer.Option(False, "--json", help="Send gzip-compressed JSON updates instead of path-style ones"),
):
    """Run the metrics agent.

    ADDRESS, POLL_INTERVAL and REPORT_INTERVAL environment variables
    override the corresponding flags.
    """
    try:
        base = AgentConfig.from_yaml(str(config_file)) if config_file else None
        config = AgentConfig.from_cli(
            address=address,
            poll_interval=poll_interval,
            report_interval=report_interval,
            verbose=verbose,
            use_json=use_json,
            base=base,
        )
    except (ConfigError, OSError, yaml.YAMLError, TypeError) as e:
        _fail(str(e))

    setup_logging("DEBUG" if config.verbose else None)
    console.print(_config_table("Agent configuration", {
        "Server": config.base_url,
        "Poll interval": f"{config.poll_interval}s",
        "Report interval": f"{config.report_interval}s",
        "Format": "json" if config.use_json else "path",
    }))

    run_agent(config)


@server_app.command()
def server(
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Listen address: host:port, :port or port (default: localhost:8080)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Run the metrics server.

    The ADDRESS environment variable overrides --address.
    """
    try:
        config = ServerConfig.from_cli(address=address, verbose=verbose)
    except ConfigError as e:
        _fail(str(e))

    setup_logging("DEBUG" if config.verbose else None)
    console.print(_config_table("Server configuration", {
        "Host": config.host,
        "Port": config.port,
    }))

    run_server(config)


if __name__ == "__main__":
    agent_app()
