"""
possaga CLI Application - Built with Click.

Commands:
    possaga simulate        Run one order against in-memory backends
    possaga serve-metrics   Expose Prometheus metrics over HTTP
"""

import time

import click
from rich.console import Console

from possaga import __version__
from possaga.cli.simulate import simulate_cmd
from possaga.monitoring.prometheus import start_metrics_server

console = Console()


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="possaga")
def cli():
    """
    possaga - Point-of-sale transaction orchestration.

    \b
    Commands:
        simulate         Run one order against in-memory backends
        serve-metrics    Expose Prometheus metrics over HTTP
    """


@click.command(name="serve-metrics")
@click.option("--port", "-p", default=8000, show_default=True, type=int, help="Port to listen on")
@click.option("--addr", default="0.0.0.0", show_default=True, help="Address to bind to")
def serve_metrics_cmd(port: int, addr: str):
    """Start the Prometheus exporter and block until interrupted."""
    start_metrics_server(port=port, addr=addr)
    console.print(f"[green]Metrics available at http://{addr}:{port}/metrics[/green] (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(3600)
    except KeyboardInterrupt:
        console.print("Stopped.")


cli.add_command(simulate_cmd)
cli.add_command(serve_metrics_cmd)
