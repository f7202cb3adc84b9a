"""HTTP server CLI command."""

from typing import Optional

import click

from tbhiv_registry.web.app import run_server


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", type=int, default=None, help="Bind port (default: from config)")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Run the registry HTTP API.

    Examples:

        tbhiv-registry serve

        tbhiv-registry serve --host 0.0.0.0 --port 8080
    """
    run_server(ctx.obj["config"], host=host, port=port)
