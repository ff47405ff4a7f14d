"""Typer application and CLI entry point for gremlin-mcp.

Commands:

* ``serve`` -- run the MCP server over stdio.  stdout belongs to the
  protocol, so every diagnostic goes to stderr.
* ``check`` -- fetch the calling user (``users/self``) once and print it,
  to confirm the API key and base URL work before wiring the server into
  an agent.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.  Errors derived from
:class:`~gremlin_mcp.exceptions.GremlinMcpError` are printed as
``Error: ...`` and mapped to the exit code carried by the exception.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Optional

import typer

from gremlin_mcp import __version__
from gremlin_mcp.client import GremlinApi, GremlinClient
from gremlin_mcp.config import resolve_config
from gremlin_mcp.exceptions import GremlinMcpError
from gremlin_mcp.exit_codes import EXIT_INTERRUPTED
from gremlin_mcp.models import ServerConfig
from gremlin_mcp.output import (
    OutputFormat,
    OutputManager,
    error,
    format_response,
    set_output,
    success,
)

app = typer.Typer(
    name="gremlin-mcp",
    help="MCP server for the Gremlin reliability API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"gremlin-mcp {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print data as plain JSON."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (cache hits, retries)."
    ),
) -> None:
    """Initialise the global :class:`~gremlin_mcp.output.OutputManager`."""
    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


# ------------------------------------------------------------------ #
# Shared options
# ------------------------------------------------------------------ #

_BASE_URL = typer.Option(None, "--base-url", help="Gremlin API base URL.")
_MAX_RETRIES = typer.Option(
    None, "--max-retries", min=1, help="Attempts per upstream request (default 3)."
)
_NO_CACHE = typer.Option(False, "--no-cache", help="Disable the response cache.")
_CONFIG = typer.Option(None, "--config", "-c", help="Path to a JSON config file.")


def _resolve(
    config_path: Optional[str],
    base_url: Optional[str],
    max_retries: Optional[int],
    no_cache: bool,
) -> ServerConfig:
    return resolve_config(
        config_path=config_path,
        cli_base_url=base_url,
        cli_max_retries=max_retries,
        cli_no_cache=no_cache,
    )


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("serve")
def serve_command(
    base_url: Optional[str] = _BASE_URL,
    max_retries: Optional[int] = _MAX_RETRIES,
    no_cache: bool = _NO_CACHE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Run the MCP server over stdio."""
    from gremlin_mcp.server import run_stdio

    try:
        config = _resolve(config_path, base_url, max_retries, no_cache)
        asyncio.run(run_stdio(config))
    except GremlinMcpError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


async def _fetch_self(config: ServerConfig) -> dict[str, Any]:
    async with GremlinClient(config) as client:
        me = await GremlinApi(client).get_self()
    return me.model_dump(mode="json", by_alias=True, exclude_unset=True)


@app.command("check")
def check_command(
    base_url: Optional[str] = _BASE_URL,
    max_retries: Optional[int] = _MAX_RETRIES,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Verify the API key by fetching the calling user."""
    try:
        config = _resolve(config_path, base_url, max_retries, no_cache=True)
        me = asyncio.run(_fetch_self(config))
        format_response(me)
        success(f"API key accepted by {config.base_url}")
    except GremlinMcpError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def main() -> None:
    """CLI entry point invoked by the ``gremlin-mcp`` console script."""
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except GremlinMcpError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
