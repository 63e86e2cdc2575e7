from __future__ import annotations

import json
import logging

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from tfbuilder.errors import TfBuilderError

_err_console = Console(stderr=True)


def get_obj(ctx: typer.Context) -> dict:
    """Root options, resolved through the parent chain for sub-apps."""
    while ctx is not None:
        if ctx.obj:
            return ctx.obj
        ctx = ctx.parent
    return {}


def json_mode(ctx: typer.Context) -> bool:
    return bool(get_obj(ctx).get("json", False))


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=_err_console, show_path=verbose)],
        force=True,
    )


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    obj = get_obj(ctx)
    verbose = obj.get("verbose", False)

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif isinstance(e, ValidationError):
        msg = f"Invalid design: {e}"
    elif isinstance(e, (TfBuilderError, ValueError)):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if obj.get("json", False):
        print(json.dumps({"error": msg}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)
