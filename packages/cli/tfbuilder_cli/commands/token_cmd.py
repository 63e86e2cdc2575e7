from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer
from rich.console import Console

from tfbuilder_cli.utils import json_mode

console = Console()


def validate_token(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(envvar="TFBUILDER_TOKEN", help="Terraform Cloud API token")],
) -> None:
    """Check a Terraform Cloud token."""
    from tfbuilder.config import load_settings
    from tfbuilder.terraform_cloud import validate_token as check

    settings = load_settings()
    with console.status("Validating token..."):
        valid = asyncio.run(check(token, settings.terraform_api_url, settings.token_timeout))

    if json_mode(ctx):
        print(json.dumps({"valid": valid}))
    elif valid:
        console.print("[green]Token is valid[/green]")
    else:
        console.print("[red]Token is invalid[/red]")

    if not valid:
        raise typer.Exit(1)
