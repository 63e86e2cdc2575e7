from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console

from tfbuilder_cli.utils import json_mode

console = Console()


def name(
    ctx: typer.Context,
    resource_type: Annotated[str, typer.Argument(help="Resource type, e.g. key_vault")],
    instance: Annotated[int, typer.Option("--instance", "-n", min=1, help="Instance number")] = 1,
    project: Annotated[str, typer.Option("--project", "-p", help="Project code")] = "iim",
    environment: Annotated[str, typer.Option("--environment", "-e", help="dev, test, nonprod or prod")] = "nonprod",
    region: Annotated[str, typer.Option("--region", "-r", help="Azure region label")] = "Central US",
) -> None:
    """Suggest an Azure name for a resource type."""
    from tfbuilder.naming import suggest_name, validate_name

    suggestion = suggest_name(resource_type, instance, project, environment, region)
    check = validate_name(resource_type, suggestion)

    if json_mode(ctx):
        print(json.dumps({"type": resource_type, "name": suggestion, **check.to_dict()}))
        return

    console.print(suggestion)
    for error in check.errors:
        console.print(f"[yellow]Warning:[/yellow] {error}")


def check_name(
    ctx: typer.Context,
    resource_type: Annotated[str, typer.Argument(help="Resource type, e.g. storage_account")],
    value: Annotated[str, typer.Argument(help="Name to check")],
) -> None:
    """Check a name against Azure naming rules."""
    from tfbuilder.naming import validate_name

    result = validate_name(resource_type, value)

    if json_mode(ctx):
        print(json.dumps({"type": resource_type, "name": value, **result.to_dict()}))
    elif result.is_valid:
        console.print(f"[green][PASS][/green] {value}")
    else:
        console.print(f"[red][FAIL][/red] {value}")
        for error in result.errors:
            console.print(f"  - {error}")

    if not result.is_valid:
        raise typer.Exit(1)
