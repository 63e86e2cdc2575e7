from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tfbuilder_cli.utils import handle_error, json_mode

console = Console()

landing_zone_app = typer.Typer(
    name="landing-zone",
    help="Browse and expand predefined landing zones.",
    no_args_is_help=True,
)


@landing_zone_app.callback(invoke_without_command=True)
def landing_zone_callback(ctx: typer.Context) -> None:
    # Propagate json/verbose flags from parent ctx into this sub-app's ctx
    if ctx.obj is None and ctx.parent and ctx.parent.obj:
        ctx.obj = ctx.parent.obj
    elif ctx.obj is None:
        ctx.ensure_object(dict)


@landing_zone_app.command("list")
def list_zones(ctx: typer.Context) -> None:
    """List available landing zones."""
    from tfbuilder.landing_zones import list_landing_zones

    zones = list_landing_zones()

    if json_mode(ctx):
        print(json.dumps({"landingZones": [z.summary() for z in zones]}))
        return

    table = Table(title="Landing Zones")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Resources", justify="right")
    table.add_column("Description", style="dim")
    for z in zones:
        table.add_row(z.id, z.name, str(len(z.resources)), z.description)
    console.print(table)


@landing_zone_app.command("expand")
def expand(
    ctx: typer.Context,
    zone_id: Annotated[str, typer.Argument(help="Landing zone id")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the design to this file")] = None,
    project: Annotated[str | None, typer.Option("--project", "-p", help="Project code")] = None,
    environment: Annotated[str | None, typer.Option("--environment", "-e", help="dev, test, nonprod or prod")] = None,
    region: Annotated[str | None, typer.Option("--region", "-r", help="Azure region label")] = None,
) -> None:
    """Expand a landing zone into a design file."""
    try:
        from tfbuilder.landing_zones import expand_landing_zone, get_landing_zone
        from tfbuilder.merge import apply_global_config
        from tfbuilder.spec import Design, GlobalConfig

        zone = get_landing_zone(zone_id)
        overrides = {"projectName": project, "environment": environment, "region": region}
        global_config = GlobalConfig.model_validate(
            {k: v for k, v in overrides.items() if v is not None} | {"landingZoneId": zone.id}
        )
        resources = apply_global_config(expand_landing_zone(zone.id), global_config)
        design = Design(name=zone.name, resources=resources, global_config=global_config)

        if output:
            output.write_text(design.to_json() if output.suffix == ".json" else design.to_yaml())

        if json_mode(ctx):
            payload = json.loads(design.to_json())
            if output:
                payload["path"] = str(output)
            print(json.dumps(payload))
        elif output:
            console.print(f"[green]Written to {output}[/green] ({len(resources)} resources)")
        else:
            print(design.to_yaml())
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
