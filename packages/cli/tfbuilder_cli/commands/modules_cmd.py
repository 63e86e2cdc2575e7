from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from tfbuilder_cli.utils import json_mode

console = Console()


def modules(ctx: typer.Context) -> None:
    """List resource types backed by remote Git modules."""
    from tfbuilder.modules import RESOURCE_GROUP_MODULE, list_remote_modules

    entries = [RESOURCE_GROUP_MODULE, *list_remote_modules()]

    if json_mode(ctx):
        print(json.dumps({"modules": [m.to_dict() for m in entries]}))
        return

    table = Table(title="Remote Modules")
    table.add_column("Resource Type", style="cyan")
    table.add_column("Module")
    table.add_column("Source", style="dim")
    for m in entries:
        table.add_row(m.resource_type, m.module_name, m.source)
    console.print(table)
