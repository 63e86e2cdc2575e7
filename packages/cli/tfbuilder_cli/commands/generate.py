from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.syntax import Syntax

from tfbuilder_cli.utils import handle_error, json_mode

console = Console()


def generate(
    ctx: typer.Context,
    design_file: Annotated[Path, typer.Argument(help="Design file (YAML or JSON)", exists=True)],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output directory or .tf file")] = None,
    token: Annotated[
        str | None, typer.Option("--token", envvar="TFBUILDER_TOKEN", help="Terraform Cloud token to validate")
    ] = None,
    remote_modules: Annotated[
        bool,
        typer.Option(
            "--remote-modules/--no-remote-modules",
            envvar="TFBUILDER_USE_REMOTE_MODULES",
            help="Use Git-hosted modules where available",
        ),
    ] = True,
) -> None:
    """Generate Terraform for a design file."""
    try:
        from tfbuilder.config import load_settings
        from tfbuilder.generator import generate_sync, write_terraform
        from tfbuilder.spec import Design

        settings = load_settings()
        design = Design.from_file(design_file)

        with console.status("Generating Terraform..."):
            result = generate_sync(
                design.resources,
                design.global_config,
                terraform_token=token,
                use_remote_modules=remote_modules,
                settings=settings,
            )

        written: Path | None = None
        if output is not None:
            if output.suffix == ".tf":
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_text(result.code + "\n")
                written = output
            else:
                written = write_terraform(result.code, output)

        if json_mode(ctx):
            payload = result.to_api()
            if written:
                payload["path"] = str(written)
            print(json.dumps(payload))
            return

        for warning in result.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")
        if token:
            status = "[green]valid[/green]" if result.token_valid else "[red]invalid[/red]"
            console.print(f"Terraform Cloud token: {status}")
        if written:
            console.print(f"[green]Written to {written}[/green]")
        else:
            console.print(Syntax(result.code, "hcl", theme="monokai", word_wrap=True))
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
