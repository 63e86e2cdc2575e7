import typer

from tfbuilder_cli import __version__
from tfbuilder_cli.commands.generate import generate
from tfbuilder_cli.commands.landing_zone_cmd import landing_zone_app
from tfbuilder_cli.commands.modules_cmd import modules
from tfbuilder_cli.commands.naming_cmd import check_name, name
from tfbuilder_cli.commands.token_cmd import validate_token
from tfbuilder_cli.utils import setup_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"tfbuilder {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="tfbuilder",
    help="Generate Azure Terraform from resource designs",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    setup_logging(verbose)


app.command()(generate)
app.command()(modules)
app.command()(name)
app.command(name="check-name")(check_name)
app.command(name="validate-token")(validate_token)
app.add_typer(landing_zone_app, name="landing-zone")
