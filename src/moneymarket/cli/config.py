import click
import tomlkit
from pydantic import TypeAdapter

from moneymarket.cli import cli
from moneymarket.config import settings


@cli.group()
def config() -> None:
    """
    Configuration commands
    """


@config.command("show")
@click.option(
    "--json",
    "output_format",
    flag_value="json",
    type=str,
    help="Show configuration in JSON format",
)
@click.option(
    "--toml",
    "output_format",
    flag_value="toml",
    type=str,
    help="Show configuration in TOML format (default)",
    default=True,
)
def config_show(output_format: str) -> None:
    """
    Display the current configuration in JSON or TOML (default) format.
    """

    match output_format:
        case "json":
            click.echo(
                TypeAdapter(dict).dump_json(
                    settings.model_dump(),
                    indent=2,
                ),
            )
        case "toml":
            config_dict = settings.model_dump()
            # TOML keys must be strings
            config_dict["rpc"] = {
                str(chain_id): str(endpoint) for chain_id, endpoint in settings.rpc.items()
            }
            click.echo(
                tomlkit.dumps(config_dict),
            )
        case _:
            ...
