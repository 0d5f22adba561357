import click

from moneymarket.version import __version__


@click.group()
@click.version_option(version=__version__)
def cli() -> None: ...


from . import config, database, market, protocol  # noqa: F401, E402
