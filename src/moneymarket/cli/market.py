import click
from sqlalchemy import select

from moneymarket.cli import cli
from moneymarket.config import settings
from moneymarket.database.models import MarketTable
from moneymarket.database.operations import get_scoped_sqlite_session


@cli.group()
def market() -> None:
    """
    Market commands
    """


@market.command("list")
def market_list() -> None:
    """
    List the markets recorded in the database.
    """

    db_session = get_scoped_sqlite_session(database_path=settings.database.path)
    with db_session() as session:
        markets = session.scalars(select(MarketTable).order_by(MarketTable.symbol)).all()
        if not markets:
            click.echo("No markets found.")
            return

        for market in markets:
            click.echo(
                f"{market.symbol} ({market.id}): underlying {market.underlying_symbol}, "
                f"exchange rate {market.exchange_rate}, "
                f"price ${market.underlying_price_usd}, "
                f"updated at block {market.accrual_block_number}"
            )
