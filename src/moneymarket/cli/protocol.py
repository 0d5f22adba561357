import click

from moneymarket.chain import Web3ChainReader
from moneymarket.checksum_cache import get_checksum_address
from moneymarket.cli import cli
from moneymarket.cli.utils import get_web3_from_config
from moneymarket.config import settings
from moneymarket.constants import PROTOCOL_CONFIG_ID
from moneymarket.database.models import ProtocolConfigTable
from moneymarket.database.operations import get_scoped_sqlite_session
from moneymarket.deployments import MilkomedaC1MoneyMarket
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.protocol import ensure_protocol_synced
from moneymarket.watchers import RecordingContractWatcher


@cli.group()
def protocol() -> None:
    """
    Protocol commands
    """


@protocol.command("sync")
@click.option(
    "--comptroller",
    "comptroller_address",
    required=True,
    help="Address of the protocol's comptroller contract",
)
@click.option(
    "--block",
    "block_number",
    type=int,
    default=None,
    help="Block to read protocol state at (default: latest)",
)
def protocol_sync(comptroller_address: str, block_number: int | None) -> None:
    """
    Backfill protocol parameters and all listed markets from the chain.
    """

    deployment = MilkomedaC1MoneyMarket
    w3 = get_web3_from_config(deployment.chain_id)

    if block_number is None:
        block_number = w3.eth.block_number
    block_timestamp = w3.eth.get_block(block_number)["timestamp"]

    watcher = RecordingContractWatcher()
    db_session = get_scoped_sqlite_session(database_path=settings.database.path)
    with db_session() as session:
        if session.get(ProtocolConfigTable, PROTOCOL_CONFIG_ID) is not None:
            click.echo("Protocol state already synced, nothing to do.")
            return

        ensure_protocol_synced(
            ProjectionContext(
                session=session,
                reader=Web3ChainReader(w3),
                watcher=watcher,
                deployment=deployment,
            ),
            comptroller=get_checksum_address(comptroller_address),
            block_number=block_number,
            block_timestamp=block_timestamp,
        )
        session.commit()

    click.echo(f"Synced {len(watcher.addresses)} markets at block {block_number}.")
