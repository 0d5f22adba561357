from eth_typing import ChecksumAddress
from sqlalchemy.orm import Session

from moneymarket.constants import PROTOCOL_CONFIG_ID, ZERO_ADDRESS
from moneymarket.database.models import ProtocolConfigTable
from moneymarket.logging import logger
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.markets import refresh_market


def get_or_create_protocol_config(session: Session) -> ProtocolConfigTable:
    """
    Get the protocol configuration, creating an empty one if it does not exist. Fields are filled
    in by the matching parameter change events.
    """

    if (config := session.get(ProtocolConfigTable, PROTOCOL_CONFIG_ID)) is None:
        config = ProtocolConfigTable(id=PROTOCOL_CONFIG_ID)
        session.add(config)
        session.flush()
    return config


def ensure_protocol_synced(
    context: ProjectionContext,
    comptroller: ChecksumAddress,
    block_number: int,
    block_timestamp: int,
) -> ProtocolConfigTable:
    """
    Return the protocol configuration, backfilling it from the chain if it has never been observed.

    The backfill reads all protocol parameters from the comptroller, then refreshes and watches
    every market the comptroller currently lists. This covers events that reference a market
    before its listing event has been delivered.
    """

    session = context.session
    reader = context.reader

    if (config := session.get(ProtocolConfigTable, PROTOCOL_CONFIG_ID)) is not None:
        return config

    logger.debug(f"[ensure_protocol_synced] backfilling protocol state at block {block_number}")

    price_oracle = reader.oracle(comptroller, block_number)
    config = ProtocolConfigTable(
        id=PROTOCOL_CONFIG_ID,
        price_oracle=None if price_oracle == ZERO_ADDRESS else price_oracle,
        close_factor=reader.close_factor_mantissa(comptroller, block_number),
        liquidation_incentive=reader.liquidation_incentive_mantissa(comptroller, block_number),
        max_assets=reader.max_assets(comptroller, block_number),
    )
    session.add(config)
    session.flush()

    market_addresses = reader.all_markets(comptroller, block_number)
    for market_address in market_addresses:
        refresh_market(context, market_address, block_number, block_timestamp)
        logger.debug(f"[ensure_protocol_synced] backfilled market {market_address}")

    # Register watches once every market has been stored
    for market_address in market_addresses:
        context.watcher.watch(market_address)

    return config
