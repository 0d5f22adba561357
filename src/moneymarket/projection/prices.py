"""
USD prices for market underlying assets, read from the protocol's price oracle.

The oracle reports each price scaled by 10**(36 - underlying decimals): the 18-decimal mantissa
combined with a (18 - decimals) compensation for underlying tokens with fewer than 18 decimals.
"""

from decimal import Decimal

from eth_typing import ChecksumAddress

from moneymarket.constants import MANTISSA_DECIMALS, PROTOCOL_CONFIG_ID, ZERO_ADDRESS
from moneymarket.database.models import ProtocolConfigTable
from moneymarket.logging import logger
from moneymarket.numeric import MANTISSA_FACTOR, ZERO, divide, scale_factor
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.reads import try_read


def _get_oracle_address(context: ProjectionContext) -> ChecksumAddress | None:
    config = context.session.get(ProtocolConfigTable, PROTOCOL_CONFIG_ID)
    if config is None or config.price_oracle is None or config.price_oracle == ZERO_ADDRESS:
        return None
    return ChecksumAddress(config.price_oracle)


def resolve_underlying_price_usd(
    context: ProjectionContext,
    market_address: ChecksumAddress,
    underlying_decimals: int,
    block_number: int,
) -> Decimal:
    """
    Get the USD price of the market's underlying asset. Returns zero if the price oracle is not yet
    known or the oracle call fails.
    """

    if (oracle := _get_oracle_address(context)) is None:
        logger.debug(f"[resolve_underlying_price_usd] no price oracle, {market_address} price is 0")
        return ZERO

    raw_price = try_read(
        lambda: context.reader.underlying_price(oracle, market_address, block_number),
        default=0,
        description=f"getUnderlyingPrice({market_address})",
    )
    return divide(
        Decimal(raw_price),
        scale_factor(MANTISSA_DECIMALS - underlying_decimals + MANTISSA_DECIMALS),
    )


def resolve_native_asset_price_usd(context: ProjectionContext, block_number: int) -> Decimal:
    """
    Get the USD price of the chain's native asset, via the oracle price of the native asset
    market. Returns zero if the price is unavailable.
    """

    if (native_market := context.deployment.native_market) is None:
        return ZERO

    if (oracle := _get_oracle_address(context)) is None:
        return ZERO

    raw_price = try_read(
        lambda: context.reader.underlying_price(oracle, native_market.address, block_number),
        default=0,
        description=f"getUnderlyingPrice({native_market.address})",
    )
    return divide(Decimal(raw_price), MANTISSA_FACTOR)


def resolve_market_price_usd(
    context: ProjectionContext,
    market_address: ChecksumAddress,
    underlying_decimals: int,
    block_number: int,
) -> Decimal:
    """
    Get the USD price of the market's underlying asset, using the native asset price for the native
    asset market.
    """

    if context.deployment.is_native_market(market_address):
        return resolve_native_asset_price_usd(context, block_number)
    return resolve_underlying_price_usd(context, market_address, underlying_decimals, block_number)
