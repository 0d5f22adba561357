from eth_typing import ChecksumAddress

from moneymarket.checksum_cache import get_checksum_address
from moneymarket.constants import MANTISSA_DECIMALS, POSITION_TOKEN_DECIMALS, ZERO_ADDRESS
from moneymarket.database.models import MarketTable
from moneymarket.logging import logger
from moneymarket.numeric import (
    ONE,
    ZERO,
    divide,
    exchange_rate_from_mantissa,
    from_mantissa,
    to_decimal,
    truncate,
)
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.prices import (
    resolve_native_asset_price_usd,
    resolve_underlying_price_usd,
)
from moneymarket.projection.reads import try_read


def create_market(
    context: ProjectionContext,
    market_address: ChecksumAddress,
    block_number: int,
) -> MarketTable:
    """
    Create a market from its contract metadata. All metrics start at zero until the first refresh.

    Identity reads (underlying token, name, symbol, decimals) are mandatory and a failure will
    propagate.
    """

    reader = context.reader
    logger.debug(f"[create_market] market address: {market_address}")

    if (
        native_market := context.deployment.native_market
    ) is not None and native_market.address == market_address:
        underlying_address = native_market.underlying_address
        underlying_decimals = native_market.underlying_decimals
        underlying_name = native_market.underlying_name
        underlying_symbol = native_market.underlying_symbol
        underlying_price = ONE
    else:
        underlying_address = get_checksum_address(reader.underlying(market_address, block_number))
        logger.debug(f"[create_market] market underlying address: {underlying_address}")
        underlying_decimals = reader.decimals(underlying_address, block_number)
        underlying_name = reader.name(underlying_address, block_number)
        underlying_symbol = reader.symbol(underlying_address, block_number)
        underlying_price = ZERO

    if (pegged_price := context.deployment.pegged_usd_price(market_address)) is not None:
        underlying_price_usd = pegged_price
    else:
        underlying_price_usd = ZERO

    interest_rate_model_address = try_read(
        lambda: reader.interest_rate_model(market_address, block_number),
        default=ZERO_ADDRESS,
        description=f"interestRateModel() on market {market_address}",
    )
    reserve_factor = try_read(
        lambda: reader.reserve_factor_mantissa(market_address, block_number),
        default=0,
        description=f"reserveFactorMantissa() on market {market_address}",
    )

    market = MarketTable(
        id=market_address,
        name=reader.name(market_address, block_number),
        symbol=reader.symbol(market_address, block_number),
        underlying_address=underlying_address,
        underlying_decimals=underlying_decimals,
        underlying_name=underlying_name,
        underlying_symbol=underlying_symbol,
        interest_rate_model_address=interest_rate_model_address,
        accrual_block_number=0,
        block_timestamp=0,
        exchange_rate=ZERO,
        borrow_index=ZERO,
        reserves=ZERO,
        total_borrows=ZERO,
        total_supply=ZERO,
        cash=ZERO,
        borrow_rate=ZERO,
        supply_rate=ZERO,
        collateral_factor=ZERO,
        reserve_factor=from_mantissa(reserve_factor),
        underlying_price=underlying_price,
        underlying_price_usd=underlying_price_usd,
    )
    context.session.add(market)
    context.session.flush()
    return market


def get_or_create_market(
    context: ProjectionContext,
    market_address: ChecksumAddress,
    block_number: int,
) -> MarketTable:
    if (market := context.session.get(MarketTable, market_address)) is None:
        logger.debug(f"[get_or_create_market] market null: {market_address}, creating...")
        market = create_market(context, market_address, block_number)
    return market


def refresh_market(
    context: ProjectionContext,
    market_address: ChecksumAddress,
    block_number: int,
    block_timestamp: int,
) -> MarketTable:
    """
    Refresh prices, balances, indices and rates for the market from the chain.

    A market is refreshed at most once per block. Subsequent calls in the same block return the
    market unchanged.
    """

    market = get_or_create_market(context, market_address, block_number)
    if market.accrual_block_number == block_number:
        return market

    reader = context.reader
    decimals = market.underlying_decimals

    native_price_usd = resolve_native_asset_price_usd(context, block_number)

    if context.deployment.is_native_market(market.id):
        market.underlying_price_usd = truncate(native_price_usd, decimals)
    else:
        token_price_usd = resolve_underlying_price_usd(
            context, market_address, decimals, block_number
        )
        market.underlying_price = (
            ZERO
            if native_price_usd == ZERO
            else truncate(divide(token_price_usd, native_price_usd), decimals)
        )
        # Pegged markets keep their fixed USD price
        if context.deployment.pegged_usd_price(market.id) is None:
            market.underlying_price_usd = truncate(token_price_usd, decimals)

    market.total_supply = to_decimal(
        reader.total_supply(market_address, block_number),
        POSITION_TOKEN_DECIMALS,
    )

    # Known to revert on the first call for some markets
    market.exchange_rate = exchange_rate_from_mantissa(
        try_read(
            lambda: reader.exchange_rate_stored(market_address, block_number),
            default=0,
            description=f"exchangeRateStored() on market {market_address}",
        ),
        decimals,
    )
    market.borrow_index = from_mantissa(reader.borrow_index(market_address, block_number))
    market.reserves = to_decimal(
        reader.total_reserves(market_address, block_number), decimals, truncate_to=decimals
    )
    market.total_borrows = to_decimal(
        reader.total_borrows(market_address, block_number), decimals, truncate_to=decimals
    )
    market.cash = to_decimal(
        reader.cash(market_address, block_number), decimals, truncate_to=decimals
    )
    market.borrow_rate = to_decimal(
        try_read(
            lambda: reader.borrow_rate_per_block(market_address, block_number),
            default=0,
            description=f"borrowRatePerBlock() on market {market_address}",
        ),
        MANTISSA_DECIMALS,
        truncate_to=MANTISSA_DECIMALS,
    )
    market.supply_rate = to_decimal(
        try_read(
            lambda: reader.supply_rate_per_block(market_address, block_number),
            default=0,
            description=f"supplyRatePerBlock() on market {market_address}",
        ),
        MANTISSA_DECIMALS,
        truncate_to=MANTISSA_DECIMALS,
    )

    market.accrual_block_number = block_number
    market.block_timestamp = block_timestamp
    context.session.flush()
    return market
