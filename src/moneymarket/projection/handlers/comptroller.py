"""
Handlers for events emitted by the comptroller (the protocol singleton).
"""

from moneymarket.database.models import MarketTable
from moneymarket.events import (
    LogMeta,
    MarketEnteredEvent,
    MarketExitedEvent,
    MarketListedEvent,
    NewCloseFactorEvent,
    NewCollateralFactorEvent,
    NewLiquidationIncentiveEvent,
    NewMaxAssetsEvent,
    NewPriceOracleEvent,
)
from moneymarket.logging import logger
from moneymarket.numeric import from_mantissa
from moneymarket.projection.accounts import get_or_create_account, get_or_create_position
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.markets import get_or_create_market
from moneymarket.projection.protocol import ensure_protocol_synced, get_or_create_protocol_config


def _load_market_with_backfill(
    context: ProjectionContext,
    market_address: str,
    meta: LogMeta,
    handler_name: str,
) -> MarketTable | None:
    """
    Load a market, backfilling protocol state if it is unknown. Returns None and counts the event
    as dropped if the market still cannot be resolved.
    """

    if (market := context.session.get(MarketTable, market_address)) is not None:
        return market

    logger.debug(f"[{handler_name}] market null: {market_address}")
    ensure_protocol_synced(
        context,
        comptroller=meta.address,
        block_number=meta.block_number,
        block_timestamp=meta.block_timestamp,
    )

    if (market := context.session.get(MarketTable, market_address)) is None:
        logger.info(f"[{handler_name}] market {market_address} still null, dropping event")
        context.dropped_events[handler_name] += 1
    return market


def process_market_listed_event(context: ProjectionContext, event: MarketListedEvent) -> None:
    # Watch only after the market exists, a failed identity read leaves nothing registered
    get_or_create_market(context, event.market, event.meta.block_number)
    context.watcher.watch(event.market)


def _set_collateral_membership(
    context: ProjectionContext,
    event: MarketEnteredEvent | MarketExitedEvent,
    *,
    entered: bool,
    handler_name: str,
) -> None:
    market = _load_market_with_backfill(context, event.market, event.meta, handler_name)
    if market is None:
        return

    get_or_create_account(context.session, event.account)
    position = get_or_create_position(
        session=context.session,
        reader=context.reader,
        market_id=event.market,
        symbol=market.symbol,
        account_id=event.account,
        transaction_hash=event.meta.transaction_hash,
        timestamp=event.meta.block_timestamp,
        block_number=event.meta.block_number,
        log_index=event.meta.log_index,
    )
    position.entered_market = entered


def process_market_entered_event(context: ProjectionContext, event: MarketEnteredEvent) -> None:
    _set_collateral_membership(
        context,
        event,
        entered=True,
        handler_name="process_market_entered_event",
    )


def process_market_exited_event(context: ProjectionContext, event: MarketExitedEvent) -> None:
    _set_collateral_membership(
        context,
        event,
        entered=False,
        handler_name="process_market_exited_event",
    )


def process_new_close_factor_event(context: ProjectionContext, event: NewCloseFactorEvent) -> None:
    config = get_or_create_protocol_config(context.session)
    config.close_factor = event.new_close_factor_mantissa


def process_new_collateral_factor_event(
    context: ProjectionContext, event: NewCollateralFactorEvent
) -> None:
    market = _load_market_with_backfill(
        context,
        event.market,
        event.meta,
        handler_name="process_new_collateral_factor_event",
    )
    if market is None:
        return
    market.collateral_factor = from_mantissa(event.new_collateral_factor_mantissa)


def process_new_liquidation_incentive_event(
    context: ProjectionContext, event: NewLiquidationIncentiveEvent
) -> None:
    config = get_or_create_protocol_config(context.session)
    config.liquidation_incentive = event.new_liquidation_incentive_mantissa


def process_new_max_assets_event(context: ProjectionContext, event: NewMaxAssetsEvent) -> None:
    config = get_or_create_protocol_config(context.session)
    config.max_assets = event.new_max_assets


def process_new_price_oracle_event(context: ProjectionContext, event: NewPriceOracleEvent) -> None:
    config = get_or_create_protocol_config(context.session)
    config.price_oracle = event.new_price_oracle
    logger.info(f"SET NEW PRICE ORACLE: {event.new_price_oracle}")
