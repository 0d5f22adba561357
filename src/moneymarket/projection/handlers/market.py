"""
Handlers for events emitted by market (position token) contracts.

A mint or redeem always emits a paired Transfer, and a liquidation always emits a paired repay and
Transfer, so position balances and supply/redeem totals are only changed by the Transfer handler.
The market's AccrueInterest event is always emitted before these, so no handler other than Transfer
needs to refresh the market.

Every handler that creates a history record first checks whether the record for the log already
exists. If it does, the log has already been applied and the handler changes nothing.
"""

from sqlalchemy.orm import Session

from moneymarket.constants import POSITION_TOKEN_DECIMALS
from moneymarket.database.models import (
    BorrowEventTable,
    LiquidationEventTable,
    MintEventTable,
    RedeemEventTable,
    RepayEventTable,
    TransferEventTable,
)
from moneymarket.database.models.base import Base
from moneymarket.events import (
    AccrueInterestEvent,
    BorrowEvent,
    LiquidateBorrowEvent,
    LogMeta,
    MintEvent,
    NewMarketInterestRateModelEvent,
    NewReserveFactorEvent,
    RedeemEvent,
    RepayBorrowEvent,
    TransferEvent,
)
from moneymarket.logging import logger
from moneymarket.numeric import (
    add,
    exchange_rate_from_mantissa,
    from_mantissa,
    from_position_tokens,
    multiply,
    subtract,
    to_decimal,
    truncate,
)
from moneymarket.projection.accounts import get_or_create_account, get_or_create_position
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.markets import get_or_create_market, refresh_market
from moneymarket.projection.prices import resolve_market_price_usd
from moneymarket.projection.reads import try_read


def _already_recorded(session: Session, table: type[Base], meta: LogMeta) -> bool:
    if session.get(table, meta.record_id) is not None:
        logger.debug(f"{table.__tablename__} record {meta.record_id} exists, skipping")
        return True
    return False


def process_mint_event(context: ProjectionContext, event: MintEvent) -> None:
    """
    Record a supply of underlying assets in exchange for position tokens.
    """

    meta = event.meta
    if _already_recorded(context.session, MintEventTable, meta):
        return

    market = get_or_create_market(context, meta.address, meta.block_number)
    reader = context.reader
    decimals = market.underlying_decimals

    supply_rate = try_read(
        lambda: reader.supply_rate_per_block(market.id, meta.block_number),
        default=0,
        description=f"supplyRatePerBlock() on market {market.id}",
    )
    borrow_rate = try_read(
        lambda: reader.borrow_rate_per_block(market.id, meta.block_number),
        default=0,
        description=f"borrowRatePerBlock() on market {market.id}",
    )
    exchange_rate = try_read(
        lambda: reader.exchange_rate_stored(market.id, meta.block_number),
        default=0,
        description=f"exchangeRateStored() on market {market.id}",
    )
    total_supply = try_read(
        lambda: reader.total_supply(market.id, meta.block_number),
        default=0,
        description=f"totalSupply() on market {market.id}",
    )
    total_borrows = try_read(
        lambda: reader.total_borrows(market.id, meta.block_number),
        default=0,
        description=f"totalBorrows() on market {market.id}",
    )

    context.session.add(
        MintEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            from_address=market.id,
            to_address=event.minter,
            symbol=market.symbol,
            amount=from_position_tokens(event.mint_tokens),
            underlying_amount=to_decimal(event.mint_amount, decimals, truncate_to=decimals),
            price_usd=resolve_market_price_usd(context, market.id, decimals, meta.block_number),
            supply_rate_per_block=from_mantissa(supply_rate),
            borrow_rate_per_block=from_mantissa(borrow_rate),
            exchange_rate=exchange_rate_from_mantissa(exchange_rate, decimals),
            total_supply=to_decimal(total_supply, POSITION_TOKEN_DECIMALS),
            total_borrows=to_decimal(total_borrows, decimals, truncate_to=decimals),
        )
    )


def process_redeem_event(context: ProjectionContext, event: RedeemEvent) -> None:
    """
    Record a return of position tokens in exchange for underlying assets.
    """

    meta = event.meta
    if _already_recorded(context.session, RedeemEventTable, meta):
        return

    market = get_or_create_market(context, meta.address, meta.block_number)
    decimals = market.underlying_decimals

    context.session.add(
        RedeemEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            from_address=event.redeemer,
            to_address=market.id,
            symbol=market.symbol,
            amount=from_position_tokens(event.redeem_tokens),
            underlying_amount=to_decimal(event.redeem_amount, decimals, truncate_to=decimals),
        )
    )


def process_borrow_event(context: ProjectionContext, event: BorrowEvent) -> None:
    """
    Record a borrow and snapshot the borrower's balance and the market borrow index.

    `account_borrows` is the borrower's total outstanding balance after the borrow.
    """

    meta = event.meta
    if _already_recorded(context.session, BorrowEventTable, meta):
        return

    market = get_or_create_market(context, meta.address, meta.block_number)
    decimals = market.underlying_decimals

    account = get_or_create_account(context.session, event.borrower)
    account.has_borrowed = True

    borrow_amount = to_decimal(event.borrow_amount, decimals, truncate_to=decimals)
    account_borrows = to_decimal(event.account_borrows, decimals, truncate_to=decimals)

    position = get_or_create_position(
        session=context.session,
        reader=context.reader,
        market_id=market.id,
        symbol=market.symbol,
        account_id=event.borrower,
        transaction_hash=meta.transaction_hash,
        timestamp=meta.block_timestamp,
        block_number=meta.block_number,
        log_index=meta.log_index,
    )
    position.stored_borrow_balance = account_borrows
    position.account_borrow_index = market.borrow_index
    position.total_underlying_borrowed = add(position.total_underlying_borrowed, borrow_amount)

    context.session.add(
        BorrowEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            borrower=event.borrower,
            underlying_symbol=market.underlying_symbol,
            amount=borrow_amount,
            account_borrows=account_borrows,
        )
    )


def process_repay_borrow_event(context: ProjectionContext, event: RepayBorrowEvent) -> None:
    """
    Record a repayment. Anyone can repay any borrower's balance.

    After a full repayment, the position keeps the market borrow index from this event instead of
    resetting it to zero.
    """

    meta = event.meta
    if _already_recorded(context.session, RepayEventTable, meta):
        return

    market = get_or_create_market(context, meta.address, meta.block_number)
    decimals = market.underlying_decimals

    get_or_create_account(context.session, event.borrower)

    repay_amount = to_decimal(event.repay_amount, decimals, truncate_to=decimals)
    account_borrows = to_decimal(event.account_borrows, decimals, truncate_to=decimals)

    position = get_or_create_position(
        session=context.session,
        reader=context.reader,
        market_id=market.id,
        symbol=market.symbol,
        account_id=event.borrower,
        transaction_hash=meta.transaction_hash,
        timestamp=meta.block_timestamp,
        block_number=meta.block_number,
        log_index=meta.log_index,
    )
    position.stored_borrow_balance = account_borrows
    position.account_borrow_index = market.borrow_index
    position.total_underlying_repaid = add(position.total_underlying_repaid, repay_amount)

    context.session.add(
        RepayEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            borrower=event.borrower,
            payer=event.payer,
            underlying_symbol=market.underlying_symbol,
            amount=repay_amount,
            account_borrows=account_borrows,
        )
    )


def process_liquidate_borrow_event(
    context: ProjectionContext, event: LiquidateBorrowEvent
) -> None:
    """
    Record a liquidation and count it for both accounts.

    The liquidator repays the borrow in this market (the event address) and seizes position tokens
    in the collateral market. The repayment and the seizure each emit their own events, so only the
    liquidation bookkeeping is done here.
    """

    meta = event.meta
    if _already_recorded(context.session, LiquidationEventTable, meta):
        return

    liquidator = get_or_create_account(context.session, event.liquidator)
    liquidator.count_liquidator += 1

    borrower = get_or_create_account(context.session, event.borrower)
    borrower.count_liquidated += 1

    repay_market = get_or_create_market(context, meta.address, meta.block_number)
    collateral_market = get_or_create_market(context, event.collateral_market, meta.block_number)
    decimals = repay_market.underlying_decimals

    context.session.add(
        LiquidationEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            from_address=event.borrower,
            to_address=event.liquidator,
            symbol=collateral_market.symbol,
            underlying_symbol=repay_market.underlying_symbol,
            amount=from_position_tokens(event.seize_tokens),
            underlying_repay_amount=to_decimal(
                event.repay_amount, decimals, truncate_to=decimals
            ),
        )
    )


def process_transfer_event(context: ProjectionContext, event: TransferEvent) -> None:
    """
    Move position tokens between accounts.

    Transfers are emitted by mints (sent from the market contract), redeems (sent to the market
    contract), liquidation seizures and plain transfers. The market contract is not tracked as an
    account on the side that matches it.
    """

    meta = event.meta
    if _already_recorded(context.session, TransferEventTable, meta):
        return

    market = get_or_create_market(context, meta.address, meta.block_number)
    # Plain transfers are not preceded by an interest accrual in the same block
    if market.accrual_block_number != meta.block_number:
        market = refresh_market(context, meta.address, meta.block_number, meta.block_timestamp)

    decimals = market.underlying_decimals
    amount = from_position_tokens(event.amount)
    amount_underlying = truncate(multiply(market.exchange_rate, amount), decimals)

    # A transfer from the market contract is a mint
    if event.sender != market.id:
        get_or_create_account(context.session, event.sender)
        sender_position = get_or_create_position(
            session=context.session,
            reader=context.reader,
            market_id=market.id,
            symbol=market.symbol,
            account_id=event.sender,
            transaction_hash=meta.transaction_hash,
            timestamp=meta.block_timestamp,
            block_number=meta.block_number,
            log_index=meta.log_index,
        )
        sender_position.position_balance = subtract(sender_position.position_balance, amount)
        sender_position.total_underlying_redeemed = add(
            sender_position.total_underlying_redeemed, amount_underlying
        )

    # A transfer to the market contract is a redeem. Tokens sent directly to the market contract
    # outside of a redeem are not reconciled.
    if event.recipient != market.id:
        get_or_create_account(context.session, event.recipient)
        recipient_position = get_or_create_position(
            session=context.session,
            reader=context.reader,
            market_id=market.id,
            symbol=market.symbol,
            account_id=event.recipient,
            transaction_hash=meta.transaction_hash,
            timestamp=meta.block_timestamp,
            block_number=meta.block_number,
            log_index=meta.log_index,
        )
        recipient_position.position_balance = add(recipient_position.position_balance, amount)
        recipient_position.total_underlying_supplied = add(
            recipient_position.total_underlying_supplied, amount_underlying
        )

    context.session.add(
        TransferEventTable(
            id=meta.record_id,
            block_number=meta.block_number,
            block_time=meta.block_timestamp,
            transaction_log_index=meta.transaction_log_index,
            from_address=event.sender,
            to_address=event.recipient,
            symbol=market.symbol,
            amount=amount,
        )
    )


def process_accrue_interest_event(context: ProjectionContext, event: AccrueInterestEvent) -> None:
    refresh_market(
        context,
        event.meta.address,
        event.meta.block_number,
        event.meta.block_timestamp,
    )


def process_new_reserve_factor_event(
    context: ProjectionContext, event: NewReserveFactorEvent
) -> None:
    market = get_or_create_market(context, event.meta.address, event.meta.block_number)
    market.reserve_factor = from_mantissa(event.new_reserve_factor_mantissa)


def process_new_market_interest_rate_model_event(
    context: ProjectionContext, event: NewMarketInterestRateModelEvent
) -> None:
    market = get_or_create_market(context, event.meta.address, event.meta.block_number)
    market.interest_rate_model_address = event.new_interest_rate_model
