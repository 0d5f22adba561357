from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from sqlalchemy.orm import Session

from moneymarket.chain import AbstractChainReader
from moneymarket.database.models import (
    AccountPositionTable,
    AccountTable,
    AccountTransactionTable,
)
from moneymarket.numeric import ZERO, from_position_tokens
from moneymarket.projection.reads import try_read


def get_position_id(market_id: str, account_id: str) -> str:
    return f"{market_id}-{account_id}"


def get_or_create_account(session: Session, account_id: ChecksumAddress) -> AccountTable:
    """
    Get existing account or create new one with zeroed counters.
    """

    if (account := session.get(AccountTable, account_id)) is None:
        account = AccountTable(
            id=account_id,
            count_liquidated=0,
            count_liquidator=0,
            has_borrowed=False,
        )
        session.add(account)
        session.flush()
    return account


def get_or_create_account_transaction(
    session: Session,
    position_id: str,
    transaction_hash: HexBytes,
    timestamp: int,
    block_number: int,
    log_index: int,
) -> AccountTransactionTable:
    """
    Get the marker for this position and log, creating it if the log has not been seen.
    """

    transaction_id = f"{position_id}-{transaction_hash.to_0x_hex()}-{log_index}"

    if (transaction := session.get(AccountTransactionTable, transaction_id)) is None:
        transaction = AccountTransactionTable(
            id=transaction_id,
            position_id=position_id,
            transaction_hash=transaction_hash.to_0x_hex(),
            timestamp=timestamp,
            block_number=block_number,
            log_index=log_index,
        )
        session.add(transaction)
        session.flush()
    return transaction


def get_or_create_position(
    *,
    session: Session,
    reader: AbstractChainReader,
    market_id: ChecksumAddress,
    symbol: str,
    account_id: ChecksumAddress,
    transaction_hash: HexBytes,
    timestamp: int,
    block_number: int,
    log_index: int,
) -> AccountPositionTable:
    """
    Get the account's position in the market, creating it if necessary, and mark the log.

    A new position is seeded with the account's position token balance at the previous block.
    Indexing may begin after the account first entered the market, and the balance at the previous
    block excludes the effect of the event being applied.
    """

    position_id = get_position_id(market_id, account_id)

    if (position := session.get(AccountPositionTable, position_id)) is None:
        initial_balance = try_read(
            lambda: reader.balance_of(market_id, account_id, block_number - 1),
            default=0,
            description=f"balanceOf({account_id}) on market {market_id}",
        )
        position = AccountPositionTable(
            id=position_id,
            market_id=market_id,
            account_id=account_id,
            symbol=symbol,
            accrual_block_number=0,
            entered_market=False,
            position_balance=from_position_tokens(initial_balance),
            total_underlying_supplied=ZERO,
            total_underlying_redeemed=ZERO,
            total_underlying_borrowed=ZERO,
            total_underlying_repaid=ZERO,
            stored_borrow_balance=ZERO,
            account_borrow_index=ZERO,
        )
        session.add(position)
        session.flush()

    get_or_create_account_transaction(
        session=session,
        position_id=position_id,
        transaction_hash=transaction_hash,
        timestamp=timestamp,
        block_number=block_number,
        log_index=log_index,
    )

    position.accrual_block_number = block_number
    return position
