from decimal import Decimal

from sqlalchemy import Index
from sqlalchemy.orm import Mapped, relationship

from .base import Address, Base, BigInteger
from .types import (
    ForeignKeyAccountId,
    ForeignKeyMarketId,
    ForeignKeyPositionId,
    PrimaryKeyAddress,
    PrimaryKeyString,
    TransactionHash,
)


class ProtocolConfigTable(Base):
    """
    Protocol-wide parameters held by the comptroller. There is exactly one row, with a fixed key.

    Factors are stored as raw 18-decimal mantissas.
    """

    __tablename__ = "protocol_config"

    id: Mapped[PrimaryKeyString]
    price_oracle: Mapped[Address | None]
    close_factor: Mapped[BigInteger | None]
    liquidation_incentive: Mapped[BigInteger | None]
    max_assets: Mapped[BigInteger | None]


class MarketTable(Base):
    __tablename__ = "markets"

    # The market (position token) contract address
    id: Mapped[PrimaryKeyAddress]

    name: Mapped[str]
    symbol: Mapped[str]
    underlying_address: Mapped[Address]
    underlying_decimals: Mapped[int]
    underlying_name: Mapped[str]
    underlying_symbol: Mapped[str]
    interest_rate_model_address: Mapped[Address]

    accrual_block_number: Mapped[int]
    block_timestamp: Mapped[int]

    exchange_rate: Mapped[Decimal]
    borrow_index: Mapped[Decimal]
    reserves: Mapped[Decimal]
    total_borrows: Mapped[Decimal]
    total_supply: Mapped[Decimal]
    cash: Mapped[Decimal]
    borrow_rate: Mapped[Decimal]
    supply_rate: Mapped[Decimal]
    collateral_factor: Mapped[Decimal]
    reserve_factor: Mapped[Decimal]
    underlying_price: Mapped[Decimal]
    underlying_price_usd: Mapped[Decimal]

    # Relationships
    positions: Mapped[list["AccountPositionTable"]] = relationship(
        "AccountPositionTable",
        back_populates="market",
    )


class AccountTable(Base):
    __tablename__ = "accounts"

    id: Mapped[PrimaryKeyAddress]
    count_liquidated: Mapped[int]
    count_liquidator: Mapped[int]
    has_borrowed: Mapped[bool]

    # Relationships
    positions: Mapped[list["AccountPositionTable"]] = relationship(
        "AccountPositionTable",
        back_populates="account",
    )


class AccountPositionTable(Base):
    """
    An account's holdings and running activity within one market.

    Running totals are in underlying token units and never decrease. The borrow balance and borrow
    index are snapshots taken at the last borrow or repay.
    """

    __tablename__ = "account_positions"

    # "{market address}-{account address}"
    id: Mapped[PrimaryKeyString]
    market_id: Mapped[ForeignKeyMarketId]
    account_id: Mapped[ForeignKeyAccountId]

    symbol: Mapped[str]
    accrual_block_number: Mapped[int]
    entered_market: Mapped[bool]

    position_balance: Mapped[Decimal]
    total_underlying_supplied: Mapped[Decimal]
    total_underlying_redeemed: Mapped[Decimal]
    total_underlying_borrowed: Mapped[Decimal]
    total_underlying_repaid: Mapped[Decimal]
    stored_borrow_balance: Mapped[Decimal]
    account_borrow_index: Mapped[Decimal]

    # Relationships
    market: Mapped["MarketTable"] = relationship(
        "MarketTable",
        back_populates="positions",
    )
    account: Mapped["AccountTable"] = relationship(
        "AccountTable",
        back_populates="positions",
    )
    transactions: Mapped[list["AccountTransactionTable"]] = relationship(
        "AccountTransactionTable",
        back_populates="position",
    )


Index(
    "ix_account_positions_market_account",
    AccountPositionTable.market_id,
    AccountPositionTable.account_id,
    unique=True,
)


class AccountTransactionTable(Base):
    """
    A marker recording that a log touched a position. Created at most once per
    (account, market, transaction, log).
    """

    __tablename__ = "account_transactions"

    # "{market address}-{account address}-{transaction hash}-{log index}"
    id: Mapped[PrimaryKeyString]
    position_id: Mapped[ForeignKeyPositionId]

    transaction_hash: Mapped[TransactionHash]
    timestamp: Mapped[int]
    block_number: Mapped[int]
    log_index: Mapped[int]

    # Relationships
    position: Mapped["AccountPositionTable"] = relationship(
        "AccountPositionTable",
        back_populates="transactions",
    )


class MintEventTable(Base):
    __tablename__ = "mint_events"

    # "{transaction hash}-{log index}"
    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    from_address: Mapped[Address]
    to_address: Mapped[Address]
    symbol: Mapped[str]
    amount: Mapped[Decimal]
    underlying_amount: Mapped[Decimal]
    price_usd: Mapped[Decimal]

    supply_rate_per_block: Mapped[Decimal]
    borrow_rate_per_block: Mapped[Decimal]
    exchange_rate: Mapped[Decimal]
    total_supply: Mapped[Decimal]
    total_borrows: Mapped[Decimal]


class RedeemEventTable(Base):
    __tablename__ = "redeem_events"

    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    from_address: Mapped[Address]
    to_address: Mapped[Address]
    symbol: Mapped[str]
    amount: Mapped[Decimal]
    underlying_amount: Mapped[Decimal]


class BorrowEventTable(Base):
    __tablename__ = "borrow_events"

    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    borrower: Mapped[Address]
    underlying_symbol: Mapped[str]
    amount: Mapped[Decimal]
    account_borrows: Mapped[Decimal]


class RepayEventTable(Base):
    __tablename__ = "repay_events"

    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    borrower: Mapped[Address]
    payer: Mapped[Address]
    underlying_symbol: Mapped[str]
    amount: Mapped[Decimal]
    account_borrows: Mapped[Decimal]


class LiquidationEventTable(Base):
    __tablename__ = "liquidation_events"

    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    # The borrower
    from_address: Mapped[Address]
    # The liquidator
    to_address: Mapped[Address]
    # Symbol of the seized collateral market
    symbol: Mapped[str]
    # Symbol of the repaid underlying asset
    underlying_symbol: Mapped[str]
    # Seized position tokens
    amount: Mapped[Decimal]
    underlying_repay_amount: Mapped[Decimal]


class TransferEventTable(Base):
    __tablename__ = "transfer_events"

    id: Mapped[PrimaryKeyString]
    block_number: Mapped[int]
    block_time: Mapped[int]
    transaction_log_index: Mapped[int]

    from_address: Mapped[Address]
    to_address: Mapped[Address]
    symbol: Mapped[str]
    amount: Mapped[Decimal]
