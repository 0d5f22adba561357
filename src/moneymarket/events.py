"""
Decoded money market events, as delivered by the host in chain order.

Comptroller events are emitted by the protocol singleton. Market events are emitted by each listed
market (position token) contract, whose address is `meta.address`.
"""

from dataclasses import dataclass

from eth_typing import ChecksumAddress
from hexbytes import HexBytes


@dataclass(slots=True, frozen=True)
class LogMeta:
    address: ChecksumAddress
    block_number: int
    block_timestamp: int
    transaction_hash: HexBytes
    transaction_log_index: int
    log_index: int

    @property
    def record_id(self) -> str:
        """
        The identity key for history records created from this log.
        """
        return f"{self.transaction_hash.to_0x_hex()}-{self.log_index}"


# Comptroller events


@dataclass(slots=True, frozen=True)
class MarketListedEvent:
    meta: LogMeta
    market: ChecksumAddress


@dataclass(slots=True, frozen=True)
class MarketEnteredEvent:
    meta: LogMeta
    market: ChecksumAddress
    account: ChecksumAddress


@dataclass(slots=True, frozen=True)
class MarketExitedEvent:
    meta: LogMeta
    market: ChecksumAddress
    account: ChecksumAddress


@dataclass(slots=True, frozen=True)
class NewCloseFactorEvent:
    meta: LogMeta
    new_close_factor_mantissa: int


@dataclass(slots=True, frozen=True)
class NewCollateralFactorEvent:
    meta: LogMeta
    market: ChecksumAddress
    new_collateral_factor_mantissa: int


@dataclass(slots=True, frozen=True)
class NewLiquidationIncentiveEvent:
    meta: LogMeta
    new_liquidation_incentive_mantissa: int


@dataclass(slots=True, frozen=True)
class NewMaxAssetsEvent:
    meta: LogMeta
    new_max_assets: int


@dataclass(slots=True, frozen=True)
class NewPriceOracleEvent:
    meta: LogMeta
    new_price_oracle: ChecksumAddress


# Market events


@dataclass(slots=True, frozen=True)
class MintEvent:
    meta: LogMeta
    minter: ChecksumAddress
    mint_amount: int
    mint_tokens: int


@dataclass(slots=True, frozen=True)
class RedeemEvent:
    meta: LogMeta
    redeemer: ChecksumAddress
    redeem_amount: int
    redeem_tokens: int


@dataclass(slots=True, frozen=True)
class BorrowEvent:
    meta: LogMeta
    borrower: ChecksumAddress
    borrow_amount: int
    account_borrows: int
    total_borrows: int


@dataclass(slots=True, frozen=True)
class RepayBorrowEvent:
    meta: LogMeta
    payer: ChecksumAddress
    borrower: ChecksumAddress
    repay_amount: int
    account_borrows: int
    total_borrows: int


@dataclass(slots=True, frozen=True)
class LiquidateBorrowEvent:
    meta: LogMeta
    liquidator: ChecksumAddress
    borrower: ChecksumAddress
    repay_amount: int
    collateral_market: ChecksumAddress
    seize_tokens: int


@dataclass(slots=True, frozen=True)
class TransferEvent:
    meta: LogMeta
    sender: ChecksumAddress
    recipient: ChecksumAddress
    amount: int


@dataclass(slots=True, frozen=True)
class AccrueInterestEvent:
    meta: LogMeta
    cash_prior: int
    interest_accumulated: int
    borrow_index: int
    total_borrows: int


@dataclass(slots=True, frozen=True)
class NewReserveFactorEvent:
    meta: LogMeta
    new_reserve_factor_mantissa: int


@dataclass(slots=True, frozen=True)
class NewMarketInterestRateModelEvent:
    meta: LogMeta
    new_interest_rate_model: ChecksumAddress


type MoneyMarketEvent = (
    MarketListedEvent
    | MarketEnteredEvent
    | MarketExitedEvent
    | NewCloseFactorEvent
    | NewCollateralFactorEvent
    | NewLiquidationIncentiveEvent
    | NewMaxAssetsEvent
    | NewPriceOracleEvent
    | MintEvent
    | RedeemEvent
    | BorrowEvent
    | RepayBorrowEvent
    | LiquidateBorrowEvent
    | TransferEvent
    | AccrueInterestEvent
    | NewReserveFactorEvent
    | NewMarketInterestRateModelEvent
)
