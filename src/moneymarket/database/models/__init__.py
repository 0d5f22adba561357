from .base import Base
from .moneymarket import (
    AccountPositionTable,
    AccountTable,
    AccountTransactionTable,
    BorrowEventTable,
    LiquidationEventTable,
    MarketTable,
    MintEventTable,
    ProtocolConfigTable,
    RedeemEventTable,
    RepayEventTable,
    TransferEventTable,
)

__all__ = (
    "AccountPositionTable",
    "AccountTable",
    "AccountTransactionTable",
    "Base",
    "BorrowEventTable",
    "LiquidationEventTable",
    "MarketTable",
    "MintEventTable",
    "ProtocolConfigTable",
    "RedeemEventTable",
    "RepayEventTable",
    "TransferEventTable",
)
