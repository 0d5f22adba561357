from collections import Counter
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy.orm import Session

from moneymarket.chain import AbstractChainReader
from moneymarket.deployments import MoneyMarketDeployment
from moneymarket.events import (
    AccrueInterestEvent,
    BorrowEvent,
    LiquidateBorrowEvent,
    MarketEnteredEvent,
    MarketExitedEvent,
    MarketListedEvent,
    MintEvent,
    MoneyMarketEvent,
    NewCloseFactorEvent,
    NewCollateralFactorEvent,
    NewLiquidationIncentiveEvent,
    NewMarketInterestRateModelEvent,
    NewMaxAssetsEvent,
    NewPriceOracleEvent,
    NewReserveFactorEvent,
    RedeemEvent,
    RepayBorrowEvent,
    TransferEvent,
)
from moneymarket.exceptions.projection import UnknownEventError
from moneymarket.logging import logger
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.handlers.comptroller import (
    process_market_entered_event,
    process_market_exited_event,
    process_market_listed_event,
    process_new_close_factor_event,
    process_new_collateral_factor_event,
    process_new_liquidation_incentive_event,
    process_new_max_assets_event,
    process_new_price_oracle_event,
)
from moneymarket.projection.handlers.market import (
    process_accrue_interest_event,
    process_borrow_event,
    process_liquidate_borrow_event,
    process_mint_event,
    process_new_market_interest_rate_model_event,
    process_new_reserve_factor_event,
    process_redeem_event,
    process_repay_borrow_event,
    process_transfer_event,
)
from moneymarket.watchers import AbstractContractWatcher

EVENT_HANDLERS: dict[type, Callable[[ProjectionContext, Any], None]] = {
    # Comptroller
    MarketListedEvent: process_market_listed_event,
    MarketEnteredEvent: process_market_entered_event,
    MarketExitedEvent: process_market_exited_event,
    NewCloseFactorEvent: process_new_close_factor_event,
    NewCollateralFactorEvent: process_new_collateral_factor_event,
    NewLiquidationIncentiveEvent: process_new_liquidation_incentive_event,
    NewMaxAssetsEvent: process_new_max_assets_event,
    NewPriceOracleEvent: process_new_price_oracle_event,
    # Markets
    MintEvent: process_mint_event,
    RedeemEvent: process_redeem_event,
    BorrowEvent: process_borrow_event,
    RepayBorrowEvent: process_repay_borrow_event,
    LiquidateBorrowEvent: process_liquidate_borrow_event,
    TransferEvent: process_transfer_event,
    AccrueInterestEvent: process_accrue_interest_event,
    NewReserveFactorEvent: process_new_reserve_factor_event,
    NewMarketInterestRateModelEvent: process_new_market_interest_rate_model_event,
}


class EventProcessor:
    """
    Applies money market events to the database, one at a time and in the order given.

    Each event is applied in its own transaction. If a handler raises, the partial changes are
    rolled back and the exception is re-raised, leaving the database as of the previous event.
    """

    def __init__(
        self,
        session: Session,
        reader: AbstractChainReader,
        watcher: AbstractContractWatcher,
        deployment: MoneyMarketDeployment,
    ) -> None:
        self.context = ProjectionContext(
            session=session,
            reader=reader,
            watcher=watcher,
            deployment=deployment,
        )

    @property
    def dropped_events(self) -> Counter[str]:
        """
        Counts of events skipped because a referenced market could not be resolved, keyed by
        handler name.
        """
        return self.context.dropped_events

    def process(self, event: MoneyMarketEvent) -> None:
        event_type = type(event)
        if event_type not in EVENT_HANDLERS:
            raise UnknownEventError(event_type=event_type)

        handler = EVENT_HANDLERS[event_type]
        session = self.context.session
        try:
            handler(self.context, event)
        except Exception:
            logger.info(f"Processing failed on event: {event}")
            session.rollback()
            raise
        session.commit()

    def process_all(self, events: Iterable[MoneyMarketEvent]) -> None:
        for event in events:
            self.process(event)
