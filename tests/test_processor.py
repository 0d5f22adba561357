from typing import get_args

import pytest
from sqlalchemy import func, select

from moneymarket.constants import PROTOCOL_CONFIG_ID
from moneymarket.database.models import AccountTable, MarketTable, ProtocolConfigTable
from moneymarket.events import (
    LiquidateBorrowEvent,
    MarketListedEvent,
    MoneyMarketEvent,
    NewCloseFactorEvent,
    NewReserveFactorEvent,
)
from moneymarket.exceptions import ContractCallError, UnknownEventError
from moneymarket.projection.processor import EVENT_HANDLERS, EventProcessor
from tests.conftest import (
    ALICE,
    BOB,
    COMPTROLLER_ADDRESS,
    DAI_MARKET_ADDRESS,
    USDC_MARKET_ADDRESS,
    FakeChainReader,
    make_meta,
)


def test_every_event_type_has_a_handler():
    assert set(EVENT_HANDLERS) == set(get_args(MoneyMarketEvent.__value__))


def test_unknown_event_type(processor: EventProcessor):
    with pytest.raises(UnknownEventError, match="No handler registered for event type object"):
        processor.process(object())  # type: ignore[arg-type]


def test_failed_event_is_rolled_back(processor: EventProcessor, reader: FakeChainReader):
    session = processor.context.session
    processor.process(
        NewCloseFactorEvent(
            meta=make_meta(COMPTROLLER_ADDRESS, 100),
            new_close_factor_mantissa=5 * 10**17,
        )
    )

    reader.reverting.add("underlying")
    with pytest.raises(ContractCallError):
        processor.process(
            LiquidateBorrowEvent(
                meta=make_meta(USDC_MARKET_ADDRESS, 101),
                liquidator=ALICE,
                borrower=BOB,
                repay_amount=10**6,
                collateral_market=DAI_MARKET_ADDRESS,
                seize_tokens=10**8,
            )
        )

    # Account counters were changed before the market read failed
    assert session.get(AccountTable, ALICE) is None
    assert session.get(AccountTable, BOB) is None
    assert session.scalar(select(func.count()).select_from(MarketTable)) == 0

    # Earlier events stay committed
    config = session.get(ProtocolConfigTable, PROTOCOL_CONFIG_ID)
    assert config is not None
    assert config.close_factor == 5 * 10**17

    # The processor can continue after the failure
    reader.reverting.clear()
    processor.process(
        NewReserveFactorEvent(
            meta=make_meta(DAI_MARKET_ADDRESS, 102),
            new_reserve_factor_mantissa=10**17,
        )
    )
    assert session.get(MarketTable, DAI_MARKET_ADDRESS) is not None


def test_process_all(processor: EventProcessor):
    processor.process_all(
        [
            MarketListedEvent(
                meta=make_meta(COMPTROLLER_ADDRESS, 100, log_index=0),
                market=DAI_MARKET_ADDRESS,
            ),
            MarketListedEvent(
                meta=make_meta(COMPTROLLER_ADDRESS, 100, log_index=1),
                market=USDC_MARKET_ADDRESS,
            ),
        ]
    )

    session = processor.context.session
    assert session.scalar(select(func.count()).select_from(MarketTable)) == 2


def test_dropped_events_are_shared_with_handlers(processor: EventProcessor):
    assert processor.dropped_events is processor.context.dropped_events
    assert processor.dropped_events == {}
