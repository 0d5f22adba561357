import logging
from collections.abc import Generator
from dataclasses import dataclass
from decimal import Decimal

import pytest
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from moneymarket.chain import AbstractChainReader
from moneymarket.checksum_cache import get_checksum_address
from moneymarket.constants import ZERO_ADDRESS
from moneymarket.database.models import Base
from moneymarket.deployments import MoneyMarketDeployment, NativeMarketDeployment
from moneymarket.events import LogMeta
from moneymarket.exceptions.contract import ContractCallReverted
from moneymarket.logging import logger
from moneymarket.projection.context import ProjectionContext
from moneymarket.projection.processor import EventProcessor
from moneymarket.watchers import RecordingContractWatcher

COMPTROLLER_ADDRESS = get_checksum_address("0x00000000000000000000000000000000000c0de1")
ORACLE_ADDRESS = get_checksum_address("0x00000000000000000000000000000000000000a1")
INTEREST_RATE_MODEL_ADDRESS = get_checksum_address("0x00000000000000000000000000000000000001a1")

NATIVE_MARKET_ADDRESS = get_checksum_address("0x0000000000000000000000000000000000000eee")
DAI_MARKET_ADDRESS = get_checksum_address("0x0000000000000000000000000000000000000aaa")
DAI_ADDRESS = get_checksum_address("0x000000000000000000000000000000000000da10")
USDC_MARKET_ADDRESS = get_checksum_address("0x0000000000000000000000000000000000000ccc")
USDC_ADDRESS = get_checksum_address("0x000000000000000000000000000000000000c0c0")

ALICE = get_checksum_address("0x000000000000000000000000000000000000a11c")
BOB = get_checksum_address("0x0000000000000000000000000000000000000bbb")
CAROL = get_checksum_address("0x00000000000000000000000000000000000ca201")

# Raw oracle prices, scaled by 10**(36 - underlying decimals)
NATIVE_PRICE_RAW = 2_000 * 10**18
DAI_PRICE_RAW = 10**18
USDC_PRICE_RAW = 10**30


def make_meta(
    address: ChecksumAddress,
    block_number: int = 100,
    log_index: int = 0,
    transaction_hash: HexBytes | None = None,
    block_timestamp: int | None = None,
) -> LogMeta:
    if transaction_hash is None:
        transaction_hash = HexBytes(block_number.to_bytes(32, "big"))
    if block_timestamp is None:
        block_timestamp = 1_700_000_000 + 12 * block_number
    return LogMeta(
        address=address,
        block_number=block_number,
        block_timestamp=block_timestamp,
        transaction_hash=transaction_hash,
        transaction_log_index=log_index,
        log_index=log_index,
    )


@dataclass
class FakeToken:
    name: str
    symbol: str
    decimals: int


@dataclass
class FakeMarket:
    name: str
    symbol: str
    underlying: ChecksumAddress
    exchange_rate: int = 0
    borrow_index: int = 10**18
    total_reserves: int = 0
    total_borrows: int = 0
    cash: int = 0
    borrow_rate: int = 0
    supply_rate: int = 0
    total_supply: int = 0
    interest_rate_model: ChecksumAddress = INTEREST_RATE_MODEL_ADDRESS
    reserve_factor: int = 0


class FakeChainReader(AbstractChainReader):
    """
    An in-memory chain reader. Values are returned for any block, and any read named in `reverting`
    raises as a reverted call.
    """

    def __init__(self) -> None:
        self.oracle_address: ChecksumAddress = ZERO_ADDRESS
        self.close_factor = 0
        self.liquidation_incentive = 0
        self.max_assets_value = 0
        self.listed_markets: list[ChecksumAddress] = []
        self.markets: dict[ChecksumAddress, FakeMarket] = {}
        self.tokens: dict[ChecksumAddress, FakeToken] = {}
        self.balances: dict[tuple[ChecksumAddress, ChecksumAddress], int] = {}
        self.prices: dict[ChecksumAddress, int] = {}
        self.reverting: set[str] = set()
        self.calls: list[tuple[str, tuple[object, ...]]] = []

    def _record(self, function_name: str, address: ChecksumAddress, *args: object) -> None:
        self.calls.append((function_name, (address, *args)))
        if function_name in self.reverting:
            raise ContractCallReverted(address=address, function_prototype=f"{function_name}()")

    def oracle(self, comptroller, block_number):
        self._record("oracle", comptroller, block_number)
        return self.oracle_address

    def close_factor_mantissa(self, comptroller, block_number):
        self._record("closeFactorMantissa", comptroller, block_number)
        return self.close_factor

    def liquidation_incentive_mantissa(self, comptroller, block_number):
        self._record("liquidationIncentiveMantissa", comptroller, block_number)
        return self.liquidation_incentive

    def max_assets(self, comptroller, block_number):
        self._record("maxAssets", comptroller, block_number)
        return self.max_assets_value

    def all_markets(self, comptroller, block_number):
        self._record("getAllMarkets", comptroller, block_number)
        return list(self.listed_markets)

    def decimals(self, token, block_number):
        self._record("decimals", token, block_number)
        return self.tokens[token].decimals

    def name(self, token, block_number):
        self._record("name", token, block_number)
        if token in self.markets:
            return self.markets[token].name
        return self.tokens[token].name

    def symbol(self, token, block_number):
        self._record("symbol", token, block_number)
        if token in self.markets:
            return self.markets[token].symbol
        return self.tokens[token].symbol

    def balance_of(self, token, account, block_number):
        self._record("balanceOf", token, account, block_number)
        return self.balances.get((token, account), 0)

    def total_supply(self, token, block_number):
        self._record("totalSupply", token, block_number)
        return self.markets[token].total_supply

    def underlying(self, market, block_number):
        self._record("underlying", market, block_number)
        return self.markets[market].underlying

    def exchange_rate_stored(self, market, block_number):
        self._record("exchangeRateStored", market, block_number)
        return self.markets[market].exchange_rate

    def borrow_index(self, market, block_number):
        self._record("borrowIndex", market, block_number)
        return self.markets[market].borrow_index

    def total_reserves(self, market, block_number):
        self._record("totalReserves", market, block_number)
        return self.markets[market].total_reserves

    def total_borrows(self, market, block_number):
        self._record("totalBorrows", market, block_number)
        return self.markets[market].total_borrows

    def cash(self, market, block_number):
        self._record("getCash", market, block_number)
        return self.markets[market].cash

    def borrow_rate_per_block(self, market, block_number):
        self._record("borrowRatePerBlock", market, block_number)
        return self.markets[market].borrow_rate

    def supply_rate_per_block(self, market, block_number):
        self._record("supplyRatePerBlock", market, block_number)
        return self.markets[market].supply_rate

    def interest_rate_model(self, market, block_number):
        self._record("interestRateModel", market, block_number)
        return self.markets[market].interest_rate_model

    def reserve_factor_mantissa(self, market, block_number):
        self._record("reserveFactorMantissa", market, block_number)
        return self.markets[market].reserve_factor

    def underlying_price(self, oracle, market, block_number):
        self._record("getUnderlyingPrice", oracle, market, block_number)
        return self.prices.get(market, 0)

    def calls_to(self, function_name: str) -> list[tuple[object, ...]]:
        return [args for name, args in self.calls if name == function_name]


@pytest.fixture(scope="session", autouse=True)
def _set_moneymarket_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def reader() -> FakeChainReader:
    reader = FakeChainReader()
    reader.oracle_address = ORACLE_ADDRESS
    reader.close_factor = 5 * 10**17
    reader.liquidation_incentive = 108 * 10**16
    reader.max_assets_value = 20
    reader.listed_markets = [DAI_MARKET_ADDRESS, USDC_MARKET_ADDRESS]

    reader.tokens[DAI_ADDRESS] = FakeToken(name="Dai Stablecoin", symbol="DAI", decimals=18)
    reader.tokens[USDC_ADDRESS] = FakeToken(name="USD Coin", symbol="USDC", decimals=6)

    reader.markets[DAI_MARKET_ADDRESS] = FakeMarket(
        name="Market Dai",
        symbol="xDAI",
        underlying=DAI_ADDRESS,
        # 0.02 DAI per position token
        exchange_rate=2 * 10**26,
        borrow_index=105 * 10**16,
        total_reserves=12 * 10**18,
        total_borrows=5_000 * 10**18,
        cash=20_000 * 10**18,
        borrow_rate=2 * 10**10,
        supply_rate=10**10,
        total_supply=1_250_000 * 10**8,
        reserve_factor=10**17,
    )
    reader.markets[USDC_MARKET_ADDRESS] = FakeMarket(
        name="Market USD Coin",
        symbol="xUSDC",
        underlying=USDC_ADDRESS,
        # 0.02 USDC per position token
        exchange_rate=2 * 10**14,
        borrow_index=105 * 10**16,
        total_borrows=1_000 * 10**6,
        cash=9_000 * 10**6,
        total_supply=500_000 * 10**8,
    )
    reader.markets[NATIVE_MARKET_ADDRESS] = FakeMarket(
        name="Market Ether",
        symbol="xETH",
        underlying=ZERO_ADDRESS,
        exchange_rate=2 * 10**26,
        total_supply=100 * 10**8,
    )

    reader.prices[NATIVE_MARKET_ADDRESS] = NATIVE_PRICE_RAW
    reader.prices[DAI_MARKET_ADDRESS] = DAI_PRICE_RAW
    reader.prices[USDC_MARKET_ADDRESS] = USDC_PRICE_RAW
    return reader


@pytest.fixture
def watcher() -> RecordingContractWatcher:
    return RecordingContractWatcher()


@pytest.fixture
def deployment() -> MoneyMarketDeployment:
    return MoneyMarketDeployment(
        name="Test Money Market",
        chain_id=1,
        native_market=NativeMarketDeployment(
            address=NATIVE_MARKET_ADDRESS,
            underlying_name="Ether",
            underlying_symbol="ETH",
        ),
        pegged_usd_prices={USDC_MARKET_ADDRESS: Decimal(1)},
    )


@pytest.fixture
def processor(
    session: Session,
    reader: FakeChainReader,
    watcher: RecordingContractWatcher,
    deployment: MoneyMarketDeployment,
) -> EventProcessor:
    return EventProcessor(
        session=session,
        reader=reader,
        watcher=watcher,
        deployment=deployment,
    )


@pytest.fixture
def context(processor: EventProcessor) -> ProjectionContext:
    return processor.context
