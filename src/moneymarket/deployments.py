from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from eth_typing import ChecksumAddress

from moneymarket.checksum_cache import get_checksum_address
from moneymarket.constants import ZERO_ADDRESS


@dataclass(slots=True, frozen=True)
class NativeMarketDeployment:
    """
    A market for the chain's native asset. It has no underlying token contract, so its identity is
    fixed here instead of being read from the chain.
    """

    address: ChecksumAddress
    underlying_name: str
    underlying_symbol: str
    underlying_decimals: int = 18
    underlying_address: ChecksumAddress = ZERO_ADDRESS


@dataclass(slots=True, frozen=True)
class MoneyMarketDeployment:
    name: str
    chain_id: int
    native_market: NativeMarketDeployment | None = None
    # Markets with an underlying asset assumed to hold a fixed USD price, keyed by market address
    pegged_usd_prices: Mapping[ChecksumAddress, Decimal] = field(default_factory=dict)

    def is_native_market(self, market_address: ChecksumAddress) -> bool:
        return self.native_market is not None and self.native_market.address == market_address

    def pegged_usd_price(self, market_address: ChecksumAddress) -> Decimal | None:
        return self.pegged_usd_prices.get(market_address)


MilkomedaC1MoneyMarket = MoneyMarketDeployment(
    name="Milkomeda C1 Money Market",
    chain_id=2001,
    native_market=NativeMarketDeployment(
        address=get_checksum_address("0x8126855f31b6a52ea5942f4f3bf8bf7c8c84f12d"),
        underlying_name="MilkAda",
        underlying_symbol="MADA",
    ),
    pegged_usd_prices={
        # xUSDC
        get_checksum_address("0xebc85c04124e55a682ef35d9f1c458ab1f5273b2"): Decimal(1),
    },
)
