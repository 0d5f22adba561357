"""
Read-only access to the protocol contracts.

Every read is pinned to a block number. A reverted or undecodable call raises; callers decide
whether the read is optional (and degrade to a default) or mandatory (and let the fault propagate).
"""

import abc
from typing import Any, cast

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.types import TxParams

from moneymarket.checksum_cache import get_checksum_address
from moneymarket.exceptions.contract import ContractCallError, ContractCallReverted
from moneymarket.functions import encode_function_calldata, raw_call


class AbstractChainReader(abc.ABC):
    """
    Synchronous contract reads consumed by the projection engine.
    """

    # Comptroller
    @abc.abstractmethod
    def oracle(self, comptroller: ChecksumAddress, block_number: int) -> ChecksumAddress: ...

    @abc.abstractmethod
    def close_factor_mantissa(self, comptroller: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def liquidation_incentive_mantissa(
        self, comptroller: ChecksumAddress, block_number: int
    ) -> int: ...

    @abc.abstractmethod
    def max_assets(self, comptroller: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def all_markets(
        self, comptroller: ChecksumAddress, block_number: int
    ) -> list[ChecksumAddress]: ...

    # ERC-20 metadata, valid for both market and underlying tokens
    @abc.abstractmethod
    def decimals(self, token: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def name(self, token: ChecksumAddress, block_number: int) -> str: ...

    @abc.abstractmethod
    def symbol(self, token: ChecksumAddress, block_number: int) -> str: ...

    @abc.abstractmethod
    def balance_of(
        self, token: ChecksumAddress, account: ChecksumAddress, block_number: int
    ) -> int: ...

    @abc.abstractmethod
    def total_supply(self, token: ChecksumAddress, block_number: int) -> int: ...

    # Market
    @abc.abstractmethod
    def underlying(self, market: ChecksumAddress, block_number: int) -> ChecksumAddress: ...

    @abc.abstractmethod
    def exchange_rate_stored(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def borrow_index(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def total_reserves(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def total_borrows(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def cash(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def borrow_rate_per_block(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def supply_rate_per_block(self, market: ChecksumAddress, block_number: int) -> int: ...

    @abc.abstractmethod
    def interest_rate_model(
        self, market: ChecksumAddress, block_number: int
    ) -> ChecksumAddress: ...

    @abc.abstractmethod
    def reserve_factor_mantissa(self, market: ChecksumAddress, block_number: int) -> int: ...

    # Price oracle
    @abc.abstractmethod
    def underlying_price(
        self, oracle: ChecksumAddress, market: ChecksumAddress, block_number: int
    ) -> int: ...


class Web3ChainReader(AbstractChainReader):
    """
    A chain reader performing `eth_call` requests through a `Web3` instance.
    """

    def __init__(self, w3: Web3) -> None:
        self.w3 = w3

    def _call(
        self,
        address: ChecksumAddress,
        function_prototype: str,
        return_types: list[str],
        block_number: int,
        function_arguments: list[Any] | None = None,
    ) -> tuple[Any, ...]:
        try:
            return raw_call(
                w3=self.w3,
                address=address,
                calldata=encode_function_calldata(
                    function_prototype=function_prototype,
                    function_arguments=function_arguments,
                ),
                return_types=return_types,
                block_identifier=block_number,
            )
        except ContractLogicError:
            raise ContractCallReverted(
                address=address, function_prototype=function_prototype
            ) from None
        except DecodingError as exc:
            raise ContractCallError(
                address=address, function_prototype=function_prototype, reason=str(exc)
            ) from exc

    def _call_uint(
        self, address: ChecksumAddress, function_prototype: str, block_number: int
    ) -> int:
        (result,) = self._call(
            address=address,
            function_prototype=function_prototype,
            return_types=["uint256"],
            block_number=block_number,
        )
        return cast("int", result)

    def _call_address(
        self, address: ChecksumAddress, function_prototype: str, block_number: int
    ) -> ChecksumAddress:
        (result,) = self._call(
            address=address,
            function_prototype=function_prototype,
            return_types=["address"],
            block_number=block_number,
        )
        return get_checksum_address(result)

    def _call_string(
        self, address: ChecksumAddress, function_prototype: str, block_number: int
    ) -> str:
        try:
            result = self.w3.eth.call(
                TxParams(
                    to=address,
                    data=encode_function_calldata(
                        function_prototype=function_prototype,
                        function_arguments=None,
                    ),
                ),
                block_identifier=block_number,
            )
        except ContractLogicError:
            raise ContractCallReverted(
                address=address, function_prototype=function_prototype
            ) from None

        try:
            (value,) = eth_abi.abi.decode(types=["string"], data=result)
            return cast("str", value)
        except DecodingError:
            pass

        # Some early tokens return a bytes32 instead of a string
        try:
            (value,) = eth_abi.abi.decode(types=["bytes32"], data=result)
        except DecodingError as exc:
            raise ContractCallError(
                address=address, function_prototype=function_prototype, reason=str(exc)
            ) from exc
        return cast("bytes", value).decode("utf-8", errors="ignore").strip("\x00")

    def oracle(self, comptroller: ChecksumAddress, block_number: int) -> ChecksumAddress:
        return self._call_address(comptroller, "oracle()", block_number)

    def close_factor_mantissa(self, comptroller: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(comptroller, "closeFactorMantissa()", block_number)

    def liquidation_incentive_mantissa(
        self, comptroller: ChecksumAddress, block_number: int
    ) -> int:
        return self._call_uint(comptroller, "liquidationIncentiveMantissa()", block_number)

    def max_assets(self, comptroller: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(comptroller, "maxAssets()", block_number)

    def all_markets(self, comptroller: ChecksumAddress, block_number: int) -> list[ChecksumAddress]:
        (markets,) = self._call(
            address=comptroller,
            function_prototype="getAllMarkets()",
            return_types=["address[]"],
            block_number=block_number,
        )
        return [get_checksum_address(market) for market in markets]

    def decimals(self, token: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(token, "decimals()", block_number)

    def name(self, token: ChecksumAddress, block_number: int) -> str:
        return self._call_string(token, "name()", block_number)

    def symbol(self, token: ChecksumAddress, block_number: int) -> str:
        return self._call_string(token, "symbol()", block_number)

    def balance_of(
        self, token: ChecksumAddress, account: ChecksumAddress, block_number: int
    ) -> int:
        (balance,) = self._call(
            address=token,
            function_prototype="balanceOf(address)",
            return_types=["uint256"],
            block_number=block_number,
            function_arguments=[account],
        )
        return cast("int", balance)

    def total_supply(self, token: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(token, "totalSupply()", block_number)

    def underlying(self, market: ChecksumAddress, block_number: int) -> ChecksumAddress:
        return self._call_address(market, "underlying()", block_number)

    def exchange_rate_stored(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "exchangeRateStored()", block_number)

    def borrow_index(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "borrowIndex()", block_number)

    def total_reserves(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "totalReserves()", block_number)

    def total_borrows(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "totalBorrows()", block_number)

    def cash(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "getCash()", block_number)

    def borrow_rate_per_block(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "borrowRatePerBlock()", block_number)

    def supply_rate_per_block(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "supplyRatePerBlock()", block_number)

    def interest_rate_model(self, market: ChecksumAddress, block_number: int) -> ChecksumAddress:
        return self._call_address(market, "interestRateModel()", block_number)

    def reserve_factor_mantissa(self, market: ChecksumAddress, block_number: int) -> int:
        return self._call_uint(market, "reserveFactorMantissa()", block_number)

    def underlying_price(
        self, oracle: ChecksumAddress, market: ChecksumAddress, block_number: int
    ) -> int:
        (price,) = self._call(
            address=oracle,
            function_prototype="getUnderlyingPrice(address)",
            return_types=["uint256"],
            block_number=block_number,
            function_arguments=[market],
        )
        return cast("int", price)
