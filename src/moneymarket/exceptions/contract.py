"""
Exceptions raised while reading on-chain contract state.
"""

from typing import Any

from eth_typing import ChecksumAddress

from moneymarket.exceptions.base import MoneyMarketError


class ContractCallError(MoneyMarketError):
    """
    Raised when a contract call cannot be completed or its result cannot be decoded.
    """

    def __init__(self, address: ChecksumAddress, function_prototype: str, reason: str) -> None:
        self.address = address
        self.function_prototype = function_prototype
        self.reason = reason
        super().__init__(message=f"Call to {function_prototype} at {address} failed: {reason}")

    def __reduce__(self) -> tuple[Any, ...]:
        # Pickling will raise an exception if a reduction method is not defined
        return self.__class__, (self.address, self.function_prototype, self.reason)


class ContractCallReverted(ContractCallError):
    """
    Raised when a contract call reverts.
    """

    def __init__(self, address: ChecksumAddress, function_prototype: str) -> None:
        super().__init__(
            address=address,
            function_prototype=function_prototype,
            reason="execution reverted",
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.address, self.function_prototype)
