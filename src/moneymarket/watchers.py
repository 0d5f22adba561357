"""
Capability to begin delivering events from a newly discovered contract.

The projection engine requests a watch whenever a market is listed or backfilled. How the host
multiplexes its subscriptions is not the engine's concern.
"""

import abc

from eth_typing import ChecksumAddress

from moneymarket.logging import logger


class AbstractContractWatcher(abc.ABC):
    @abc.abstractmethod
    def watch(self, address: ChecksumAddress) -> None:
        """
        Begin delivering events emitted by the contract at `address`.
        """


class RecordingContractWatcher(AbstractContractWatcher):
    """
    A watcher that records the requested addresses, in order, without duplicates.
    """

    def __init__(self) -> None:
        self.addresses: list[ChecksumAddress] = []

    def watch(self, address: ChecksumAddress) -> None:
        if address in self.addresses:
            return
        self.addresses.append(address)
        logger.debug(f"Watching market contract {address}")
