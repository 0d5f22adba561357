from .checksum_cache import get_checksum_address
from .config import settings
from .version import __version__

# isort: split

from .chain import AbstractChainReader, Web3ChainReader
from .deployments import MilkomedaC1MoneyMarket, MoneyMarketDeployment, NativeMarketDeployment
from .logging import logger
from .projection import EventProcessor
from .watchers import AbstractContractWatcher, RecordingContractWatcher

__all__ = (
    "AbstractChainReader",
    "AbstractContractWatcher",
    "EventProcessor",
    "MilkomedaC1MoneyMarket",
    "MoneyMarketDeployment",
    "NativeMarketDeployment",
    "RecordingContractWatcher",
    "Web3ChainReader",
    "__version__",
    "get_checksum_address",
    "logger",
    "settings",
)
