from collections.abc import Callable

from eth_abi.exceptions import DecodingError
from web3.exceptions import Web3Exception

from moneymarket.exceptions.contract import ContractCallError
from moneymarket.logging import logger

OPTIONAL_READ_EXCEPTIONS = (ContractCallError, DecodingError, Web3Exception)


def try_read[T](read: Callable[[], T], default: T, description: str) -> T:
    """
    Perform a contract read that is allowed to fail. On failure the default value is returned and
    the failure is logged, so that projection continues with partial data.
    """

    try:
        return read()
    except OPTIONAL_READ_EXCEPTIONS as exc:
        logger.error(f"***CALL FAILED*** : {description} reverted ({exc})")
        return default
