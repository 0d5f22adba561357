from moneymarket.exceptions.base import MoneyMarketError, MoneyMarketValueError
from moneymarket.exceptions.contract import ContractCallError, ContractCallReverted
from moneymarket.exceptions.projection import ProjectionError, UnknownEventError

from . import contract, database, projection

__all__ = (
    "ContractCallError",
    "ContractCallReverted",
    "MoneyMarketError",
    "MoneyMarketValueError",
    "ProjectionError",
    "UnknownEventError",
    "contract",
    "database",
    "projection",
)
