import pathlib
from typing import Any

from moneymarket.exceptions.base import MoneyMarketError


class BackupExists(MoneyMarketError):
    """
    Raised by `moneymarket database backup` if a file exists at the target path.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        super().__init__(message=f"A backup at {path} already exists.")

    def __reduce__(self) -> tuple[Any, ...]:
        # Pickling will raise an exception if a reduction method is not defined
        return self.__class__, (self.path,)
