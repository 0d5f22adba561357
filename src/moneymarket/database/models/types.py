from typing import Annotated

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import mapped_column

PrimaryKeyAddress = Annotated[
    str,
    mapped_column(String(42), primary_key=True),
]
PrimaryKeyString = Annotated[
    str,
    mapped_column(primary_key=True),
]
ForeignKeyMarketId = Annotated[
    str,
    mapped_column(ForeignKey("markets.id"), index=True),
]
ForeignKeyAccountId = Annotated[
    str,
    mapped_column(ForeignKey("accounts.id"), index=True),
]
ForeignKeyPositionId = Annotated[
    str,
    mapped_column(ForeignKey("account_positions.id"), index=True),
]
TransactionHash = Annotated[
    str,
    mapped_column(String(66)),
]
