from collections import Counter
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from moneymarket.chain import AbstractChainReader
from moneymarket.deployments import MoneyMarketDeployment
from moneymarket.watchers import AbstractContractWatcher


@dataclass
class ProjectionContext:
    """
    Collaborators shared by all event handlers.

    No entity is held here between events. Handlers load everything they touch from the session.
    """

    session: Session
    reader: AbstractChainReader
    watcher: AbstractContractWatcher
    deployment: MoneyMarketDeployment
    # Events dropped because a referenced market could not be resolved, keyed by handler name
    dropped_events: Counter[str] = field(default_factory=Counter)
