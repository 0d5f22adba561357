"""
Exceptions raised by the event projection engine.
"""

from typing import Any

from moneymarket.exceptions.base import MoneyMarketError


class ProjectionError(MoneyMarketError):
    """
    Base exception for errors raised while applying events.
    """


class UnknownEventError(ProjectionError):
    """
    Raised when an event has no registered handler.
    """

    def __init__(self, event_type: type) -> None:
        self.event_type = event_type
        super().__init__(message=f"No handler registered for event type {event_type.__name__}")

    def __reduce__(self) -> tuple[Any, ...]:
        # Pickling will raise an exception if a reduction method is not defined
        return self.__class__, (self.event_type,)
