from .context import ProjectionContext
from .processor import EVENT_HANDLERS, EventProcessor

__all__ = (
    "EVENT_HANDLERS",
    "EventProcessor",
    "ProjectionContext",
)
