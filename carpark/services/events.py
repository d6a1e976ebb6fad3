"""
In-process domain events.

Handlers run synchronously inside the publisher's unit of work and receive the
same SQLAlchemy session, so their writes commit (or roll back) together with
the change that raised the event. Handler errors propagate to the publisher.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Type
from uuid import UUID

from sqlalchemy.orm import Session

from carpark.models.booking import AddonStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    pass


@dataclass(frozen=True)
class AddonStatusChanged(DomainEvent):
    booking_id: UUID
    addon_id: UUID
    status: AddonStatus


Handler = Callable[[DomainEvent, Session], None]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[Handler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent, db: Session) -> None:
        handlers = self._subscribers.get(type(event), [])
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event, db)


event_bus = EventBus()
