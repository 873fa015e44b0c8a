"""Typed inputs for write operations.

Handlers build these from validated request data; services enforce the
business rules on them.
"""

from dataclasses import dataclass
from datetime import datetime

from ticketing.domain.models import Attendee
from ticketing.domain.value_objects import EventId, Money, TicketTypeId


@dataclass(frozen=True)
class BookingItem:
    """Requested quantity of one ticket type."""

    ticket_type_id: TicketTypeId
    quantity: int


@dataclass(frozen=True)
class BookingRequest:
    """A checkout attempt for one event."""

    event_id: EventId
    user_id: int
    attendee: Attendee
    items: tuple[BookingItem, ...]


@dataclass(frozen=True)
class TicketTypeDraft:
    name: str
    price: Money
    quantity: int
    description: str = ""


@dataclass(frozen=True)
class EventDraft:
    name: str
    location: str
    start_date: datetime
    end_date: datetime
    description: str = ""
    image_url: str | None = None
    is_published: bool = False
    ticket_types: tuple[TicketTypeDraft, ...] = ()


@dataclass(frozen=True)
class EventChanges:
    """Partial update of an event; None leaves a field untouched.

    An empty image_url clears the stored image.
    """

    name: str | None = None
    description: str | None = None
    location: str | None = None
    image_url: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_published: bool | None = None


@dataclass(frozen=True)
class TicketTypeChanges:
    """Partial update of a ticket type; None leaves a field untouched."""

    name: str | None = None
    description: str | None = None
    price: Money | None = None
    quantity: int | None = None
