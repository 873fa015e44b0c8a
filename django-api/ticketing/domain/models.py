"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in ticketing/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ticketing.domain.value_objects import (
    BookingId,
    Capacity,
    EventId,
    Money,
    TicketId,
    TicketTypeId,
)


class BookingStatus(Enum):
    """Lifecycle states of a booking.

    PENDING -> CONFIRMED -> CANCELLED. REFUNDED is reserved for payment
    reconciliation and is never produced by the booking workflow.
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CANCELLED, BookingStatus.REFUNDED)


class Capability(Enum):
    """Named permissions an actor may hold."""

    CREATE_EVENTS = "events:create"
    EDIT_EVENTS = "events:edit"
    DELETE_EVENTS = "events:delete"
    ADMIN = "admin:access"


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    creator_id: int
    name: str
    description: str
    location: str
    image_url: str | None
    start_date: datetime
    end_date: datetime
    is_published: bool
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("Event cannot end before it starts")

    def has_started(self, now: datetime) -> bool:
        return self.start_date < now


@dataclass(frozen=True)
class TicketType:
    """Domain representation of a TicketType."""

    id: TicketTypeId
    event_id: EventId
    name: str
    description: str
    price: Money
    quantity: Capacity
    remaining: Capacity
    created_at: datetime

    def __post_init__(self) -> None:
        if self.remaining.value > self.quantity.value:
            raise ValueError("Remaining cannot exceed quantity")

    @property
    def sold(self) -> int:
        return self.quantity.value - self.remaining.value

    @property
    def is_sold_out(self) -> bool:
        return self.remaining.value == 0


@dataclass(frozen=True)
class Attendee:
    """Contact details of the person a booking is made for."""

    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class Booking:
    """Domain representation of a Booking."""

    id: BookingId
    event_id: EventId
    user_id: int
    attendee: Attendee
    total_amount: Money
    status: BookingStatus
    payment_reference: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Ticket:
    """Domain representation of a Ticket.

    used_at moves from None to a timestamp exactly once.
    """

    id: TicketId
    booking_id: BookingId
    ticket_type_id: TicketTypeId
    ticket_number: str
    used_at: datetime | None
    created_at: datetime

    @property
    def is_used(self) -> bool:
        return self.used_at is not None


@dataclass(frozen=True)
class TicketDetails:
    """A ticket together with everything needed to admit it at the door."""

    ticket: Ticket
    ticket_type: TicketType
    booking: Booking
    event: Event


@dataclass(frozen=True)
class BookingDetails:
    """A booking with its event, tickets and the ticket types they belong to."""

    booking: Booking
    event: Event
    tickets: tuple[Ticket, ...]
    ticket_types: tuple[TicketType, ...]

    def ticket_type_name(self, ticket_type_id: TicketTypeId) -> str:
        for ticket_type in self.ticket_types:
            if ticket_type.id == ticket_type_id:
                return ticket_type.name
        return ""
