"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.

Inventory and ticket-use changes are exposed as conditional updates that
report success instead of read-modify-write pairs, so callers never compute
a new counter value themselves.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from ticketing.domain import (
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    Event,
    EventChanges,
    EventDraft,
    EventId,
    Money,
    Ticket,
    TicketDetails,
    TicketId,
    TicketLookup,
    TicketType,
    TicketTypeChanges,
    TicketTypeDraft,
    TicketTypeId,
)


class TicketNumberTaken(Exception):
    """Raised by a store when a ticket number is already in use."""

    def __init__(self, ticket_number: str) -> None:
        super().__init__(ticket_number)
        self.ticket_number = ticket_number


class UnitOfWork(ABC):
    """Multi-entity transaction boundary."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Return a context manager; all writes inside land together or not at all.

        Blocks may nest; an inner block that fails rolls back only its own
        writes when the exception is caught inside the outer block.
        """
        ...


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def list_events(
        self, published: bool | None = None, visible_to: int | None = None
    ) -> list[Event]:
        """Return events ordered by start_date ascending.

        published filters on the publish flag when not None. visible_to, when
        given, additionally includes that creator's events whatever their flag.
        """
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def event_exists(self, event_id: EventId) -> bool:
        """Check if an event exists."""
        ...

    @abstractmethod
    def create_event(self, creator_id: int, draft: EventDraft) -> Event:
        """Persist an event and its initial ticket types."""
        ...

    @abstractmethod
    def update_event(self, event_id: EventId, changes: EventChanges) -> Event:
        ...

    @abstractmethod
    def try_delete_event(self, event_id: EventId) -> bool:
        """Delete an event and its ticket types unless a booking references it.

        Returns False, deleting nothing, when a booking exists, including one
        committed while the delete was in progress.
        """
        ...

    @abstractmethod
    def count_bookings_for_event(self, event_id: EventId) -> int:
        ...


class TicketTypeStore(ABC):
    """Interface for ticket type persistence and inventory counters."""

    @abstractmethod
    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        ...

    @abstractmethod
    def list_ticket_types(self, event_id: EventId) -> list[TicketType]:
        """Return the event's ticket types ordered by price ascending."""
        ...

    @abstractmethod
    def create_ticket_type(self, event_id: EventId, draft: TicketTypeDraft) -> TicketType:
        """Persist a ticket type with remaining equal to quantity."""
        ...

    @abstractmethod
    def update_ticket_type_details(
        self, ticket_type_id: TicketTypeId, changes: TicketTypeChanges
    ) -> TicketType:
        """Update name, description and price. Quantity is left to the ledger."""
        ...

    @abstractmethod
    def try_delete_ticket_type(self, ticket_type_id: TicketTypeId) -> bool:
        """Delete a ticket type unless tickets of it exist. Returns False otherwise."""
        ...

    @abstractmethod
    def try_reserve(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        """Decrement remaining by quantity only if remaining >= quantity.

        Returns False when the row is missing or the guard fails.
        """
        ...

    @abstractmethod
    def release(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        """Increment remaining by quantity, never above quantity (total).

        Returns False when the row is missing.
        """
        ...

    @abstractmethod
    def try_adjust_quantity(self, ticket_type_id: TicketTypeId, new_quantity: int) -> bool:
        """Set quantity and shift remaining by the same delta.

        Applies only if the shifted remaining stays >= 0. Returns False when
        the row is missing or the guard fails.
        """
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def create_booking(
        self, request: BookingRequest, total_amount: Money, status: BookingStatus
    ) -> Booking:
        ...

    @abstractmethod
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        ...

    @abstractmethod
    def list_bookings_for_user(self, user_id: int) -> list[Booking]:
        """Return a user's bookings, newest first."""
        ...

    @abstractmethod
    def try_transition_booking(
        self,
        booking_id: BookingId,
        from_statuses: tuple[BookingStatus, ...],
        to_status: BookingStatus,
        payment_reference: str | None = None,
    ) -> bool:
        """Move a booking to to_status only if it is currently in from_statuses."""
        ...


class TicketStore(ABC):
    """Interface for ticket persistence operations."""

    @abstractmethod
    def create_ticket(
        self, booking_id: BookingId, ticket_type_id: TicketTypeId, ticket_number: str
    ) -> Ticket:
        """Persist a ticket.

        Raises:
            TicketNumberTaken: If ticket_number is already in use.
        """
        ...

    @abstractmethod
    def list_tickets_for_booking(self, booking_id: BookingId) -> list[Ticket]:
        ...

    @abstractmethod
    def count_tickets_for_ticket_type(self, ticket_type_id: TicketTypeId) -> int:
        ...

    @abstractmethod
    def find_ticket(self, lookup: TicketLookup) -> TicketDetails | None:
        """Resolve a ticket by id or number along with its booking, type and event."""
        ...

    @abstractmethod
    def try_mark_ticket_used(self, ticket_id: TicketId, used_at: datetime) -> bool:
        """Set used_at only if it is still unset. Returns False otherwise."""
        ...


class TicketingStore(UnitOfWork, EventStore, TicketTypeStore, BookingStore, TicketStore):
    """Everything the ticketing services need from persistence."""
