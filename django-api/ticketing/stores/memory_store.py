"""In-process implementation of the TicketingStore.

Each ticket type and ticket row carries its own lock, so conditional updates
are atomic per entity exactly like the relational store's guarded UPDATEs.
atomic() records an undo action for every write made by the current thread
and replays them in reverse if the block raises.
"""

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime

from ticketing.domain import (
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    ById,
    Capacity,
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
from ticketing.stores.interfaces import TicketingStore, TicketNumberTaken


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _Journal(threading.local):
    def __init__(self) -> None:
        self.undo: list[Callable[[], None]] | None = None


class InMemoryTicketingStore(TicketingStore):
    """Thread-safe store keeping every row in dictionaries."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._rows_lock = threading.RLock()
        self._events: dict[EventId, Event] = {}
        self._ticket_types: dict[TicketTypeId, TicketType] = {}
        self._ticket_type_locks: dict[TicketTypeId, threading.Lock] = {}
        self._bookings: dict[BookingId, Booking] = {}
        self._tickets: dict[TicketId, Ticket] = {}
        self._ticket_locks: dict[TicketId, threading.Lock] = {}
        self._ticket_numbers: dict[str, TicketId] = {}
        self._journal = _Journal()

    # Unit of work

    @contextmanager
    def atomic(self) -> Iterator[None]:
        outer = self._journal.undo is None
        if outer:
            self._journal.undo = []
        mark = len(self._journal.undo)
        try:
            yield
        except BaseException:
            undo = self._journal.undo
            while len(undo) > mark:
                undo.pop()()
            raise
        finally:
            if outer:
                self._journal.undo = None

    def _record(self, action: Callable[[], None]) -> None:
        if self._journal.undo is not None:
            self._journal.undo.append(action)

    # Events

    def list_events(
        self, published: bool | None = None, visible_to: int | None = None
    ) -> list[Event]:
        with self._rows_lock:
            events = list(self._events.values())
        selected = [
            event
            for event in events
            if (published is None or event.is_published == published)
            or (visible_to is not None and event.creator_id == visible_to)
        ]
        return sorted(selected, key=lambda event: event.start_date)

    def get_event(self, event_id: EventId) -> Event | None:
        return self._events.get(event_id)

    def event_exists(self, event_id: EventId) -> bool:
        return event_id in self._events

    def create_event(self, creator_id: int, draft: EventDraft) -> Event:
        now = self._clock()
        event = Event(
            id=EventId(uuid.uuid4()),
            creator_id=creator_id,
            name=draft.name,
            description=draft.description,
            location=draft.location,
            image_url=draft.image_url,
            start_date=draft.start_date,
            end_date=draft.end_date,
            is_published=draft.is_published,
            created_at=now,
            updated_at=now,
        )
        with self.atomic():
            self._put_event(event)
            for ticket_type in draft.ticket_types:
                self.create_ticket_type(event.id, ticket_type)
        return event

    def _put_event(self, event: Event) -> None:
        with self._rows_lock:
            previous = self._events.get(event.id)
            self._events[event.id] = event
        self._record(lambda: self._restore(self._events, event.id, previous))

    def update_event(self, event_id: EventId, changes: EventChanges) -> Event:
        current = self._events[event_id]
        fields = {
            name: value
            for name, value in vars(changes).items()
            if value is not None
        }
        if fields.get("image_url") == "":
            fields["image_url"] = None
        event = replace(current, updated_at=self._clock(), **fields)
        self._put_event(event)
        return event

    def try_delete_event(self, event_id: EventId) -> bool:
        with self._rows_lock:
            if any(booking.event_id == event_id for booking in self._bookings.values()):
                return False
            event = self._events.pop(event_id, None)
            ticket_types = [tt for tt in self._ticket_types.values() if tt.event_id == event_id]
            for ticket_type in ticket_types:
                del self._ticket_types[ticket_type.id]

        def undo() -> None:
            with self._rows_lock:
                if event is not None:
                    self._events[event_id] = event
                for ticket_type in ticket_types:
                    self._ticket_types[ticket_type.id] = ticket_type

        self._record(undo)
        return True

    def count_bookings_for_event(self, event_id: EventId) -> int:
        with self._rows_lock:
            return sum(1 for booking in self._bookings.values() if booking.event_id == event_id)

    # Ticket types and inventory

    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        return self._ticket_types.get(ticket_type_id)

    def list_ticket_types(self, event_id: EventId) -> list[TicketType]:
        with self._rows_lock:
            ticket_types = [tt for tt in self._ticket_types.values() if tt.event_id == event_id]
        return sorted(ticket_types, key=lambda tt: (tt.price.amount, tt.created_at))

    def create_ticket_type(self, event_id: EventId, draft: TicketTypeDraft) -> TicketType:
        ticket_type = TicketType(
            id=TicketTypeId(uuid.uuid4()),
            event_id=event_id,
            name=draft.name,
            description=draft.description,
            price=draft.price,
            quantity=Capacity(draft.quantity),
            remaining=Capacity(draft.quantity),
            created_at=self._clock(),
        )
        with self._rows_lock:
            self._ticket_types[ticket_type.id] = ticket_type
            self._ticket_type_locks[ticket_type.id] = threading.Lock()
        self._record(lambda: self._restore(self._ticket_types, ticket_type.id, None))
        return ticket_type

    def update_ticket_type_details(
        self, ticket_type_id: TicketTypeId, changes: TicketTypeChanges
    ) -> TicketType:
        fields = {}
        if changes.name is not None:
            fields["name"] = changes.name
        if changes.description is not None:
            fields["description"] = changes.description
        if changes.price is not None:
            fields["price"] = changes.price
        return self._apply_to_ticket_type(ticket_type_id, lambda tt: replace(tt, **fields))

    def try_delete_ticket_type(self, ticket_type_id: TicketTypeId) -> bool:
        with self._rows_lock:
            if any(t.ticket_type_id == ticket_type_id for t in self._tickets.values()):
                return False
            previous = self._ticket_types.pop(ticket_type_id, None)
        self._record(lambda: self._restore(self._ticket_types, ticket_type_id, previous))
        return True

    def try_reserve(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        def decrement(tt: TicketType) -> TicketType | None:
            if tt.remaining.value < quantity:
                return None
            return replace(tt, remaining=Capacity(tt.remaining.value - quantity))

        return self._apply_to_ticket_type(ticket_type_id, decrement) is not None

    def release(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        def increment(tt: TicketType) -> TicketType:
            remaining = min(tt.remaining.value + quantity, tt.quantity.value)
            return replace(tt, remaining=Capacity(remaining))

        return self._apply_to_ticket_type(ticket_type_id, increment) is not None

    def try_adjust_quantity(self, ticket_type_id: TicketTypeId, new_quantity: int) -> bool:
        def adjust(tt: TicketType) -> TicketType | None:
            remaining = tt.remaining.value + new_quantity - tt.quantity.value
            if remaining < 0:
                return None
            return replace(tt, quantity=Capacity(new_quantity), remaining=Capacity(remaining))

        return self._apply_to_ticket_type(ticket_type_id, adjust) is not None

    def _apply_to_ticket_type(
        self,
        ticket_type_id: TicketTypeId,
        change: Callable[[TicketType], TicketType | None],
    ) -> TicketType | None:
        """Apply change under the row lock; None from change means the guard failed."""
        lock = self._ticket_type_locks.get(ticket_type_id)
        if lock is None:
            return None
        with lock:
            current = self._ticket_types.get(ticket_type_id)
            if current is None:
                return None
            updated = change(current)
            if updated is None:
                return None
            self._ticket_types[ticket_type_id] = updated
            delta = updated.remaining.value - current.remaining.value
            quantity_delta = updated.quantity.value - current.quantity.value

        def undo() -> None:
            with lock:
                row = self._ticket_types.get(ticket_type_id)
                if row is None:
                    return
                self._ticket_types[ticket_type_id] = replace(
                    row,
                    name=current.name,
                    description=current.description,
                    price=current.price,
                    quantity=Capacity(row.quantity.value - quantity_delta),
                    remaining=Capacity(row.remaining.value - delta),
                )

        self._record(undo)
        return updated

    # Bookings

    def create_booking(
        self, request: BookingRequest, total_amount: Money, status: BookingStatus
    ) -> Booking:
        now = self._clock()
        booking = Booking(
            id=BookingId(uuid.uuid4()),
            event_id=request.event_id,
            user_id=request.user_id,
            attendee=request.attendee,
            total_amount=total_amount,
            status=status,
            payment_reference=None,
            created_at=now,
            updated_at=now,
        )
        with self._rows_lock:
            self._bookings[booking.id] = booking
        self._record(lambda: self._restore(self._bookings, booking.id, None))
        return booking

    def get_booking(self, booking_id: BookingId) -> Booking | None:
        return self._bookings.get(booking_id)

    def list_bookings_for_user(self, user_id: int) -> list[Booking]:
        with self._rows_lock:
            bookings = [b for b in self._bookings.values() if b.user_id == user_id]
        return sorted(bookings, key=lambda booking: booking.created_at, reverse=True)

    def try_transition_booking(
        self,
        booking_id: BookingId,
        from_statuses: tuple[BookingStatus, ...],
        to_status: BookingStatus,
        payment_reference: str | None = None,
    ) -> bool:
        with self._rows_lock:
            current = self._bookings.get(booking_id)
            if current is None or current.status not in from_statuses:
                return False
            updated = replace(current, status=to_status, updated_at=self._clock())
            if payment_reference is not None:
                updated = replace(updated, payment_reference=payment_reference)
            self._bookings[booking_id] = updated
        self._record(lambda: self._restore(self._bookings, booking_id, current))
        return True

    # Tickets

    def create_ticket(
        self, booking_id: BookingId, ticket_type_id: TicketTypeId, ticket_number: str
    ) -> Ticket:
        ticket = Ticket(
            id=TicketId(uuid.uuid4()),
            booking_id=booking_id,
            ticket_type_id=ticket_type_id,
            ticket_number=ticket_number,
            used_at=None,
            created_at=self._clock(),
        )
        with self._rows_lock:
            if ticket_number in self._ticket_numbers:
                raise TicketNumberTaken(ticket_number)
            self._ticket_numbers[ticket_number] = ticket.id
            self._tickets[ticket.id] = ticket
            self._ticket_locks[ticket.id] = threading.Lock()

        def undo() -> None:
            with self._rows_lock:
                self._tickets.pop(ticket.id, None)
                self._ticket_numbers.pop(ticket_number, None)

        self._record(undo)
        return ticket

    def list_tickets_for_booking(self, booking_id: BookingId) -> list[Ticket]:
        with self._rows_lock:
            tickets = [t for t in self._tickets.values() if t.booking_id == booking_id]
        return sorted(tickets, key=lambda ticket: ticket.created_at)

    def count_tickets_for_ticket_type(self, ticket_type_id: TicketTypeId) -> int:
        with self._rows_lock:
            return sum(1 for t in self._tickets.values() if t.ticket_type_id == ticket_type_id)

    def find_ticket(self, lookup: TicketLookup) -> TicketDetails | None:
        with self._rows_lock:
            if isinstance(lookup, ById):
                ticket = self._tickets.get(lookup.ticket_id)
            else:
                ticket_id = self._ticket_numbers.get(lookup.ticket_number)
                ticket = self._tickets.get(ticket_id) if ticket_id else None
            if ticket is None:
                return None
            booking = self._bookings[ticket.booking_id]
            return TicketDetails(
                ticket=ticket,
                ticket_type=self._ticket_types[ticket.ticket_type_id],
                booking=booking,
                event=self._events[booking.event_id],
            )

    def try_mark_ticket_used(self, ticket_id: TicketId, used_at: datetime) -> bool:
        lock = self._ticket_locks.get(ticket_id)
        if lock is None:
            return False
        with lock:
            current = self._tickets.get(ticket_id)
            if current is None or current.used_at is not None:
                return False
            self._tickets[ticket_id] = replace(current, used_at=used_at)
        self._record(lambda: self._restore(self._tickets, ticket_id, current))
        return True

    def _restore(self, rows: dict, key, previous) -> None:
        with self._rows_lock:
            if previous is None:
                rows.pop(key, None)
            else:
                rows[key] = previous
