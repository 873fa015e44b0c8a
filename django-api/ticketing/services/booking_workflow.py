"""Booking workflow - checkout and cancellation.

Checkout reserves inventory, creates the booking and mints its tickets in one
unit of work, so a failure at any step leaves no reservation behind. The
confirmation notification goes out only after the unit of work has committed.
"""

import logging
from collections import Counter

from ticketing.domain import (
    Booking,
    BookingDetails,
    BookingId,
    BookingRequest,
    BookingStatus,
    ById,
    Capability,
    Event,
    Money,
    Ticket,
    TicketDetails,
    TicketId,
    TicketType,
    TicketTypeId,
)
from ticketing.domain.errors import (
    BookingNotFoundError,
    EventNotFoundError,
    EventNotPublishedError,
    ForbiddenError,
    InvalidInputError,
    TicketNotFoundError,
    TicketTypeNotFoundError,
    WrongBookingStatusError,
)
from ticketing.services.collaborators import CapabilityChecker, IdGenerator, Notifier
from ticketing.services.inventory_ledger import InventoryLedger
from ticketing.services.ticket_issuer import TicketIssuer
from ticketing.stores.interfaces import TicketingStore

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = "booking_confirmation"


class BookingWorkflow:
    """Creates, cancels and reads bookings."""

    def __init__(
        self,
        store: TicketingStore,
        ledger: InventoryLedger,
        issuer: TicketIssuer,
        notifier: Notifier,
        capabilities: CapabilityChecker,
        id_generator: IdGenerator,
        payment_prefix: str = "PAY-",
        payment_length: int = 10,
        app_url: str = "",
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._issuer = issuer
        self._notifier = notifier
        self._capabilities = capabilities
        self._id_generator = id_generator
        self._payment_prefix = payment_prefix
        self._payment_length = payment_length
        self._app_url = app_url.rstrip("/")

    def create_booking(self, request: BookingRequest) -> Booking:
        """Reserve inventory, persist a confirmed booking and mint its tickets.

        Raises:
            InvalidInputError: If attendee details or items are missing or invalid.
            EventNotFoundError: If the event does not exist.
            EventNotPublishedError: If the event is not published.
            TicketTypeNotFoundError: If an item names a ticket type of another event.
            InsufficientInventoryError: If any item cannot be satisfied.
            TicketNumberConflictError: If ticket numbers could not be allocated.
        """
        self._validate(request)

        with self._store.atomic():
            event = self._store.get_event(request.event_id)
            if event is None:
                raise EventNotFoundError(str(request.event_id))
            if not event.is_published:
                raise EventNotPublishedError(str(request.event_id))

            total = Money.zero()
            ticket_types: dict[TicketTypeId, TicketType] = {}
            for item in request.items:
                ticket_type = self._store.get_ticket_type(item.ticket_type_id)
                if ticket_type is None or ticket_type.event_id != event.id:
                    raise TicketTypeNotFoundError(str(item.ticket_type_id))
                self._ledger.reserve(ticket_type.id, item.quantity)
                ticket_types[ticket_type.id] = ticket_type
                total = total + ticket_type.price * item.quantity

            pending = self._store.create_booking(request, total, BookingStatus.PENDING)
            tickets = [
                self._issuer.mint(pending.id, item.ticket_type_id)
                for item in request.items
                for _ in range(item.quantity)
            ]
            payment_reference = self._payment_prefix + self._id_generator.short_id(
                self._payment_length
            )
            self._store.try_transition_booking(
                pending.id,
                (BookingStatus.PENDING,),
                BookingStatus.CONFIRMED,
                payment_reference=payment_reference,
            )
            booking = self._store.get_booking(pending.id)

        logger.info(
            "Booking %s confirmed for event %s with %d tickets",
            booking.id,
            event.id,
            len(tickets),
        )
        self._send_confirmation(booking, event, tickets, ticket_types)
        return booking

    def cancel_booking(self, booking_id: BookingId, actor_id: int) -> Booking:
        """Cancel a booking and return its tickets to inventory.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            ForbiddenError: If the actor is neither the owner nor an admin.
            WrongBookingStatusError: If the booking is already cancelled or refunded.
        """
        booking = self._store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        if booking.user_id != actor_id and not self._capabilities.has_capability(
            actor_id, Capability.ADMIN
        ):
            raise ForbiddenError("cancel this booking")
        if booking.status.is_terminal:
            raise WrongBookingStatusError(str(booking_id), booking.status.value)

        with self._store.atomic():
            cancelled = self._store.try_transition_booking(
                booking_id,
                (BookingStatus.PENDING, BookingStatus.CONFIRMED),
                BookingStatus.CANCELLED,
            )
            if not cancelled:
                current = self._store.get_booking(booking_id)
                raise WrongBookingStatusError(str(booking_id), current.status.value)

            tickets = self._store.list_tickets_for_booking(booking_id)
            counts = Counter(ticket.ticket_type_id for ticket in tickets)
            for ticket_type_id, count in counts.items():
                self._ledger.release(ticket_type_id, count)
            booking = self._store.get_booking(booking_id)

        logger.info(
            "Booking %s cancelled by user %s, released %d tickets",
            booking_id,
            actor_id,
            len(tickets),
        )
        return booking

    def get_booking(self, booking_id: BookingId, actor_id: int) -> BookingDetails:
        """Return a booking with its event, tickets and ticket types.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            ForbiddenError: If the actor is not the owner, the event creator or an admin.
        """
        booking = self._store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        event = self._store.get_event(booking.event_id)
        allowed = (
            booking.user_id == actor_id
            or (event is not None and event.creator_id == actor_id)
            or self._capabilities.has_capability(actor_id, Capability.ADMIN)
        )
        if not allowed:
            raise ForbiddenError("view this booking")

        tickets = tuple(self._store.list_tickets_for_booking(booking_id))
        type_ids = {ticket.ticket_type_id for ticket in tickets}
        ticket_types = tuple(
            ticket_type
            for ticket_type in (self._store.get_ticket_type(tt_id) for tt_id in type_ids)
            if ticket_type is not None
        )
        return BookingDetails(
            booking=booking, event=event, tickets=tickets, ticket_types=ticket_types
        )

    def list_bookings(self, user_id: int) -> list[Booking]:
        """Return the user's bookings, newest first."""
        return self._store.list_bookings_for_user(user_id)

    def get_ticket(self, ticket_id: TicketId, actor_id: int) -> TicketDetails:
        """Return a ticket with its booking, event and ticket type.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            ForbiddenError: If the actor is neither the booking owner nor an admin.
        """
        details = self._store.find_ticket(ById(ticket_id))
        if details is None:
            raise TicketNotFoundError(str(ticket_id))
        if details.booking.user_id != actor_id and not self._capabilities.has_capability(
            actor_id, Capability.ADMIN
        ):
            raise ForbiddenError("view this ticket")
        return details

    @staticmethod
    def _validate(request: BookingRequest) -> None:
        attendee = request.attendee
        for field, value in (
            ("name", attendee.name),
            ("email", attendee.email),
            ("phone", attendee.phone),
        ):
            if not value or not value.strip():
                raise InvalidInputError(field, "is required")
        if not request.items:
            raise InvalidInputError("items", "at least one ticket is required")
        for item in request.items:
            if item.quantity < 1:
                raise InvalidInputError("quantity", "must be at least 1")

    def _send_confirmation(
        self,
        booking: Booking,
        event: Event,
        tickets: list[Ticket],
        ticket_types: dict[TicketTypeId, TicketType],
    ) -> None:
        counts = Counter(ticket.ticket_type_id for ticket in tickets)
        summary = [
            {"name": ticket_types[tt_id].name, "quantity": quantity}
            for tt_id, quantity in counts.items()
        ]
        data = {
            "attendee_name": booking.attendee.name,
            "event_name": event.name,
            "event_date": event.start_date.isoformat(),
            "event_location": event.location,
            "tickets": summary,
            "booking_url": f"{self._app_url}/bookings/{booking.id}",
            "payload": {
                "bookingId": str(booking.id),
                "eventId": str(event.id),
                "userId": str(booking.user_id),
            },
        }
        try:
            self._notifier.send(booking.attendee.email, BOOKING_CONFIRMATION, data)
        except Exception:
            logger.exception("Failed to dispatch confirmation for booking %s", booking.id)

