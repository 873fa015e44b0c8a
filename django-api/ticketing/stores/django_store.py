"""Django ORM implementation of the TicketingStore.

Counters are never read, changed in Python and written back: every inventory
or ticket-use change is a single conditional UPDATE whose row count tells the
caller whether the guard held.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from functools import wraps

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, ProtectedError, Q
from django.db.models.functions import Least
from django.utils import timezone

from ticketing import models as orm
from ticketing.domain import (
    Attendee,
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
from ticketing.domain.errors import UnavailableError
from ticketing.signals import invalidate_event_detail
from ticketing.stores.interfaces import TicketingStore, TicketNumberTaken

logger = logging.getLogger(__name__)


def _translate_db_errors(method):
    """Report infrastructure failures as UnavailableError."""

    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except IntegrityError:
            raise
        except DatabaseError as exc:
            logger.exception("Database failure in %s", method.__name__)
            raise UnavailableError() from exc

    return wrapper


def to_event(row: orm.Event) -> Event:
    return Event(
        id=EventId(row.id),
        creator_id=row.creator_id,
        name=row.name,
        description=row.description,
        location=row.location,
        image_url=row.image_url or None,
        start_date=row.start_date,
        end_date=row.end_date,
        is_published=row.is_published,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_ticket_type(row: orm.TicketType) -> TicketType:
    return TicketType(
        id=TicketTypeId(row.id),
        event_id=EventId(row.event_id),
        name=row.name,
        description=row.description,
        price=Money(row.price),
        quantity=Capacity(row.quantity),
        remaining=Capacity(row.remaining),
        created_at=row.created_at,
    )


def to_booking(row: orm.Booking) -> Booking:
    return Booking(
        id=BookingId(row.id),
        event_id=EventId(row.event_id),
        user_id=row.user_id,
        attendee=Attendee(name=row.name, email=row.email, phone=row.phone),
        total_amount=Money(row.total_amount),
        status=BookingStatus(row.status),
        payment_reference=row.payment_reference,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_ticket(row: orm.Ticket) -> Ticket:
    return Ticket(
        id=TicketId(row.id),
        booking_id=BookingId(row.booking_id),
        ticket_type_id=TicketTypeId(row.ticket_type_id),
        ticket_number=row.ticket_number,
        used_at=row.used_at,
        created_at=row.created_at,
    )


class DjangoTicketingStore(TicketingStore):
    """Relational store using Django ORM."""

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            with transaction.atomic():
                yield
        except IntegrityError:
            raise
        except DatabaseError as exc:
            logger.exception("Transaction aborted by database failure")
            raise UnavailableError() from exc

    # Events

    @_translate_db_errors
    def list_events(
        self, published: bool | None = None, visible_to: int | None = None
    ) -> list[Event]:
        rows = orm.Event.objects.all()
        if published is not None:
            condition = Q(is_published=published)
            if visible_to is not None:
                condition |= Q(creator_id=visible_to)
            rows = rows.filter(condition)
        return [to_event(row) for row in rows.order_by("start_date")]

    @_translate_db_errors
    def get_event(self, event_id: EventId) -> Event | None:
        row = orm.Event.objects.filter(pk=event_id.value).first()
        return to_event(row) if row else None

    @_translate_db_errors
    def event_exists(self, event_id: EventId) -> bool:
        return orm.Event.objects.filter(pk=event_id.value).exists()

    @_translate_db_errors
    def create_event(self, creator_id: int, draft: EventDraft) -> Event:
        with transaction.atomic():
            row = orm.Event.objects.create(
                creator_id=creator_id,
                name=draft.name,
                description=draft.description,
                location=draft.location,
                image_url=draft.image_url,
                start_date=draft.start_date,
                end_date=draft.end_date,
                is_published=draft.is_published,
            )
            for ticket_type in draft.ticket_types:
                self._insert_ticket_type(row.pk, ticket_type)
        return to_event(row)

    @_translate_db_errors
    def update_event(self, event_id: EventId, changes: EventChanges) -> Event:
        row = orm.Event.objects.get(pk=event_id.value)
        for field in ("name", "description", "location", "image_url", "start_date", "end_date", "is_published"):
            value = getattr(changes, field)
            if value is not None:
                setattr(row, field, value)
        if changes.image_url == "":
            row.image_url = None
        row.save()
        return to_event(row)

    @_translate_db_errors
    def try_delete_event(self, event_id: EventId) -> bool:
        with transaction.atomic():
            # A booking in flight holds its reserved ticket type rows until it commits.
            list(
                orm.TicketType.objects.select_for_update()
                .filter(event_id=event_id.value)
                .values_list("pk", flat=True)
            )
            if self.count_bookings_for_event(event_id):
                return False
            try:
                orm.Event.objects.filter(pk=event_id.value).delete()
            except ProtectedError:
                return False
        return True

    @_translate_db_errors
    def count_bookings_for_event(self, event_id: EventId) -> int:
        return orm.Booking.objects.filter(event_id=event_id.value).count()

    # Ticket types and inventory

    @_translate_db_errors
    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        row = orm.TicketType.objects.filter(pk=ticket_type_id.value).first()
        return to_ticket_type(row) if row else None

    @_translate_db_errors
    def list_ticket_types(self, event_id: EventId) -> list[TicketType]:
        rows = orm.TicketType.objects.filter(event_id=event_id.value).order_by("price", "created_at")
        return [to_ticket_type(row) for row in rows]

    @_translate_db_errors
    def create_ticket_type(self, event_id: EventId, draft: TicketTypeDraft) -> TicketType:
        return to_ticket_type(self._insert_ticket_type(event_id.value, draft))

    def _insert_ticket_type(self, event_pk, draft: TicketTypeDraft) -> orm.TicketType:
        return orm.TicketType.objects.create(
            event_id=event_pk,
            name=draft.name,
            description=draft.description,
            price=draft.price.amount,
            quantity=draft.quantity,
            remaining=draft.quantity,
        )

    @_translate_db_errors
    def update_ticket_type_details(
        self, ticket_type_id: TicketTypeId, changes: TicketTypeChanges
    ) -> TicketType:
        row = orm.TicketType.objects.get(pk=ticket_type_id.value)
        update_fields = []
        if changes.name is not None:
            row.name = changes.name
            update_fields.append("name")
        if changes.description is not None:
            row.description = changes.description
            update_fields.append("description")
        if changes.price is not None:
            row.price = changes.price.amount
            update_fields.append("price")
        # Counters are excluded so a concurrent reservation is never overwritten.
        if update_fields:
            row.save(update_fields=update_fields)
        row.refresh_from_db()
        return to_ticket_type(row)

    @_translate_db_errors
    def try_delete_ticket_type(self, ticket_type_id: TicketTypeId) -> bool:
        with transaction.atomic():
            row = orm.TicketType.objects.select_for_update().filter(pk=ticket_type_id.value).first()
            if row is None:
                return True
            if self.count_tickets_for_ticket_type(ticket_type_id):
                return False
            try:
                row.delete()
            except ProtectedError:
                return False
        return True

    @_translate_db_errors
    def try_reserve(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        updated = orm.TicketType.objects.filter(
            pk=ticket_type_id.value, remaining__gte=quantity
        ).update(remaining=F("remaining") - quantity)
        return updated == 1

    @_translate_db_errors
    def release(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        updated = orm.TicketType.objects.filter(pk=ticket_type_id.value).update(
            remaining=Least(F("remaining") + quantity, F("quantity"))
        )
        return updated == 1

    @_translate_db_errors
    def try_adjust_quantity(self, ticket_type_id: TicketTypeId, new_quantity: int) -> bool:
        # remaining + (new - quantity) >= 0  <=>  remaining >= quantity - new
        updated = orm.TicketType.objects.filter(
            pk=ticket_type_id.value,
            remaining__gte=F("quantity") - new_quantity,
        ).update(
            remaining=F("remaining") + new_quantity - F("quantity"),
            quantity=new_quantity,
        )
        if updated != 1:
            return False
        # Queryset updates send no post_save, and quantity is part of the cached detail.
        event_pk = (
            orm.TicketType.objects.filter(pk=ticket_type_id.value)
            .values_list("event_id", flat=True)
            .first()
        )
        invalidate_event_detail(event_pk)
        return True

    # Bookings

    @_translate_db_errors
    def create_booking(
        self, request: BookingRequest, total_amount: Money, status: BookingStatus
    ) -> Booking:
        row = orm.Booking.objects.create(
            event_id=request.event_id.value,
            user_id=request.user_id,
            name=request.attendee.name,
            email=request.attendee.email,
            phone=request.attendee.phone,
            total_amount=total_amount.amount,
            status=status.value,
        )
        return to_booking(row)

    @_translate_db_errors
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        row = orm.Booking.objects.filter(pk=booking_id.value).first()
        return to_booking(row) if row else None

    @_translate_db_errors
    def list_bookings_for_user(self, user_id: int) -> list[Booking]:
        rows = orm.Booking.objects.filter(user_id=user_id).order_by("-created_at")
        return [to_booking(row) for row in rows]

    @_translate_db_errors
    def try_transition_booking(
        self,
        booking_id: BookingId,
        from_statuses: tuple[BookingStatus, ...],
        to_status: BookingStatus,
        payment_reference: str | None = None,
    ) -> bool:
        values = {"status": to_status.value}
        if payment_reference is not None:
            values["payment_reference"] = payment_reference
        # update() bypasses auto_now.
        values["updated_at"] = timezone.now()
        updated = orm.Booking.objects.filter(
            pk=booking_id.value,
            status__in=[status.value for status in from_statuses],
        ).update(**values)
        return updated == 1

    # Tickets

    @_translate_db_errors
    def create_ticket(
        self, booking_id: BookingId, ticket_type_id: TicketTypeId, ticket_number: str
    ) -> Ticket:
        try:
            # Savepoint keeps the outer transaction usable after a collision.
            with transaction.atomic():
                row = orm.Ticket.objects.create(
                    booking_id=booking_id.value,
                    ticket_type_id=ticket_type_id.value,
                    ticket_number=ticket_number,
                )
        except IntegrityError:
            if orm.Ticket.objects.filter(ticket_number=ticket_number).exists():
                raise TicketNumberTaken(ticket_number) from None
            raise
        return to_ticket(row)

    @_translate_db_errors
    def list_tickets_for_booking(self, booking_id: BookingId) -> list[Ticket]:
        rows = orm.Ticket.objects.filter(booking_id=booking_id.value).order_by("created_at")
        return [to_ticket(row) for row in rows]

    @_translate_db_errors
    def count_tickets_for_ticket_type(self, ticket_type_id: TicketTypeId) -> int:
        return orm.Ticket.objects.filter(ticket_type_id=ticket_type_id.value).count()

    @_translate_db_errors
    def find_ticket(self, lookup: TicketLookup) -> TicketDetails | None:
        rows = orm.Ticket.objects.select_related("booking", "booking__event", "ticket_type")
        if isinstance(lookup, ById):
            row = rows.filter(pk=lookup.ticket_id.value).first()
        else:
            row = rows.filter(ticket_number=lookup.ticket_number).first()
        if row is None:
            return None
        return TicketDetails(
            ticket=to_ticket(row),
            ticket_type=to_ticket_type(row.ticket_type),
            booking=to_booking(row.booking),
            event=to_event(row.booking.event),
        )

    @_translate_db_errors
    def try_mark_ticket_used(self, ticket_id: TicketId, used_at: datetime) -> bool:
        updated = orm.Ticket.objects.filter(
            pk=ticket_id.value, used_at__isnull=True
        ).update(used_at=used_at)
        return updated == 1
