"""Pytest configuration and shared fixtures."""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from tests.support import (
    ADMIN,
    CUSTOMER,
    NOW,
    ORGANIZER,
    STAFF,
    Catalog,
    FakeCapabilities,
    RecordingNotifier,
    ScriptedIdGenerator,
)
from ticketing.domain import (
    Attendee,
    BookingItem,
    BookingRequest,
    Capability,
    EventDraft,
    Money,
    TicketType,
    TicketTypeDraft,
)
from ticketing.services.booking_workflow import BookingWorkflow
from ticketing.services.event_service import EventService
from ticketing.services.inventory_ledger import InventoryLedger
from ticketing.services.ticket_issuer import TicketIssuer
from ticketing.services.ticket_verifier import TicketVerifier
from ticketing.stores.memory_store import InMemoryTicketingStore


@dataclass
class Services:
    store: InMemoryTicketingStore
    ledger: InventoryLedger
    issuer: TicketIssuer
    workflow: BookingWorkflow
    verifier: TicketVerifier
    events: EventService
    notifier: RecordingNotifier
    capabilities: FakeCapabilities
    id_generator: ScriptedIdGenerator


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def store() -> InMemoryTicketingStore:
    return InMemoryTicketingStore(clock=lambda: NOW)


@pytest.fixture
def capabilities() -> FakeCapabilities:
    return FakeCapabilities(
        {
            ORGANIZER: {Capability.CREATE_EVENTS, Capability.EDIT_EVENTS, Capability.DELETE_EVENTS},
            ADMIN: {Capability.ADMIN},
            STAFF: {Capability.EDIT_EVENTS},
        }
    )


@pytest.fixture
def services(store, capabilities) -> Services:
    notifier = RecordingNotifier()
    id_generator = ScriptedIdGenerator()
    ledger = InventoryLedger(store)
    issuer = TicketIssuer(store, id_generator)
    workflow = BookingWorkflow(
        store,
        ledger,
        issuer,
        notifier,
        capabilities,
        id_generator,
        app_url="https://tickets.example.com/",
    )
    return Services(
        store=store,
        ledger=ledger,
        issuer=issuer,
        workflow=workflow,
        verifier=TicketVerifier(store, capabilities, clock=lambda: NOW),
        events=EventService(store, ledger, capabilities),
        notifier=notifier,
        capabilities=capabilities,
        id_generator=id_generator,
    )


def _event_draft(**overrides) -> EventDraft:
    fields = {
        "name": "Harbour Lights Festival",
        "location": "Pier 9",
        "start_date": NOW + timedelta(days=30),
        "end_date": NOW + timedelta(days=30, hours=6),
        "is_published": True,
        "ticket_types": (
            TicketTypeDraft(name="General", price=Money(Decimal("50.00")), quantity=10),
            TicketTypeDraft(name="VIP", price=Money(Decimal("120.00")), quantity=2),
        ),
    }
    fields.update(overrides)
    return EventDraft(**fields)


@pytest.fixture
def event_draft():
    """Factory for event drafts; keyword arguments override the defaults."""
    return _event_draft


@pytest.fixture
def catalog(store) -> Catalog:
    event = store.create_event(ORGANIZER, _event_draft())
    general, vip = store.list_ticket_types(event.id)
    return Catalog(store=store, event=event, general=general, vip=vip)


@pytest.fixture
def booking_request(catalog):
    """Factory for booking requests against the catalog event."""

    def build(*items: tuple[TicketType, int], user_id: int = CUSTOMER, **attendee) -> BookingRequest:
        contact = {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "+44 20 7946 0000"}
        contact.update(attendee)
        return BookingRequest(
            event_id=catalog.event.id,
            user_id=user_id,
            attendee=Attendee(**contact),
            items=tuple(BookingItem(ticket_type.id, quantity) for ticket_type, quantity in items),
        )

    return build


@pytest.fixture(autouse=True)
def synchronous_notifications(settings):
    settings.TICKETING = {**settings.TICKETING, "NOTIFICATIONS_ASYNC": False}


def _grant(user, *codenames: str):
    from django.contrib.auth.models import Permission

    user.user_permissions.add(
        *Permission.objects.filter(content_type__app_label="ticketing", codename__in=codenames)
    )
    return user


@pytest.fixture
def organizer(django_user_model):
    user = django_user_model.objects.create_user(username="organizer", password="pw")
    return _grant(user, "create_events", "edit_events", "delete_events")


@pytest.fixture
def door_staff(django_user_model):
    user = django_user_model.objects.create_user(username="door", password="pw")
    return _grant(user, "edit_events")


@pytest.fixture
def administrator(django_user_model):
    user = django_user_model.objects.create_user(username="admin", password="pw")
    return _grant(user, "admin_access")


@pytest.fixture
def customer(django_user_model):
    return django_user_model.objects.create_user(
        username="customer", email="customer@example.com", password="pw"
    )


@pytest.fixture
def orm_event(organizer):
    """A published event in the database with General and VIP ticket types."""
    from django.utils import timezone

    from ticketing import models as orm

    start = timezone.now() + timedelta(days=30)
    event = orm.Event.objects.create(
        creator=organizer,
        name="Harbour Lights Festival",
        location="Pier 9",
        start_date=start,
        end_date=start + timedelta(hours=6),
        is_published=True,
    )
    orm.TicketType.objects.create(
        event=event, name="General", price=Decimal("50.00"), quantity=10, remaining=10
    )
    orm.TicketType.objects.create(
        event=event, name="VIP", price=Decimal("120.00"), quantity=2, remaining=2
    )
    return event
