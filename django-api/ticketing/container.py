"""Wires services to the Django store and collaborators from settings."""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from django.conf import settings
from django.utils import timezone

from ticketing.capabilities import DjangoCapabilityChecker
from ticketing.identifiers import SecretsIdGenerator
from ticketing.notifications import BackgroundNotifier, EmailNotifier
from ticketing.services.booking_workflow import BookingWorkflow
from ticketing.services.collaborators import Notifier
from ticketing.services.event_service import EventService
from ticketing.services.inventory_ledger import InventoryLedger
from ticketing.services.ticket_issuer import TicketIssuer
from ticketing.services.ticket_verifier import TicketVerifier
from ticketing.stores.django_store import DjangoTicketingStore

DEFAULTS: dict[str, Any] = {
    "TICKET_NUMBER_PREFIX": "TKT-",
    "TICKET_NUMBER_LENGTH": 8,
    "PAYMENT_REFERENCE_PREFIX": "PAY-",
    "PAYMENT_REFERENCE_LENGTH": 10,
    "MINT_MAX_ATTEMPTS": 5,
    "NOTIFICATIONS_ASYNC": True,
    "APP_URL": "http://localhost:8000",
    "CACHE_TIMEOUT": 300,
}

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def ticketing_setting(name: str) -> Any:
    return getattr(settings, "TICKETING", {}).get(name, DEFAULTS[name])


def notification_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")
        return _executor


def notifier() -> Notifier:
    email = EmailNotifier()
    if ticketing_setting("NOTIFICATIONS_ASYNC"):
        return BackgroundNotifier(email, notification_executor())
    return email


def event_service() -> EventService:
    store = DjangoTicketingStore()
    return EventService(store, InventoryLedger(store), DjangoCapabilityChecker())


def booking_workflow() -> BookingWorkflow:
    store = DjangoTicketingStore()
    id_generator = SecretsIdGenerator()
    issuer = TicketIssuer(
        store,
        id_generator,
        prefix=ticketing_setting("TICKET_NUMBER_PREFIX"),
        length=ticketing_setting("TICKET_NUMBER_LENGTH"),
        max_attempts=ticketing_setting("MINT_MAX_ATTEMPTS"),
    )
    return BookingWorkflow(
        store,
        InventoryLedger(store),
        issuer,
        notifier(),
        DjangoCapabilityChecker(),
        id_generator,
        payment_prefix=ticketing_setting("PAYMENT_REFERENCE_PREFIX"),
        payment_length=ticketing_setting("PAYMENT_REFERENCE_LENGTH"),
        app_url=ticketing_setting("APP_URL"),
    )


def ticket_verifier() -> TicketVerifier:
    return TicketVerifier(DjangoTicketingStore(), DjangoCapabilityChecker(), clock=timezone.now)
