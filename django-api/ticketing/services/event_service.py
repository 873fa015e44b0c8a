"""Event service - catalog and event management.

Services:
- Depend only on interfaces (stores and collaborators)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or raise domain errors
"""

import logging

from ticketing.domain import (
    Capability,
    Event,
    EventChanges,
    EventDraft,
    EventId,
    TicketType,
    TicketTypeChanges,
    TicketTypeDraft,
    TicketTypeId,
)
from ticketing.domain.errors import (
    EventHasBookingsError,
    EventNotFoundError,
    ForbiddenError,
    InvalidEventIdError,
    InvalidInputError,
    TicketTypeHasSalesError,
    TicketTypeNotFoundError,
)
from ticketing.services.collaborators import CapabilityChecker
from ticketing.services.inventory_ledger import InventoryLedger
from ticketing.stores.interfaces import TicketingStore

logger = logging.getLogger(__name__)


def parse_event_id(event_id: str) -> EventId:
    """Parse an event id.

    Raises:
        InvalidEventIdError: If the value is not a valid UUID.
    """
    try:
        return EventId.from_string(event_id)
    except (ValueError, TypeError, AttributeError):
        raise InvalidEventIdError() from None


class EventService:
    """Service for event catalog operations."""

    def __init__(
        self,
        store: TicketingStore,
        ledger: InventoryLedger,
        capabilities: CapabilityChecker,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._capabilities = capabilities

    def list_events(
        self, actor_id: int | None = None, published: bool | None = None
    ) -> list[Event]:
        """Return the events the actor may see, ordered by start date.

        Anonymous visitors see published events. Editors and admins see
        everything, optionally filtered by published. Other users also see
        their own unpublished events.
        """
        if actor_id is None:
            return self._store.list_events(published=True)
        if self._is_editor(actor_id):
            return self._store.list_events(published=published)
        return self._store.list_events(published=True, visible_to=actor_id)

    def get_event(self, event_id: str, actor_id: int | None = None) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist or is hidden from the actor.
        """
        event = self._require_event(event_id)
        if not event.is_published and not self._can_see_unpublished(event, actor_id):
            raise EventNotFoundError(event_id)
        return event

    def create_event(self, actor_id: int, draft: EventDraft) -> Event:
        """Create an event together with its initial ticket types.

        Raises:
            ForbiddenError: If the actor lacks events:create.
            InvalidInputError: If a field is blank or the dates are inverted.
        """
        if not self._capabilities.has_capability(actor_id, Capability.CREATE_EVENTS):
            raise ForbiddenError("create events")
        self._validate_event_fields(draft.name, draft.location)
        if draft.end_date < draft.start_date:
            raise InvalidInputError("end_date", "must not be before start_date")
        for ticket_type in draft.ticket_types:
            self._validate_ticket_type(ticket_type)

        with self._store.atomic():
            event = self._store.create_event(actor_id, draft)
        logger.info(
            "Event %s created by user %s with %d ticket types",
            event.id,
            actor_id,
            len(draft.ticket_types),
        )
        return event

    def update_event(self, event_id: str, actor_id: int, changes: EventChanges) -> Event:
        """Apply a partial update.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            ForbiddenError: If the actor lacks events:edit or is not creator or admin.
            InvalidInputError: If a field is blank or the dates would be inverted.
        """
        event = self._require_event(event_id)
        self._require_manager(event, actor_id, Capability.EDIT_EVENTS, "edit this event")
        if changes.name is not None or changes.location is not None:
            self._validate_event_fields(
                changes.name if changes.name is not None else event.name,
                changes.location if changes.location is not None else event.location,
            )
        start = changes.start_date or event.start_date
        end = changes.end_date or event.end_date
        if end < start:
            raise InvalidInputError("end_date", "must not be before start_date")

        with self._store.atomic():
            updated = self._store.update_event(event.id, changes)
        logger.info("Event %s updated by user %s", event.id, actor_id)
        return updated

    def delete_event(self, event_id: str, actor_id: int) -> None:
        """Delete an event and its ticket types.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            ForbiddenError: If the actor lacks events:delete or is not creator or admin.
            EventHasBookingsError: If any booking references the event.
        """
        event = self._require_event(event_id)
        self._require_manager(event, actor_id, Capability.DELETE_EVENTS, "delete this event")
        with self._store.atomic():
            if not self._store.try_delete_event(event.id):
                raise EventHasBookingsError(event_id)
        logger.info("Event %s deleted by user %s", event.id, actor_id)

    def list_ticket_types(self, event_id: str, actor_id: int | None = None) -> list[TicketType]:
        """Return an event's ticket types ordered by price.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist or is hidden from the actor.
        """
        event = self.get_event(event_id, actor_id)
        return self._store.list_ticket_types(event.id)

    def get_ticket_type(
        self, event_id: str, ticket_type_id: str, actor_id: int | None = None
    ) -> TicketType:
        """Return one of an event's ticket types.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist or is hidden from the actor.
            TicketTypeNotFoundError: If the ticket type is not part of the event.
        """
        event = self.get_event(event_id, actor_id)
        return self._require_ticket_type(event, ticket_type_id)

    def create_ticket_type(
        self, event_id: str, actor_id: int, draft: TicketTypeDraft
    ) -> TicketType:
        """Add a ticket type with remaining equal to its quantity.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            ForbiddenError: If the actor lacks events:edit or is not creator or admin.
            InvalidInputError: If the name is blank or the quantity negative.
        """
        event = self._require_event(event_id)
        self._require_manager(event, actor_id, Capability.EDIT_EVENTS, "edit this event")
        self._validate_ticket_type(draft)
        with self._store.atomic():
            ticket_type = self._store.create_ticket_type(event.id, draft)
        logger.info("Ticket type %s added to event %s", ticket_type.id, event.id)
        return ticket_type

    def update_ticket_type(
        self,
        event_id: str,
        ticket_type_id: str,
        actor_id: int,
        changes: TicketTypeChanges,
    ) -> TicketType:
        """Update a ticket type. Quantity changes go through the inventory ledger.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            TicketTypeNotFoundError: If the ticket type is not part of the event.
            ForbiddenError: If the actor lacks events:edit or is not creator or admin.
            InvalidInputError: If the name is blank.
            CapacityBelowSoldError: If the new quantity is below the sold count.
        """
        event = self._require_event(event_id)
        self._require_manager(event, actor_id, Capability.EDIT_EVENTS, "edit this event")
        ticket_type = self._require_ticket_type(event, ticket_type_id)
        if changes.name is not None and not changes.name.strip():
            raise InvalidInputError("name", "is required")

        with self._store.atomic():
            if changes.quantity is not None:
                self._ledger.adjust_total(ticket_type.id, changes.quantity)
            updated = self._store.update_ticket_type_details(ticket_type.id, changes)
        return updated

    def delete_ticket_type(self, event_id: str, ticket_type_id: str, actor_id: int) -> None:
        """Delete a ticket type that has not issued any tickets.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            TicketTypeNotFoundError: If the ticket type is not part of the event.
            ForbiddenError: If the actor lacks events:edit or is not creator or admin.
            TicketTypeHasSalesError: If tickets of this type exist.
        """
        event = self._require_event(event_id)
        self._require_manager(event, actor_id, Capability.EDIT_EVENTS, "edit this event")
        ticket_type = self._require_ticket_type(event, ticket_type_id)
        with self._store.atomic():
            if not self._store.try_delete_ticket_type(ticket_type.id):
                raise TicketTypeHasSalesError(ticket_type_id)
        logger.info("Ticket type %s removed from event %s", ticket_type.id, event.id)

    def _require_event(self, event_id: str) -> Event:
        event = self._store.get_event(parse_event_id(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def _require_ticket_type(self, event: Event, ticket_type_id: str) -> TicketType:
        try:
            parsed = TicketTypeId.from_string(ticket_type_id)
        except (ValueError, TypeError, AttributeError):
            raise TicketTypeNotFoundError(ticket_type_id) from None
        ticket_type = self._store.get_ticket_type(parsed)
        if ticket_type is None or ticket_type.event_id != event.id:
            raise TicketTypeNotFoundError(ticket_type_id)
        return ticket_type

    def _require_manager(
        self, event: Event, actor_id: int, capability: Capability, action: str
    ) -> None:
        if self._capabilities.has_capability(actor_id, Capability.ADMIN):
            return
        if event.creator_id != actor_id or not self._capabilities.has_capability(
            actor_id, capability
        ):
            raise ForbiddenError(action)

    def _is_editor(self, actor_id: int) -> bool:
        return self._capabilities.has_any(actor_id, Capability.EDIT_EVENTS, Capability.ADMIN)

    def _can_see_unpublished(self, event: Event, actor_id: int | None) -> bool:
        if actor_id is None:
            return False
        return event.creator_id == actor_id or self._is_editor(actor_id)

    @staticmethod
    def _validate_event_fields(name: str, location: str) -> None:
        if not name or not name.strip():
            raise InvalidInputError("name", "is required")
        if not location or not location.strip():
            raise InvalidInputError("location", "is required")

    @staticmethod
    def _validate_ticket_type(draft: TicketTypeDraft) -> None:
        if not draft.name or not draft.name.strip():
            raise InvalidInputError("name", "is required")
        if draft.quantity < 0:
            raise InvalidInputError("quantity", "must not be negative")
