"""Door-scan verification.

A ticket moves from unseen to used exactly once. Checks run in a fixed order
and the first failing one decides the result; only COMMIT mode writes.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from ticketing.domain import (
    BookingStatus,
    Capability,
    EventId,
    TicketLookup,
    VerificationFailure,
    VerificationMode,
    VerificationResult,
)
from ticketing.domain.errors import ForbiddenError
from ticketing.services.collaborators import CapabilityChecker
from ticketing.stores.interfaces import TicketStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TicketVerifier:
    """Validates presented tickets and marks them used."""

    def __init__(
        self,
        store: TicketStore,
        capabilities: CapabilityChecker,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._capabilities = capabilities
        self._clock = clock

    def verify(
        self,
        lookup: TicketLookup,
        event_id: EventId | None = None,
        mode: VerificationMode = VerificationMode.COMMIT,
        actor_id: int | None = None,
    ) -> VerificationResult:
        """Check a ticket and, in COMMIT mode, admit it.

        Refusals are returned as results rather than raised.

        Raises:
            ForbiddenError: If actor_id is given and lacks events:edit and admin:access.
        """
        if actor_id is not None and not self._capabilities.has_any(
            actor_id, Capability.EDIT_EVENTS, Capability.ADMIN
        ):
            raise ForbiddenError("verify tickets")

        details = self._store.find_ticket(lookup)
        if details is None or (event_id is not None and details.event.id != event_id):
            logger.info("Verification refused: ticket %s not found", lookup)
            return VerificationResult.refused(VerificationFailure.NOT_FOUND)

        ticket = details.ticket
        if details.booking.status is not BookingStatus.CONFIRMED:
            return self._refuse(VerificationFailure.WRONG_BOOKING_STATUS, details)

        now = self._clock()
        if details.event.has_started(now):
            return self._refuse(VerificationFailure.EVENT_PASSED, details)

        if ticket.is_used:
            return self._refuse(VerificationFailure.ALREADY_USED, details, ticket.used_at)

        if mode is VerificationMode.DRY_RUN:
            return VerificationResult.admitted(details, used_at=None, committed=False)

        if not self._store.try_mark_ticket_used(ticket.id, now):
            winner = self._store.find_ticket(lookup)
            used_at = winner.ticket.used_at if winner is not None else None
            return self._refuse(VerificationFailure.ALREADY_USED, details, used_at)

        logger.info("Ticket %s admitted to event %s", ticket.ticket_number, details.event.id)
        admitted = replace(details, ticket=replace(ticket, used_at=now))
        return VerificationResult.admitted(admitted, used_at=now, committed=True)

    @staticmethod
    def _refuse(failure, details, used_at=None) -> VerificationResult:
        logger.info(
            "Verification refused for ticket %s: %s",
            details.ticket.ticket_number,
            failure.value,
        )
        return VerificationResult.refused(failure, details=details, used_at=used_at)
