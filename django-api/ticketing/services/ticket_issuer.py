"""Ticket minting.

Allocation only: inventory is the ledger's concern, so the verification read
path never needs ledger access.
"""

import logging

from ticketing.domain import BookingId, Ticket, TicketTypeId
from ticketing.domain.errors import TicketNumberConflictError
from ticketing.services.collaborators import IdGenerator
from ticketing.stores.interfaces import TicketNumberTaken, TicketStore

logger = logging.getLogger(__name__)


class TicketIssuer:
    """Mints tickets with globally unique numbers."""

    def __init__(
        self,
        store: TicketStore,
        id_generator: IdGenerator,
        prefix: str = "TKT-",
        length: int = 8,
        max_attempts: int = 5,
    ) -> None:
        self._store = store
        self._id_generator = id_generator
        self._prefix = prefix
        self._length = length
        self._max_attempts = max_attempts

    def mint(self, booking_id: BookingId, ticket_type_id: TicketTypeId) -> Ticket:
        """Create one ticket, retrying on number collisions.

        Raises:
            TicketNumberConflictError: If every attempt collided.
        """
        for attempt in range(1, self._max_attempts + 1):
            number = f"{self._prefix}{self._id_generator.short_id(self._length)}"
            try:
                return self._store.create_ticket(booking_id, ticket_type_id, number)
            except TicketNumberTaken:
                logger.warning(
                    "Ticket number collision on attempt %d/%d", attempt, self._max_attempts
                )
        raise TicketNumberConflictError(self._max_attempts)
