"""Inventory ledger: the only code that changes a ticket type's counters."""

import logging

from ticketing.domain import TicketTypeId
from ticketing.domain.errors import (
    CapacityBelowSoldError,
    InsufficientInventoryError,
    InvalidInputError,
    TicketTypeNotFoundError,
)
from ticketing.stores.interfaces import TicketTypeStore

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Reserve, release and resize ticket type inventory atomically."""

    def __init__(self, store: TicketTypeStore) -> None:
        self._store = store

    def reserve(self, ticket_type_id: TicketTypeId, quantity: int) -> None:
        """Take quantity units out of remaining in one guarded step.

        Raises:
            InvalidInputError: If quantity is below 1.
            TicketTypeNotFoundError: If the ticket type does not exist.
            InsufficientInventoryError: If fewer than quantity units remain.
        """
        self._require_positive(quantity)
        if self._store.try_reserve(ticket_type_id, quantity):
            return
        ticket_type = self._store.get_ticket_type(ticket_type_id)
        if ticket_type is None:
            raise TicketTypeNotFoundError(str(ticket_type_id))
        logger.info(
            "Reservation of %d x %s rejected, %d remaining",
            quantity,
            ticket_type_id,
            ticket_type.remaining.value,
        )
        raise InsufficientInventoryError(
            ticket_type_id=str(ticket_type_id),
            ticket_type_name=ticket_type.name,
            requested=quantity,
            remaining=ticket_type.remaining.value,
        )

    def release(self, ticket_type_id: TicketTypeId, quantity: int) -> None:
        """Return quantity units to remaining, capped at the total.

        Raises:
            InvalidInputError: If quantity is below 1.
            TicketTypeNotFoundError: If the ticket type does not exist.
        """
        self._require_positive(quantity)
        if not self._store.release(ticket_type_id, quantity):
            raise TicketTypeNotFoundError(str(ticket_type_id))

    def adjust_total(self, ticket_type_id: TicketTypeId, new_quantity: int) -> None:
        """Change total capacity, shifting remaining by the same amount.

        Raises:
            InvalidInputError: If new_quantity is negative.
            TicketTypeNotFoundError: If the ticket type does not exist.
            CapacityBelowSoldError: If fewer units would remain than are sold.
        """
        if new_quantity < 0:
            raise InvalidInputError("quantity", "must not be negative")
        if self._store.try_adjust_quantity(ticket_type_id, new_quantity):
            logger.info("Capacity of %s set to %d", ticket_type_id, new_quantity)
            return
        ticket_type = self._store.get_ticket_type(ticket_type_id)
        if ticket_type is None:
            raise TicketTypeNotFoundError(str(ticket_type_id))
        raise CapacityBelowSoldError(
            ticket_type_id=str(ticket_type_id),
            requested_quantity=new_quantity,
            sold=ticket_type.sold,
        )

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity < 1:
            raise InvalidInputError("quantity", "must be at least 1")
