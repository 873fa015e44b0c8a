"""Unit tests for InventoryLedger against the in-memory store.

Run with: pytest tests/test_inventory_ledger.py -v
"""

import uuid

import pytest

from ticketing.domain import TicketTypeId
from ticketing.domain.errors import (
    CapacityBelowSoldError,
    InsufficientInventoryError,
    InvalidInputError,
    TicketTypeNotFoundError,
)


class TestReserve:
    """Tests for InventoryLedger.reserve."""

    def test_reserve_decrements_remaining(self, services, catalog):
        """A satisfiable reservation takes units out of remaining."""
        services.ledger.reserve(catalog.general.id, 4)
        assert catalog.remaining(catalog.general) == 6

    def test_reserve_exact_remaining(self, services, catalog):
        """Reserving exactly what remains leaves zero."""
        services.ledger.reserve(catalog.vip.id, 2)
        assert catalog.remaining(catalog.vip) == 0

    def test_reserve_more_than_remaining(self, services, catalog):
        """Over-reservation is rejected with the counts at evaluation time."""
        with pytest.raises(InsufficientInventoryError) as exc_info:
            services.ledger.reserve(catalog.vip.id, 3)
        assert exc_info.value.details == {
            "ticket_type_id": str(catalog.vip.id),
            "ticket_type_name": "VIP",
            "requested": 3,
            "remaining": 2,
        }
        assert catalog.remaining(catalog.vip) == 2

    def test_reserve_unknown_ticket_type(self, services, catalog):
        """An unknown ticket type is reported as not found."""
        with pytest.raises(TicketTypeNotFoundError):
            services.ledger.reserve(TicketTypeId(uuid.uuid4()), 1)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_reserve_rejects_non_positive_quantity(self, services, catalog, quantity):
        """Quantities below 1 are invalid input."""
        with pytest.raises(InvalidInputError):
            services.ledger.reserve(catalog.general.id, quantity)
        assert catalog.remaining(catalog.general) == 10


class TestRelease:
    """Tests for InventoryLedger.release."""

    def test_release_restores_units(self, services, catalog):
        """Released units go back to remaining."""
        services.ledger.reserve(catalog.general.id, 5)
        services.ledger.release(catalog.general.id, 3)
        assert catalog.remaining(catalog.general) == 8

    def test_release_is_capped_at_quantity(self, services, catalog):
        """remaining never exceeds the total."""
        services.ledger.reserve(catalog.general.id, 2)
        services.ledger.release(catalog.general.id, 5)
        assert catalog.remaining(catalog.general) == 10

    def test_release_unknown_ticket_type(self, services, catalog):
        """An unknown ticket type is reported as not found."""
        with pytest.raises(TicketTypeNotFoundError):
            services.ledger.release(TicketTypeId(uuid.uuid4()), 1)


class TestAdjustTotal:
    """Tests for InventoryLedger.adjust_total."""

    def test_increase_shifts_remaining(self, services, catalog):
        """Raising capacity adds the difference to remaining."""
        services.ledger.reserve(catalog.general.id, 4)
        services.ledger.adjust_total(catalog.general.id, 15)
        ticket_type = catalog.store.get_ticket_type(catalog.general.id)
        assert ticket_type.quantity.value == 15
        assert ticket_type.remaining.value == 11

    def test_decrease_down_to_sold(self, services, catalog):
        """Capacity may shrink to exactly the sold count."""
        services.ledger.reserve(catalog.general.id, 4)
        services.ledger.adjust_total(catalog.general.id, 4)
        ticket_type = catalog.store.get_ticket_type(catalog.general.id)
        assert ticket_type.quantity.value == 4
        assert ticket_type.is_sold_out

    def test_decrease_below_sold_is_rejected(self, services, catalog):
        """Shrinking below the sold count is rejected and changes nothing."""
        services.ledger.reserve(catalog.general.id, 4)
        with pytest.raises(CapacityBelowSoldError) as exc_info:
            services.ledger.adjust_total(catalog.general.id, 3)
        assert exc_info.value.details["sold"] == 4
        ticket_type = catalog.store.get_ticket_type(catalog.general.id)
        assert ticket_type.quantity.value == 10
        assert ticket_type.remaining.value == 6

    def test_negative_quantity_is_invalid(self, services, catalog):
        """A negative total is invalid input."""
        with pytest.raises(InvalidInputError):
            services.ledger.adjust_total(catalog.general.id, -1)
