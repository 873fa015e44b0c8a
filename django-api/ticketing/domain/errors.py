"""Domain error codes for the ticketing module."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    TICKET_TYPE_NOT_FOUND = "TICKET_TYPE_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_PUBLISHED = "NOT_PUBLISHED"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    FORBIDDEN = "FORBIDDEN"
    WRONG_BOOKING_STATUS = "WRONG_BOOKING_STATUS"
    CAPACITY_BELOW_SOLD = "CAPACITY_BELOW_SOLD"
    EVENT_HAS_BOOKINGS = "EVENT_HAS_BOOKINGS"
    TICKET_TYPE_HAS_SALES = "TICKET_TYPE_HAS_SALES"
    CONFLICT = "CONFLICT"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    @property
    def details(self) -> dict[str, Any]:
        """Structured context for rendering a specific message."""
        return {}


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id

    @property
    def details(self) -> dict[str, Any]:
        return {"event_id": self.event_id}


class TicketTypeNotFoundError(DomainError):
    """Raised when a ticket type is unknown or belongs to another event."""

    def __init__(self, ticket_type_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_TYPE_NOT_FOUND,
            message="Ticket type not found",
        )
        self.ticket_type_id = ticket_type_id

    @property
    def details(self) -> dict[str, Any]:
        return {"ticket_type_id": self.ticket_type_id}


class BookingNotFoundError(DomainError):
    """Raised when a booking is not found."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        self.booking_id = booking_id

    @property
    def details(self) -> dict[str, Any]:
        return {"booking_id": self.booking_id}


class TicketNotFoundError(DomainError):
    """Raised when a ticket is not found."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_FOUND,
            message="Ticket not found",
        )
        self.ticket_id = ticket_id

    @property
    def details(self) -> dict[str, Any]:
        return {"ticket_id": self.ticket_id}


class InvalidEventIdError(DomainError):
    """Raised when an event ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_EVENT_ID,
            message="Invalid event ID format",
        )


class InvalidInputError(DomainError):
    """Raised when a required field is missing or out of range."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid {field}: {reason}",
        )
        self.field = field
        self.reason = reason

    @property
    def details(self) -> dict[str, Any]:
        return {"field": self.field, "reason": self.reason}


class EventNotPublishedError(DomainError):
    """Raised when booking an event that is not published."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_PUBLISHED,
            message="Event is not published",
        )
        self.event_id = event_id

    @property
    def details(self) -> dict[str, Any]:
        return {"event_id": self.event_id}


class InsufficientInventoryError(DomainError):
    """Raised when a ticket type has fewer remaining tickets than requested.

    Not retryable without re-reading availability.
    """

    def __init__(
        self, ticket_type_id: str, ticket_type_name: str, requested: int, remaining: int
    ) -> None:
        super().__init__(
            code=ErrorCode.INSUFFICIENT_INVENTORY,
            message=f"Not enough tickets available for: {ticket_type_name}",
        )
        self.ticket_type_id = ticket_type_id
        self.ticket_type_name = ticket_type_name
        self.requested = requested
        self.remaining = remaining

    @property
    def details(self) -> dict[str, Any]:
        return {
            "ticket_type_id": self.ticket_type_id,
            "ticket_type_name": self.ticket_type_name,
            "requested": self.requested,
            "remaining": self.remaining,
        }


class ForbiddenError(DomainError):
    """Raised when the actor lacks the capability or ownership required."""

    def __init__(self, action: str) -> None:
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=f"You don't have permission to {action}",
        )
        self.action = action

    @property
    def details(self) -> dict[str, Any]:
        return {"action": self.action}


class WrongBookingStatusError(DomainError):
    """Raised when a booking is in a state that does not allow the operation."""

    def __init__(self, booking_id: str, status: str) -> None:
        super().__init__(
            code=ErrorCode.WRONG_BOOKING_STATUS,
            message=f"Booking is already {status.lower()}",
        )
        self.booking_id = booking_id
        self.status = status

    @property
    def details(self) -> dict[str, Any]:
        return {"booking_id": self.booking_id, "status": self.status}


class CapacityBelowSoldError(DomainError):
    """Raised when a capacity edit would leave fewer seats than already sold."""

    def __init__(self, ticket_type_id: str, requested_quantity: int, sold: int) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_BELOW_SOLD,
            message=f"Quantity cannot be lower than the {sold} tickets already sold",
        )
        self.ticket_type_id = ticket_type_id
        self.requested_quantity = requested_quantity
        self.sold = sold

    @property
    def details(self) -> dict[str, Any]:
        return {
            "ticket_type_id": self.ticket_type_id,
            "requested_quantity": self.requested_quantity,
            "sold": self.sold,
        }


class EventHasBookingsError(DomainError):
    """Raised when deleting an event that bookings still reference."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_HAS_BOOKINGS,
            message="Cannot delete event with existing bookings",
        )
        self.event_id = event_id

    @property
    def details(self) -> dict[str, Any]:
        return {"event_id": self.event_id}


class TicketTypeHasSalesError(DomainError):
    """Raised when deleting a ticket type that already issued tickets."""

    def __init__(self, ticket_type_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_TYPE_HAS_SALES,
            message="Cannot delete ticket type with existing bookings",
        )
        self.ticket_type_id = ticket_type_id

    @property
    def details(self) -> dict[str, Any]:
        return {"ticket_type_id": self.ticket_type_id}


class TicketNumberConflictError(DomainError):
    """Raised when no unique ticket number could be allocated."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT,
            message="Could not allocate a unique ticket number",
        )
        self.attempts = attempts

    @property
    def details(self) -> dict[str, Any]:
        return {"attempts": self.attempts}


class UnavailableError(DomainError):
    """Raised when the persistence layer cannot be reached."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.UNAVAILABLE,
            message="Service temporarily unavailable",
        )
