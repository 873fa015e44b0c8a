from ticketing.domain.commands import (
    BookingItem,
    BookingRequest,
    EventChanges,
    EventDraft,
    TicketTypeChanges,
    TicketTypeDraft,
)
from ticketing.domain.models import (
    Attendee,
    Booking,
    BookingDetails,
    BookingStatus,
    Capability,
    Event,
    Ticket,
    TicketDetails,
    TicketType,
)
from ticketing.domain.value_objects import (
    BookingId,
    Capacity,
    EventId,
    Money,
    TicketId,
    TicketTypeId,
)
from ticketing.domain.verification import (
    ById,
    ByNumber,
    TicketLookup,
    VerificationFailure,
    VerificationMode,
    VerificationResult,
)

__all__ = [
    "Event",
    "TicketType",
    "Booking",
    "BookingDetails",
    "BookingStatus",
    "Attendee",
    "Ticket",
    "TicketDetails",
    "Capability",
    "EventId",
    "TicketTypeId",
    "BookingId",
    "TicketId",
    "Money",
    "Capacity",
    "BookingItem",
    "BookingRequest",
    "EventDraft",
    "EventChanges",
    "TicketTypeDraft",
    "TicketTypeChanges",
    "ById",
    "ByNumber",
    "TicketLookup",
    "VerificationFailure",
    "VerificationMode",
    "VerificationResult",
]
