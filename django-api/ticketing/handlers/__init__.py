from ticketing.handlers.views import (
    BookingCancelView,
    BookingDetailView,
    BookingListView,
    BookingPayloadView,
    EventDetailView,
    EventListView,
    TicketDetailView,
    TicketTypeDetailView,
    TicketTypeListView,
    TicketVerifyView,
)

__all__ = [
    "EventListView",
    "EventDetailView",
    "TicketTypeListView",
    "TicketTypeDetailView",
    "BookingListView",
    "BookingDetailView",
    "BookingCancelView",
    "BookingPayloadView",
    "TicketDetailView",
    "TicketVerifyView",
]
