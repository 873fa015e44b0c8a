from django.urls import path

from ticketing.handlers import (
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

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path(
        "events/<str:event_id>/ticket-types",
        TicketTypeListView.as_view(),
        name="ticket-type-list",
    ),
    path(
        "events/<str:event_id>/ticket-types/<str:ticket_type_id>",
        TicketTypeDetailView.as_view(),
        name="ticket-type-detail",
    ),
    path("bookings", BookingListView.as_view(), name="booking-list"),
    path("bookings/payload", BookingPayloadView.as_view(), name="booking-payload"),
    path("bookings/<str:booking_id>", BookingDetailView.as_view(), name="booking-detail"),
    path(
        "bookings/<str:booking_id>/cancel",
        BookingCancelView.as_view(),
        name="booking-cancel",
    ),
    path("tickets/verify", TicketVerifyView.as_view(), name="ticket-verify"),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
]
