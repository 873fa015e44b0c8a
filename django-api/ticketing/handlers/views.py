"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.core import signing
from django.core.cache import cache
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ticketing import container
from ticketing.domain import BookingId, TicketId, VerificationFailure
from ticketing.domain.errors import (
    BookingNotFoundError,
    DomainError,
    ErrorCode,
    InvalidInputError,
    TicketNotFoundError,
)
from ticketing.handlers.serializers import (
    BookingInputSerializer,
    BookingSerializer,
    CatalogTicketTypeSerializer,
    EventInputSerializer,
    EventSerializer,
    PayloadInputSerializer,
    TicketDetailsSerializer,
    TicketTypeInputSerializer,
    TicketTypeSerializer,
    VerifyInputSerializer,
    serialize_booking_details,
    serialize_verification,
)
from ticketing.notifications import decode_booking_payload
from ticketing.services.event_service import parse_event_id
from ticketing.signals import PUBLISHED_EVENTS_KEY, event_detail_key

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_TYPE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_PUBLISHED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    ErrorCode.WRONG_BOOKING_STATUS: status.HTTP_409_CONFLICT,
    ErrorCode.CAPACITY_BELOW_SOLD: status.HTTP_409_CONFLICT,
    ErrorCode.EVENT_HAS_BOOKINGS: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_TYPE_HAS_SALES: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: DomainError) -> Response:
    return Response(
        {"code": error.code.value, "message": error.message, "details": error.details},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def validation_error_response(errors) -> Response:
    return Response(
        {
            "code": ErrorCode.INVALID_INPUT.value,
            "message": "Invalid request",
            "details": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def actor_id(request: Request) -> int | None:
    return request.user.pk if request.user.is_authenticated else None


def parse_booking_id(booking_id: str) -> BookingId:
    try:
        return BookingId.from_string(booking_id)
    except ValueError:
        raise BookingNotFoundError(booking_id) from None


def parse_ticket_id(ticket_id: str) -> TicketId:
    try:
        return TicketId.from_string(ticket_id)
    except ValueError:
        raise TicketNotFoundError(ticket_id) from None


def cache_timeout() -> int:
    return container.ticketing_setting("CACHE_TIMEOUT")


class DomainAPIView(APIView):
    """APIView that renders domain errors as structured responses."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            if exc.code is ErrorCode.UNAVAILABLE:
                logger.error("Request to %s failed: %s", self.request.path, exc)
            return error_response(exc)
        return super().handle_exception(exc)


class EventListView(DomainAPIView):
    """Handler for GET/POST /api/events"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request: Request) -> Response:
        published = request.query_params.get("published")
        actor = actor_id(request)
        if actor is None:
            data = cache.get(PUBLISHED_EVENTS_KEY)
            if data is None:
                events = container.event_service().list_events()
                data = EventSerializer(events, many=True).data
                cache.set(PUBLISHED_EVENTS_KEY, data, cache_timeout())
        else:
            flag = None if published is None else published.lower() in ("1", "true", "yes")
            events = container.event_service().list_events(actor, published=flag)
            data = EventSerializer(events, many=True).data

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(data, request, view=self)
        return paginator.get_paginated_response(page)

    def post(self, request: Request) -> Response:
        serializer = EventInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        event = container.event_service().create_event(actor_id(request), serializer.to_draft())
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(DomainAPIView):
    """Handler for GET/PATCH/DELETE /api/events/{event_id}"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request: Request, event_id: str) -> Response:
        key = event_detail_key(parse_event_id(event_id))
        actor = actor_id(request)
        if actor is None:
            data = cache.get(key)
            if data is not None:
                return Response(data)

        service = container.event_service()
        event = service.get_event(event_id, actor)
        data = dict(EventSerializer(event).data)
        data["ticket_types"] = CatalogTicketTypeSerializer(
            service.list_ticket_types(event_id, actor), many=True
        ).data
        if actor is None:
            cache.set(key, data, cache_timeout())
        return Response(data)

    def patch(self, request: Request, event_id: str) -> Response:
        serializer = EventInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        event = container.event_service().update_event(
            event_id, actor_id(request), serializer.to_changes()
        )
        return Response(EventSerializer(event).data)

    def delete(self, request: Request, event_id: str) -> Response:
        container.event_service().delete_event(event_id, actor_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class TicketTypeListView(DomainAPIView):
    """Handler for GET/POST /api/events/{event_id}/ticket-types"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request: Request, event_id: str) -> Response:
        ticket_types = container.event_service().list_ticket_types(event_id, actor_id(request))
        return Response(TicketTypeSerializer(ticket_types, many=True).data)

    def post(self, request: Request, event_id: str) -> Response:
        serializer = TicketTypeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        ticket_type = container.event_service().create_ticket_type(
            event_id, actor_id(request), serializer.to_draft()
        )
        return Response(TicketTypeSerializer(ticket_type).data, status=status.HTTP_201_CREATED)


class TicketTypeDetailView(DomainAPIView):
    """Handler for GET/PATCH/DELETE /api/events/{event_id}/ticket-types/{ticket_type_id}"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request: Request, event_id: str, ticket_type_id: str) -> Response:
        ticket_type = container.event_service().get_ticket_type(
            event_id, ticket_type_id, actor_id(request)
        )
        return Response(TicketTypeSerializer(ticket_type).data)

    def patch(self, request: Request, event_id: str, ticket_type_id: str) -> Response:
        serializer = TicketTypeInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        ticket_type = container.event_service().update_ticket_type(
            event_id, ticket_type_id, actor_id(request), serializer.to_changes()
        )
        return Response(TicketTypeSerializer(ticket_type).data)

    def delete(self, request: Request, event_id: str, ticket_type_id: str) -> Response:
        container.event_service().delete_ticket_type(event_id, ticket_type_id, actor_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class BookingListView(DomainAPIView):
    """Handler for GET/POST /api/bookings"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        bookings = container.booking_workflow().list_bookings(actor_id(request))
        return Response({"bookings": BookingSerializer(bookings, many=True).data})

    def post(self, request: Request) -> Response:
        serializer = BookingInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        booking = container.booking_workflow().create_booking(
            serializer.to_request(actor_id(request))
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(DomainAPIView):
    """Handler for GET /api/bookings/{booking_id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request, booking_id: str) -> Response:
        details = container.booking_workflow().get_booking(
            parse_booking_id(booking_id), actor_id(request)
        )
        return Response(serialize_booking_details(details))


class BookingCancelView(DomainAPIView):
    """Handler for POST /api/bookings/{booking_id}/cancel"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request, booking_id: str) -> Response:
        booking = container.booking_workflow().cancel_booking(
            parse_booking_id(booking_id), actor_id(request)
        )
        return Response(BookingSerializer(booking).data)


class BookingPayloadView(DomainAPIView):
    """Handler for POST /api/bookings/payload"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = PayloadInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        try:
            payload = decode_booking_payload(serializer.validated_data["token"])
        except signing.BadSignature:
            raise InvalidInputError("token", "signature does not match") from None
        return Response(
            {
                "booking_id": payload["bookingId"],
                "event_id": payload["eventId"],
                "user_id": payload["userId"],
            }
        )


class TicketDetailView(DomainAPIView):
    """Handler for GET /api/tickets/{ticket_id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request, ticket_id: str) -> Response:
        details = container.booking_workflow().get_ticket(
            parse_ticket_id(ticket_id), actor_id(request)
        )
        return Response(TicketDetailsSerializer(details).data)


class TicketVerifyView(DomainAPIView):
    """Handler for POST /api/tickets/verify"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = VerifyInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        result = container.ticket_verifier().verify(
            serializer.lookup(),
            event_id=serializer.target_event_id(),
            mode=serializer.verification_mode(),
            actor_id=actor_id(request),
        )
        code = (
            status.HTTP_404_NOT_FOUND
            if result.failure is VerificationFailure.NOT_FOUND
            else status.HTTP_200_OK
        )
        return Response(serialize_verification(result), status=code)
