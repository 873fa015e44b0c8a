"""Serializers for request validation and domain model responses.

Input serializers check request shape only; business rules stay in services.
Output serializers read domain dataclasses.
"""

from rest_framework import serializers

from ticketing.domain import (
    Attendee,
    BookingItem,
    BookingRequest,
    ById,
    ByNumber,
    EventChanges,
    EventDraft,
    EventId,
    Money,
    TicketId,
    TicketTypeChanges,
    TicketTypeDraft,
    TicketTypeId,
    VerificationMode,
)

# Input


class TicketTypeInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=0)

    def to_draft(self) -> TicketTypeDraft:
        data = self.validated_data
        return TicketTypeDraft(
            name=data["name"],
            price=Money(data["price"]),
            quantity=data["quantity"],
            description=data.get("description", ""),
        )

    def to_changes(self) -> TicketTypeChanges:
        # Only valid with partial=True, where DRF skips field defaults.
        data = self.validated_data
        price = data.get("price")
        return TicketTypeChanges(
            name=data.get("name"),
            description=data.get("description"),
            price=Money(price) if price is not None else None,
            quantity=data.get("quantity"),
        )


class EventInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    location = serializers.CharField(max_length=255)
    image_url = serializers.URLField(
        max_length=500, required=False, allow_null=True, allow_blank=True
    )
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    is_published = serializers.BooleanField(required=False, default=False)
    ticket_types = TicketTypeInputSerializer(many=True, required=False)

    def to_draft(self) -> EventDraft:
        data = self.validated_data
        return EventDraft(
            name=data["name"],
            location=data["location"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            description=data.get("description", ""),
            image_url=data.get("image_url") or None,
            is_published=data.get("is_published", False),
            ticket_types=tuple(
                TicketTypeDraft(
                    name=item["name"],
                    price=Money(item["price"]),
                    quantity=item["quantity"],
                    description=item.get("description", ""),
                )
                for item in data.get("ticket_types", [])
            ),
        )

    def to_changes(self) -> EventChanges:
        # Only valid with partial=True, where DRF skips field defaults.
        data = self.validated_data
        image_url = data.get("image_url")
        if "image_url" in data and not image_url:
            image_url = ""
        return EventChanges(
            name=data.get("name"),
            description=data.get("description"),
            location=data.get("location"),
            image_url=image_url,
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            is_published=data.get("is_published"),
        )


class BookingItemSerializer(serializers.Serializer):
    ticket_type_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class BookingInputSerializer(serializers.Serializer):
    event_id = serializers.UUIDField()
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=50)
    tickets = BookingItemSerializer(many=True, allow_empty=False)

    def to_request(self, user_id: int) -> BookingRequest:
        data = self.validated_data
        return BookingRequest(
            event_id=EventId(data["event_id"]),
            user_id=user_id,
            attendee=Attendee(name=data["name"], email=data["email"], phone=data["phone"]),
            items=tuple(
                BookingItem(
                    ticket_type_id=TicketTypeId(item["ticket_type_id"]),
                    quantity=item["quantity"],
                )
                for item in data["tickets"]
            ),
        )


class PayloadInputSerializer(serializers.Serializer):
    token = serializers.CharField()


class VerifyInputSerializer(serializers.Serializer):
    ticket_id = serializers.UUIDField(required=False)
    ticket_number = serializers.CharField(required=False, max_length=32)
    event_id = serializers.UUIDField(required=False)
    mode = serializers.ChoiceField(
        choices=[mode.value for mode in VerificationMode],
        required=False,
        default=VerificationMode.COMMIT.value,
    )

    def validate(self, attrs):
        if "ticket_id" not in attrs and not attrs.get("ticket_number"):
            raise serializers.ValidationError("Ticket ID or ticket number is required")
        return attrs

    def lookup(self) -> ById | ByNumber:
        data = self.validated_data
        if "ticket_id" in data:
            return ById(TicketId(data["ticket_id"]))
        return ByNumber(data["ticket_number"])

    def target_event_id(self) -> EventId | None:
        value = self.validated_data.get("event_id")
        return EventId(value) if value else None

    def verification_mode(self) -> VerificationMode:
        return VerificationMode(self.validated_data["mode"])


# Output


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model."""

    id = serializers.CharField()
    creator_id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    location = serializers.CharField()
    image_url = serializers.CharField(allow_null=True)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    is_published = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class CatalogTicketTypeSerializer(serializers.Serializer):
    """Ticket type as shown in the cached event detail: no live counters."""

    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    price = serializers.CharField()
    quantity = serializers.IntegerField(source="quantity.value")


class TicketTypeSerializer(CatalogTicketTypeSerializer):
    """Serializer for TicketType domain model."""

    event_id = serializers.CharField()
    remaining = serializers.IntegerField(source="remaining.value")
    sold = serializers.IntegerField()
    is_sold_out = serializers.BooleanField()


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking domain model."""

    id = serializers.CharField()
    event_id = serializers.CharField()
    user_id = serializers.IntegerField()
    name = serializers.CharField(source="attendee.name")
    email = serializers.CharField(source="attendee.email")
    phone = serializers.CharField(source="attendee.phone")
    total_amount = serializers.CharField()
    status = serializers.CharField(source="status.value")
    payment_reference = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class TicketSerializer(serializers.Serializer):
    id = serializers.CharField()
    ticket_number = serializers.CharField()
    ticket_type_id = serializers.CharField()
    ticket_type_name = serializers.SerializerMethodField()
    used_at = serializers.DateTimeField(allow_null=True)

    def get_ticket_type_name(self, ticket) -> str:
        return self.context["details"].ticket_type_name(ticket.ticket_type_id)


class TicketDetailsSerializer(serializers.Serializer):
    """A ticket with the booking, event and ticket type it belongs to."""

    id = serializers.CharField(source="ticket.id")
    ticket_number = serializers.CharField(source="ticket.ticket_number")
    used_at = serializers.DateTimeField(source="ticket.used_at", allow_null=True)
    created_at = serializers.DateTimeField(source="ticket.created_at")
    ticket_type = CatalogTicketTypeSerializer()
    booking = BookingSerializer()
    event = EventSerializer()


def serialize_booking_details(details) -> dict:
    data = dict(BookingSerializer(details.booking).data)
    data["event"] = EventSerializer(details.event).data if details.event else None
    data["tickets"] = TicketSerializer(
        details.tickets, many=True, context={"details": details}
    ).data
    return data


def serialize_verification(result) -> dict:
    data = {
        "valid": result.valid,
        "message": result.message,
        "failure": result.failure.value if result.failure else None,
    }
    details = result.details
    if details is not None:
        data["ticket"] = {
            "id": str(details.ticket.id),
            "ticket_number": details.ticket.ticket_number,
            "ticket_type": details.ticket_type.name,
            "attendee": details.booking.attendee.name,
            "event": details.event.name,
            "event_date": details.event.start_date.isoformat(),
            "status": details.booking.status.value,
            "used_at": result.used_at.isoformat() if result.used_at else None,
        }
    return data
