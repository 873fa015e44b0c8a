"""Integration tests for the event catalog endpoints.

Run with: pytest tests/test_event_catalog.py -v
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from ticketing import models as orm
from ticketing.signals import PUBLISHED_EVENTS_KEY, event_detail_key


def create_event(creator, name: str, days: int = 10, published: bool = True) -> orm.Event:
    start = timezone.now() + timedelta(days=days)
    return orm.Event.objects.create(
        creator=creator,
        name=name,
        location="Town Hall",
        start_date=start,
        end_date=start + timedelta(hours=2),
        is_published=published,
    )


@pytest.mark.django_db
class TestEventList:
    """Tests for GET /api/events"""

    def test_list_events_returns_paginated_results(self, api_client: APIClient, organizer):
        """Given events exist, returns paginated list ordered by start date."""
        create_event(organizer, "Later", days=20)
        create_event(organizer, "Sooner", days=5)

        response = api_client.get("/api/events")

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert [event["name"] for event in response.data["results"]] == ["Sooner", "Later"]

    def test_list_events_empty_catalog(self, api_client: APIClient):
        """Given no events, returns empty list."""
        response = api_client.get("/api/events")
        assert response.status_code == 200
        assert response.data["count"] == 0
        assert response.data["results"] == []

    def test_list_events_hides_unpublished_from_visitors(self, api_client: APIClient, organizer):
        """Visitors never see drafts."""
        create_event(organizer, "Draft", published=False)
        response = api_client.get("/api/events")
        assert response.data["count"] == 0

    def test_list_events_cached_response(self, api_client: APIClient):
        """Given cached data, returns from cache."""
        cache.set(PUBLISHED_EVENTS_KEY, [{"name": "From cache"}])
        response = api_client.get("/api/events")
        assert [event["name"] for event in response.data["results"]] == ["From cache"]

    def test_list_events_populates_cache(self, api_client: APIClient, organizer):
        """An anonymous listing stores the serialized catalog."""
        create_event(organizer, "Cached")
        api_client.get("/api/events")
        assert [event["name"] for event in cache.get(PUBLISHED_EVENTS_KEY)] == ["Cached"]

    def test_organizer_sees_drafts(self, api_client: APIClient, organizer):
        """Editors see unpublished events and can filter on the flag."""
        create_event(organizer, "Draft", published=False)
        create_event(organizer, "Live")
        api_client.force_authenticate(organizer)

        everything = api_client.get("/api/events")
        drafts = api_client.get("/api/events", {"published": "false"})

        assert everything.data["count"] == 2
        assert [event["name"] for event in drafts.data["results"]] == ["Draft"]


@pytest.mark.django_db
class TestEventDetail:
    """Tests for GET /api/events/{id}"""

    def test_get_event_returns_details(self, api_client: APIClient, orm_event):
        """Given event exists, returns event details with its ticket types."""
        response = api_client.get(f"/api/events/{orm_event.pk}")

        assert response.status_code == 200
        assert response.data["name"] == "Harbour Lights Festival"
        assert [tt["name"] for tt in response.data["ticket_types"]] == ["General", "VIP"]
        assert response.data["ticket_types"][0]["price"] == "50.00"
        assert "remaining" not in response.data["ticket_types"][0]

    def test_get_event_not_found(self, api_client: APIClient):
        """Given event does not exist, returns 404."""
        response = api_client.get(f"/api/events/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.data["code"] == "EVENT_NOT_FOUND"

    def test_get_event_invalid_id_format(self, api_client: APIClient):
        """Given invalid UUID, returns 400."""
        response = api_client.get("/api/events/not-a-uuid")
        assert response.status_code == 400
        assert response.data["code"] == "INVALID_EVENT_ID"

    def test_unpublished_event_is_hidden(self, api_client: APIClient, organizer, customer):
        """Drafts are not found for visitors and customers, visible to the creator."""
        draft = create_event(organizer, "Draft", published=False)
        assert api_client.get(f"/api/events/{draft.pk}").status_code == 404
        api_client.force_authenticate(customer)
        assert api_client.get(f"/api/events/{draft.pk}").status_code == 404
        api_client.force_authenticate(organizer)
        assert api_client.get(f"/api/events/{draft.pk}").status_code == 200

    def test_get_event_cached_for_visitors(self, api_client: APIClient, orm_event):
        """Anonymous detail responses are cached under the event key."""
        api_client.get(f"/api/events/{orm_event.pk}")
        assert cache.get(event_detail_key(orm_event.pk))["name"] == orm_event.name


@pytest.mark.django_db
class TestEventManagement:
    """Tests for POST/PATCH/DELETE on events."""

    def payload(self, **overrides):
        start = timezone.now() + timedelta(days=14)
        data = {
            "name": "Jazz Night",
            "location": "Blue Room",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(hours=3)).isoformat(),
            "is_published": True,
            "ticket_types": [{"name": "Seat", "price": "30.00", "quantity": 40}],
        }
        data.update(overrides)
        return data

    def test_create_event(self, api_client: APIClient, organizer):
        """Organizers can create events with initial ticket types."""
        api_client.force_authenticate(organizer)
        response = api_client.post("/api/events", self.payload(), format="json")

        assert response.status_code == 201
        event = orm.Event.objects.get(pk=response.data["id"])
        assert event.creator == organizer
        assert list(event.ticket_types.values_list("quantity", "remaining")) == [(40, 40)]

    def test_create_event_forbidden_for_customers(self, api_client: APIClient, customer):
        """Customers lack events:create."""
        api_client.force_authenticate(customer)
        response = api_client.post("/api/events", self.payload(), format="json")
        assert response.status_code == 403
        assert response.data["code"] == "FORBIDDEN"

    def test_create_event_requires_authentication(self, api_client: APIClient):
        """Anonymous writes are refused."""
        response = api_client.post("/api/events", self.payload(), format="json")
        assert response.status_code in (401, 403)

    def test_create_event_validates_input(self, api_client: APIClient, organizer):
        """Malformed payloads are invalid input."""
        api_client.force_authenticate(organizer)
        response = api_client.post("/api/events", {"name": ""}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "INVALID_INPUT"
        assert "location" in response.data["details"]

    def test_update_event(self, api_client: APIClient, organizer, orm_event):
        """Partial updates change only the given fields."""
        api_client.force_authenticate(organizer)
        response = api_client.patch(
            f"/api/events/{orm_event.pk}", {"name": "Renamed"}, format="json"
        )
        assert response.status_code == 200
        assert response.data["name"] == "Renamed"
        assert response.data["location"] == "Pier 9"

    def test_update_event_clears_image(self, api_client: APIClient, organizer, orm_event):
        """An empty or null image_url removes the stored image."""
        api_client.force_authenticate(organizer)
        for cleared in ("", None):
            orm.Event.objects.filter(pk=orm_event.pk).update(image_url="https://img.example.com/a.png")
            response = api_client.patch(
                f"/api/events/{orm_event.pk}", {"image_url": cleared}, format="json"
            )
            assert response.status_code == 200
            assert response.data["image_url"] is None
            orm_event.refresh_from_db()
            assert orm_event.image_url is None

    def test_update_event_without_image_keeps_it(self, api_client: APIClient, organizer, orm_event):
        """Omitting image_url leaves the stored image in place."""
        orm.Event.objects.filter(pk=orm_event.pk).update(image_url="https://img.example.com/a.png")
        api_client.force_authenticate(organizer)
        response = api_client.patch(
            f"/api/events/{orm_event.pk}", {"name": "Renamed"}, format="json"
        )
        assert response.data["image_url"] == "https://img.example.com/a.png"

    def test_delete_event_with_bookings(self, api_client: APIClient, organizer, orm_event, customer):
        """Events with bookings cannot be deleted."""
        orm.Booking.objects.create(
            event=orm_event, user=customer, name="A", email="a@example.com", phone="1",
            total_amount=0, status=orm.Booking.Status.CONFIRMED,
        )
        api_client.force_authenticate(organizer)
        response = api_client.delete(f"/api/events/{orm_event.pk}")
        assert response.status_code == 409
        assert response.data["code"] == "EVENT_HAS_BOOKINGS"

    def test_delete_event(self, api_client: APIClient, organizer, orm_event):
        """Events without bookings are deleted."""
        api_client.force_authenticate(organizer)
        response = api_client.delete(f"/api/events/{orm_event.pk}")
        assert response.status_code == 204
        assert not orm.Event.objects.exists()


@pytest.mark.django_db
class TestTicketTypes:
    """Tests for /api/events/{id}/ticket-types"""

    def test_list_ticket_types_with_availability(self, api_client: APIClient, orm_event):
        """Ticket types are listed cheapest first with live counters."""
        response = api_client.get(f"/api/events/{orm_event.pk}/ticket-types")
        assert response.status_code == 200
        assert [(tt["name"], tt["remaining"]) for tt in response.data] == [
            ("General", 10),
            ("VIP", 2),
        ]

    def test_list_ticket_types_event_not_found(self, api_client: APIClient):
        """Given event does not exist, returns 404."""
        response = api_client.get(f"/api/events/{uuid.uuid4()}/ticket-types")
        assert response.status_code == 404

    def test_create_ticket_type(self, api_client: APIClient, organizer, orm_event):
        """Organizers can add ticket types."""
        api_client.force_authenticate(organizer)
        response = api_client.post(
            f"/api/events/{orm_event.pk}/ticket-types",
            {"name": "Student", "price": "15.00", "quantity": 25},
            format="json",
        )
        assert response.status_code == 201
        assert response.data["remaining"] == 25

    def test_quantity_below_sold_is_conflict(self, api_client: APIClient, organizer, orm_event):
        """Shrinking capacity below sold tickets is rejected."""
        vip = orm_event.ticket_types.get(name="VIP")
        orm.TicketType.objects.filter(pk=vip.pk).update(remaining=0)
        api_client.force_authenticate(organizer)

        response = api_client.patch(
            f"/api/events/{orm_event.pk}/ticket-types/{vip.pk}", {"quantity": 1}, format="json"
        )

        assert response.status_code == 409
        assert response.data["code"] == "CAPACITY_BELOW_SOLD"
        assert response.data["details"]["sold"] == 2

    def test_update_ticket_type_quantity(self, api_client: APIClient, organizer, orm_event):
        """Raising capacity raises remaining by the same amount."""
        general = orm_event.ticket_types.get(name="General")
        api_client.force_authenticate(organizer)
        response = api_client.patch(
            f"/api/events/{orm_event.pk}/ticket-types/{general.pk}",
            {"quantity": 15, "price": "45.00"},
            format="json",
        )
        assert response.status_code == 200
        assert (response.data["quantity"], response.data["remaining"]) == (15, 15)
        assert response.data["price"] == "45.00"

    def test_delete_ticket_type(self, api_client: APIClient, organizer, orm_event):
        """Unsold ticket types can be removed."""
        vip = orm_event.ticket_types.get(name="VIP")
        api_client.force_authenticate(organizer)
        response = api_client.delete(f"/api/events/{orm_event.pk}/ticket-types/{vip.pk}")
        assert response.status_code == 204
        assert not orm.TicketType.objects.filter(pk=vip.pk).exists()

    def test_get_ticket_type(self, api_client: APIClient, orm_event):
        """A single ticket type is served with its live counters."""
        vip = orm_event.ticket_types.get(name="VIP")
        response = api_client.get(f"/api/events/{orm_event.pk}/ticket-types/{vip.pk}")
        assert response.status_code == 200
        assert response.data["name"] == "VIP"
        assert (response.data["quantity"], response.data["remaining"]) == (2, 2)
        assert response.data["event_id"] == str(orm_event.pk)

    def test_get_ticket_type_of_other_event(self, api_client: APIClient, organizer, orm_event):
        """A ticket type is only found under the event that owns it."""
        other = create_event(organizer, "Other")
        vip = orm_event.ticket_types.get(name="VIP")
        response = api_client.get(f"/api/events/{other.pk}/ticket-types/{vip.pk}")
        assert response.status_code == 404
        assert response.data["code"] == "TICKET_TYPE_NOT_FOUND"

    def test_get_ticket_type_malformed_id(self, api_client: APIClient, orm_event):
        """A malformed ticket type id is reported as not found."""
        response = api_client.get(f"/api/events/{orm_event.pk}/ticket-types/not-a-uuid")
        assert response.status_code == 404

    def test_get_ticket_type_of_draft_is_hidden(self, api_client: APIClient, organizer):
        """Ticket types of an unpublished event follow the event's visibility."""
        draft = create_event(organizer, "Draft", published=False)
        general = orm.TicketType.objects.create(
            event=draft, name="General", price=Decimal("10.00"), quantity=5, remaining=5
        )
        url = f"/api/events/{draft.pk}/ticket-types/{general.pk}"
        assert api_client.get(url).status_code == 404
        api_client.force_authenticate(organizer)
        assert api_client.get(url).status_code == 200

    def test_ticket_type_changes_require_authentication(self, api_client: APIClient, orm_event):
        """Reading is public; editing and deleting are not."""
        vip = orm_event.ticket_types.get(name="VIP")
        url = f"/api/events/{orm_event.pk}/ticket-types/{vip.pk}"
        assert api_client.patch(url, {"quantity": 5}, format="json").status_code in (401, 403)
        assert api_client.delete(url).status_code in (401, 403)
        assert orm.TicketType.objects.filter(pk=vip.pk).exists()
