"""Django signals for cache invalidation.

Inventory counters change through queryset updates, which send no signals,
so cached payloads must not include remaining counts. Capacity edits are
queryset updates too; the store calls invalidate_event_detail for them.
"""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from ticketing.models import Event, TicketType

PUBLISHED_EVENTS_KEY = "events:published"


def event_detail_key(event_id) -> str:
    return f"events:{event_id}"


def invalidate_event_detail(event_id) -> None:
    cache.delete(event_detail_key(event_id))


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate caches when an event is saved or deleted."""
    cache.delete_many([PUBLISHED_EVENTS_KEY, event_detail_key(instance.pk)])


@receiver([post_save, post_delete], sender=TicketType)
def invalidate_ticket_type_cache(sender, instance, **kwargs):
    """Invalidate the owning event's cached detail when a ticket type changes."""
    invalidate_event_detail(instance.event_id)
