"""Capability checks backed by django.contrib.auth permissions."""

from django.contrib.auth import get_user_model

from ticketing.domain import Capability
from ticketing.services.collaborators import CapabilityChecker

PERMISSIONS = {
    Capability.CREATE_EVENTS: "ticketing.create_events",
    Capability.EDIT_EVENTS: "ticketing.edit_events",
    Capability.DELETE_EVENTS: "ticketing.delete_events",
    Capability.ADMIN: "ticketing.admin_access",
}


class DjangoCapabilityChecker(CapabilityChecker):
    """Maps capabilities onto permissions declared on the Event model.

    Superusers hold every capability; inactive or unknown users hold none.
    """

    def has_capability(self, actor_id: int, capability: Capability) -> bool:
        user = get_user_model().objects.filter(pk=actor_id).first()
        if user is None:
            return False
        return user.has_perm(PERMISSIONS[capability])
