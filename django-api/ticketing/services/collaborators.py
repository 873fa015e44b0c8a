"""Interfaces of the collaborators services call out to.

Implementations live outside the services package (capabilities.py,
notifications.py, identifiers.py) so services stay framework-free.
"""

from abc import ABC, abstractmethod
from typing import Any

from ticketing.domain import Capability


class CapabilityChecker(ABC):
    """Answers whether an actor holds a named capability."""

    @abstractmethod
    def has_capability(self, actor_id: int, capability: Capability) -> bool:
        ...

    def has_any(self, actor_id: int, *capabilities: Capability) -> bool:
        return any(self.has_capability(actor_id, capability) for capability in capabilities)


class Notifier(ABC):
    """Delivers a templated message to a recipient."""

    @abstractmethod
    def send(self, recipient: str, template_kind: str, data: dict[str, Any]) -> None:
        ...


class IdGenerator(ABC):
    """Produces short opaque identifiers."""

    @abstractmethod
    def short_id(self, size: int) -> str:
        ...
