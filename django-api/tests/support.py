"""Fakes and constants shared by the test modules."""

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime

from ticketing.domain import Capability, Event, TicketType
from ticketing.services.collaborators import CapabilityChecker, IdGenerator, Notifier
from ticketing.stores.memory_store import InMemoryTicketingStore

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

ORGANIZER = 1
CUSTOMER = 2
ADMIN = 3
STAFF = 4
STRANGER = 5


class FakeCapabilities(CapabilityChecker):
    def __init__(self, grants: dict[int, set[Capability]] | None = None) -> None:
        self.grants = grants or {}

    def has_capability(self, actor_id: int, capability: Capability) -> bool:
        return capability in self.grants.get(actor_id, set())


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict]] = []
        self.fail_with: Exception | None = None

    def send(self, recipient: str, template_kind: str, data: dict) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((recipient, template_kind, data))


class ScriptedIdGenerator(IdGenerator):
    """Returns scripted ids first, then unique counter-based ones."""

    def __init__(self, scripted: list[str] | None = None) -> None:
        self.scripted = list(scripted or [])
        self._counter = itertools.count(1)

    def short_id(self, size: int) -> str:
        if self.scripted:
            return self.scripted.pop(0)
        return str(next(self._counter)).zfill(size)


@dataclass
class Catalog:
    """A published event with two ticket types, ready for booking."""

    store: InMemoryTicketingStore
    event: Event
    general: TicketType
    vip: TicketType

    def remaining(self, ticket_type: TicketType) -> int:
        return self.store.get_ticket_type(ticket_type.id).remaining.value


def run_concurrently(workers: int, task):
    """Run task(index) on workers threads started together; return results or exceptions."""
    barrier = threading.Barrier(workers)

    def attempt(index):
        barrier.wait()
        try:
            return task(index)
        except Exception as exc:
            return exc

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(attempt, range(workers)))
