"""Notification dispatch.

Confirmation mails carry a signed payload binding booking, event and user.
It is produced with django.core.signing so the door staff tooling (or the
/api/bookings/payload endpoint) can verify it later without a database hit.
"""

import logging
from concurrent.futures import Executor, Future
from typing import Any

from django.conf import settings
from django.core import signing
from django.core.mail import send_mail

from ticketing.services.booking_workflow import BOOKING_CONFIRMATION
from ticketing.services.collaborators import Notifier

logger = logging.getLogger(__name__)

PAYLOAD_SALT = "ticketing.booking-payload"


def encode_booking_payload(payload: dict[str, str]) -> str:
    return signing.dumps(payload, salt=PAYLOAD_SALT, compress=True)


def decode_booking_payload(token: str) -> dict[str, str]:
    """Return the payload bound into token.

    Raises:
        django.core.signing.BadSignature: If the token was tampered with.
    """
    return signing.loads(token, salt=PAYLOAD_SALT)


def _render_booking_confirmation(data: dict[str, Any]) -> tuple[str, str]:
    lines = [
        f"Hi {data['attendee_name']},",
        "",
        f"Your booking for {data['event_name']} is confirmed.",
        f"When: {data['event_date']}",
        f"Where: {data['event_location']}",
        "",
        "Tickets:",
    ]
    lines.extend(f"  {item['quantity']} x {item['name']}" for item in data["tickets"])
    lines.extend(
        [
            "",
            f"View your tickets: {data['booking_url']}",
            "",
            "Entry code:",
            encode_booking_payload(data["payload"]),
        ]
    )
    return f"Your tickets for {data['event_name']}", "\n".join(lines)


TEMPLATES = {
    BOOKING_CONFIRMATION: _render_booking_confirmation,
}


class EmailNotifier(Notifier):
    """Renders plain-text mail and sends it through Django's mail backend."""

    def send(self, recipient: str, template_kind: str, data: dict[str, Any]) -> None:
        subject, body = TEMPLATES[template_kind](data)
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
        logger.info("Sent %s notification to %s", template_kind, recipient)


class BackgroundNotifier(Notifier):
    """Hands notifications to an executor and returns immediately.

    Failures are logged; the caller never sees them.
    """

    def __init__(self, inner: Notifier, executor: Executor) -> None:
        self._inner = inner
        self._executor = executor

    def send(self, recipient: str, template_kind: str, data: dict[str, Any]) -> None:
        future = self._executor.submit(self._inner.send, recipient, template_kind, data)
        future.add_done_callback(lambda done: self._report(done, template_kind, recipient))

    @staticmethod
    def _report(future: Future, template_kind: str, recipient: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Failed to send %s notification to %s",
                template_kind,
                recipient,
                exc_info=exc,
            )
