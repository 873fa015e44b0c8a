"""Types for the door-scan verification state machine."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ticketing.domain.models import BookingStatus, TicketDetails
from ticketing.domain.value_objects import TicketId


@dataclass(frozen=True)
class ById:
    """Look a ticket up by its id."""

    ticket_id: TicketId


@dataclass(frozen=True)
class ByNumber:
    """Look a ticket up by its printed ticket number."""

    ticket_number: str


TicketLookup = ById | ByNumber


class VerificationMode(Enum):
    COMMIT = "commit"
    DRY_RUN = "dry_run"


class VerificationFailure(Enum):
    """Why a presented ticket was refused. Checked in declaration order."""

    NOT_FOUND = "NOT_FOUND"
    WRONG_BOOKING_STATUS = "WRONG_BOOKING_STATUS"
    EVENT_PASSED = "EVENT_PASSED"
    ALREADY_USED = "ALREADY_USED"


_FAILURE_MESSAGES = {
    VerificationFailure.NOT_FOUND: "Ticket not found",
    VerificationFailure.WRONG_BOOKING_STATUS: "Ticket is not valid. Booking status: {status}",
    VerificationFailure.EVENT_PASSED: "Event has already passed",
    VerificationFailure.ALREADY_USED: "Ticket has already been used",
}


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a scan.

    details is None only when the ticket could not be found. For
    ALREADY_USED, used_at echoes the earlier admission.
    """

    valid: bool
    failure: VerificationFailure | None
    details: TicketDetails | None
    used_at: datetime | None
    committed: bool = False

    @classmethod
    def admitted(
        cls, details: TicketDetails, used_at: datetime | None, committed: bool
    ) -> "VerificationResult":
        return cls(
            valid=True,
            failure=None,
            details=details,
            used_at=used_at,
            committed=committed,
        )

    @classmethod
    def refused(
        cls,
        failure: VerificationFailure,
        details: TicketDetails | None = None,
        used_at: datetime | None = None,
    ) -> "VerificationResult":
        return cls(valid=False, failure=failure, details=details, used_at=used_at)

    @property
    def booking_status(self) -> BookingStatus | None:
        if self.details is None:
            return None
        return self.details.booking.status

    @property
    def message(self) -> str:
        if self.valid:
            return "Ticket validated successfully" if self.committed else "Ticket is valid"
        status = self.booking_status.value if self.booking_status else ""
        return _FAILURE_MESSAGES[self.failure].format(status=status)
