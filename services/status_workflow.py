"""
Application status workflow.

Five statuses; pending is the only valid initial value. Every status is reachable
from every status (agents and landlords may reopen a decision), expressed as an
explicit all-pairs table so the permissive model is a visible decision rather
than a missing check. Every change refreshes updated_at; a move into
info-requested may carry a note for the applicant.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from services.errors import StatusChangeError
from utils.case import as_utc

logger = logging.getLogger(__name__)


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    FORWARDED = "forwarded"
    REJECTED = "rejected"
    APPROVED = "approved"
    INFO_REQUESTED = "info-requested"


INITIAL_STATUS = ApplicationStatus.PENDING

VALID_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    source: frozenset(ApplicationStatus) for source in ApplicationStatus
}

# Decisions offered on the public landlord link
LANDLORD_DECISIONS = frozenset({
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.INFO_REQUESTED,
})

STATUS_LABELS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: "Pending",
    ApplicationStatus.FORWARDED: "Forwarded",
    ApplicationStatus.REJECTED: "Rejected",
    ApplicationStatus.APPROVED: "Approved",
    ApplicationStatus.INFO_REQUESTED: "Info Requested",
}

# Tenant status page: (headline, description)
STATUS_MESSAGES: dict[ApplicationStatus, tuple[str, str]] = {
    ApplicationStatus.PENDING: (
        "Your application is currently under review.",
        "We'll notify you when there's an update on your application status.",
    ),
    ApplicationStatus.FORWARDED: (
        "Your application has been forwarded to the property owner for review.",
        "The property owner is reviewing your application and will make a decision soon.",
    ),
    ApplicationStatus.REJECTED: (
        "We're sorry, but your application has been declined.",
        "Please contact the property manager for more information.",
    ),
    ApplicationStatus.APPROVED: (
        "Congratulations! Your application has been approved.",
        "The property manager will contact you soon with next steps.",
    ),
    ApplicationStatus.INFO_REQUESTED: (
        "Additional information has been requested for your application.",
        "Please check your email for details on what additional information is needed.",
    ),
}


def parse_status(value: Any) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise StatusChangeError(
            f"Unknown status '{value}'",
            {"status": f"must be one of: {allowed}"},
        ) from None


def can_transition(source: ApplicationStatus | str, target: ApplicationStatus | str) -> bool:
    return parse_status(target) in VALID_TRANSITIONS[parse_status(source)]


def next_timestamp(previous: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """Current UTC time, nudged forward so it is strictly later than `previous`."""
    now = as_utc(now) or datetime.now(timezone.utc)
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def apply_status_change(
    record: Any,
    target: ApplicationStatus | str,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ApplicationStatus:
    """
    Move `record` (anything with status / updated_at / additional_info_request
    attributes) to `target`. Mutates the record in place and returns the previous status.

    Raises:
        StatusChangeError: unknown status, disallowed transition, or a note given
            for a status other than info-requested.
    """
    target = parse_status(target)
    source = parse_status(record.status)
    if target not in VALID_TRANSITIONS[source]:
        raise StatusChangeError(
            f"Cannot move application from '{source.value}' to '{target.value}'",
            {"status": "transition not allowed"},
        )
    if note is not None and target is not ApplicationStatus.INFO_REQUESTED:
        raise StatusChangeError(
            "A note can only accompany an info-requested status",
            {"note": "only allowed with status 'info-requested'"},
        )

    record.status = target.value
    if target is ApplicationStatus.INFO_REQUESTED and note is not None:
        record.additional_info_request = note
    record.updated_at = next_timestamp(getattr(record, "updated_at", None), now)
    logger.info(
        "Application %s status %s -> %s",
        getattr(record, "id", "?"),
        source.value,
        target.value,
    )
    return source


def status_view(status: ApplicationStatus | str) -> dict[str, str]:
    """Label and tenant-facing copy for one status."""
    status = parse_status(status)
    headline, description = STATUS_MESSAGES[status]
    return {
        "status": status.value,
        "label": STATUS_LABELS[status],
        "headline": headline,
        "description": description,
    }
