"""Ticket data for confirmed registrations.

Only the participant who owns a CONFIRMED registration may obtain its ticket.
Dates are rendered in ``settings.DISPLAY_TIMEZONE``; turning the data into a
PDF is left to the document renderer.
"""
import logging
from datetime import datetime
from typing import Any

import pytz
from sqlalchemy.orm import Session

from reservio.config import settings
from reservio.crud import registrations as registration_store
from reservio.exceptions import NotFoundError, ForbiddenError, InvalidStateError
from reservio.models.registration import RegistrationStatus
from reservio.utils import ensure_utc

logger = logging.getLogger(__name__)


def _localize(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(pytz.timezone(settings.DISPLAY_TIMEZONE))


def format_date_range(start: datetime, end: datetime) -> str:
    """Human-readable range, collapsed to one day when start and end share it."""
    local_start = _localize(start)
    local_end = _localize(end)
    day = "%A %d %B %Y"
    if local_start.date() == local_end.date():
        return f"{local_start.strftime(day)} from {local_start:%H:%M} to {local_end:%H:%M}"
    return f"From {local_start.strftime(day)} {local_start:%H:%M} to {local_end.strftime(day)} {local_end:%H:%M}"


def get_ticket_data(db: Session, registration_id: str, user_id: str) -> dict[str, Any]:
    registration = registration_store.get(db, registration_id)
    if not registration:
        raise NotFoundError(f"Registration with ID {registration_id} not found")
    if registration.user_id != user_id:
        raise ForbiddenError("You can only download tickets for your own registrations")
    if registration.status != RegistrationStatus.CONFIRMED:
        raise InvalidStateError("Ticket is only available for confirmed registrations")

    participant = registration.user
    if participant is None:
        raise NotFoundError(f"Participant {registration.user_id} not found")

    event = registration.event
    confirmed_at = registration.confirmed_at or registration.updated_at
    logger.info("Issued ticket data for registration %s", registration_id)
    return {
        "registration_id": registration.registration_id,
        "participant_name": participant.fullname,
        "participant_email": participant.email,
        "event_title": event.title,
        "event_location": event.location,
        "event_start_date": ensure_utc(event.start_date),
        "event_end_date": ensure_utc(event.end_date),
        "confirmed_at": ensure_utc(confirmed_at),
        "date_range": format_date_range(event.start_date, event.end_date),
        "timezone": settings.DISPLAY_TIMEZONE,
    }
