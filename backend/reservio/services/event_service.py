"""Event lifecycle manager — enforces the event state machine.

Responsibilities:
- Field validity: end after start, start not in the past on creation,
  positive capacity
- Edits only while DRAFT, validated against the merged dates
- Transitions DRAFT -> PUBLISHED / CANCELLED and PUBLISHED -> CANCELLED
- Hard delete only from DRAFT or CANCELLED
"""
import logging
from datetime import datetime
from typing import Optional, Any

from sqlalchemy.orm import Session

from reservio.crud import events as event_store
from reservio.exceptions import NotFoundError, ValidationError, InvalidStateError
from reservio.models.event import Event, EventStatus, can_transition
from reservio.services.locks import event_transaction
from reservio.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

# Request field name -> model attribute
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "location": "location",
    "start_date": "start_date",
    "end_date": "end_date",
    "capacity": "capacity",
    "metadata": "extra_metadata",
}


def _validate_dates(start_date: datetime, end_date: datetime) -> None:
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")


def _validate_capacity(capacity: int) -> None:
    if capacity is None or capacity <= 0:
        raise ValidationError("Capacity must be a positive integer")


def _transition(event: Event, target: EventStatus) -> None:
    """Move ``event`` to ``target`` or refuse if the lifecycle forbids it."""
    if not can_transition(event.status, target):
        raise InvalidStateError(
            f"Cannot move event from {event.status.value} to {target.value}"
        )
    event.status = target


def _load(db: Session, event_id: str, *, for_update: bool = False) -> Event:
    event = event_store.get(db, event_id, for_update=for_update)
    if not event:
        raise NotFoundError(f"Event with ID {event_id} not found")
    return event


def create_event(
    db: Session,
    title: str,
    description: str,
    location: str,
    start_date: datetime,
    end_date: datetime,
    capacity: int,
    admin_id: str,
    metadata: Optional[dict[str, Any]] = None,
) -> Event:
    """Create an event in DRAFT owned by ``admin_id``."""
    start_date = ensure_utc(start_date)
    end_date = ensure_utc(end_date)
    _validate_dates(start_date, end_date)
    if start_date < utcnow():
        raise ValidationError("Start date cannot be in the past")
    _validate_capacity(capacity)

    event = Event(
        title=title,
        description=description,
        location=location,
        start_date=start_date,
        end_date=end_date,
        capacity=capacity,
        extra_metadata=metadata,
        status=EventStatus.DRAFT,
        created_by=admin_id,
    )
    try:
        event_store.add(db, event)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(event)
    logger.info("Created event '%s' (%s) by admin %s", title, event.event_id, admin_id)
    return event


def get_event(db: Session, event_id: str) -> Event:
    return _load(db, event_id)


def list_events(db: Session, status: Optional[EventStatus] = None) -> list[Event]:
    return event_store.list_by_status(db, status)


def list_published(db: Session) -> list[Event]:
    """Published events only, whoever is asking."""
    return event_store.list_by_status(db, EventStatus.PUBLISHED)


def update_event(db: Session, event_id: str, updates: dict[str, Any]) -> Event:
    """Apply a partial update to a DRAFT event.

    Only keys present in ``updates`` are written; a null leaves the stored
    value alone, except for ``metadata`` where it clears the bag. Dates are
    checked against the merge of stored and incoming values.
    """
    unknown = set(updates) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown event fields: {', '.join(sorted(unknown))}")
    changes = {
        field: value for field, value in updates.items()
        if value is not None or field == "metadata"
    }

    with event_transaction(db, event_id):
        event = _load(db, event_id, for_update=True)
        if event.status != EventStatus.DRAFT:
            raise InvalidStateError("Cannot edit a published or cancelled event")

        if "start_date" in changes:
            changes["start_date"] = ensure_utc(changes["start_date"])
        if "end_date" in changes:
            changes["end_date"] = ensure_utc(changes["end_date"])
        start_date = changes.get("start_date") or ensure_utc(event.start_date)
        end_date = changes.get("end_date") or ensure_utc(event.end_date)
        _validate_dates(start_date, end_date)
        if "capacity" in changes:
            _validate_capacity(changes["capacity"])

        for field, value in changes.items():
            setattr(event, UPDATABLE_FIELDS[field], value)

    db.refresh(event)
    logger.info("Updated event %s (fields: %s)", event_id, ", ".join(sorted(changes)))
    return event


def publish_event(db: Session, event_id: str) -> Event:
    """DRAFT -> PUBLISHED, only for events that have not started yet."""
    with event_transaction(db, event_id):
        event = _load(db, event_id, for_update=True)
        if event.status != EventStatus.DRAFT:
            raise InvalidStateError("Only draft events can be published")
        if ensure_utc(event.start_date) < utcnow():
            raise InvalidStateError("Cannot publish an event with a past start date")
        _transition(event, EventStatus.PUBLISHED)

    db.refresh(event)
    logger.info("Published event %s", event_id)
    return event


def cancel_event(db: Session, event_id: str) -> Event:
    """DRAFT or PUBLISHED -> CANCELLED. Existing registrations are left as they are."""
    with event_transaction(db, event_id):
        event = _load(db, event_id, for_update=True)
        if event.status == EventStatus.CANCELLED:
            raise InvalidStateError("Event is already cancelled")
        _transition(event, EventStatus.CANCELLED)

    db.refresh(event)
    logger.info("Cancelled event %s", event_id)
    return event


def delete_event(db: Session, event_id: str) -> None:
    """Hard-delete a DRAFT or CANCELLED event together with its registrations."""
    with event_transaction(db, event_id):
        event = _load(db, event_id, for_update=True)
        if event.status == EventStatus.PUBLISHED:
            raise InvalidStateError("Cannot delete a published event. Cancel it first.")
        event_store.delete(db, event)

    logger.info("Deleted event %s", event_id)
