"""Registration capacity engine.

Every operation that reads the seat count and then writes runs inside the
event's critical section (``event_transaction``): the event row is locked,
the count is taken, the write is flushed and committed before the next
caller for the same event may look at the count. A failure anywhere in the
sequence rolls the whole action back.

Capacity rules:
- a new PENDING request needs ``count(PENDING | CONFIRMED) < capacity``
- a promotion to CONFIRMED needs ``count(CONFIRMED) < capacity``
- CANCELLED rows never count; re-registering reuses the cancelled row
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reservio.crud import events as event_store
from reservio.crud import registrations as registration_store
from reservio.exceptions import NotFoundError, InvalidStateError, ConflictError, ForbiddenError
from reservio.models.event import Event, EventStatus
from reservio.models.registration import (
    ACTIVE_STATUSES,
    Registration,
    RegistrationStatus,
    can_transition,
)
from reservio.services.locks import event_transaction
from reservio.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _transition(registration: Registration, target: RegistrationStatus) -> None:
    if not can_transition(registration.status, target):
        raise InvalidStateError(
            f"Cannot move registration from {registration.status.value} to {target.value}"
        )
    registration.status = target
    registration.confirmed_at = utcnow() if target == RegistrationStatus.CONFIRMED else None


def _load_event(db: Session, event_id: str, *, for_update: bool = False) -> Event:
    event = event_store.get(db, event_id, for_update=for_update)
    if not event:
        raise NotFoundError(f"Event with ID {event_id} not found")
    return event


def _load_registration(db: Session, registration_id: str, *, for_update: bool = False) -> Registration:
    registration = registration_store.get(db, registration_id, for_update=for_update)
    if not registration:
        raise NotFoundError("Registration not found")
    return registration


def _is_duplicate_registration(exc: IntegrityError) -> bool:
    # PostgreSQL names the constraint; SQLite lists its columns.
    message = str(exc.orig)
    return (
        "uq_registrations_user_event" in message
        or "registrations.user_id, registrations.event_id" in message
    )


def _ensure_seat_available(db: Session, event: Event) -> None:
    active = registration_store.count_by_status(db, event_id=event.event_id, statuses=ACTIVE_STATUSES)
    if active >= event.capacity:
        logger.info("Event %s is fully booked (%d/%d)", event.event_id, active, event.capacity)
        raise InvalidStateError("This event is fully booked. No seats remaining.")


def create_registration(db: Session, event_id: str, user_id: str) -> Registration:
    """Request a seat for ``user_id`` on a published, upcoming event."""
    with event_transaction(db, event_id):
        event = _load_event(db, event_id, for_update=True)

        if event.status != EventStatus.PUBLISHED:
            if event.status == EventStatus.CANCELLED:
                raise InvalidStateError("Cannot register for a cancelled event")
            raise InvalidStateError("Cannot register for an event that is not published")

        if ensure_utc(event.end_date) < utcnow():
            raise InvalidStateError("Cannot register for a past event")

        existing = registration_store.get_by_user_and_event(db, user_id=user_id, event_id=event_id)
        if existing is not None:
            if existing.status == RegistrationStatus.PENDING:
                raise ConflictError("You already have a pending reservation for this event")
            if existing.status == RegistrationStatus.CONFIRMED:
                raise ConflictError("You already have a confirmed reservation for this event")
            # Reactivating a cancelled row takes a seat like a fresh request does.
            _ensure_seat_available(db, event)
            _transition(existing, RegistrationStatus.PENDING)
            registration = existing
            db.flush()
        else:
            _ensure_seat_available(db, event)
            registration = Registration(
                user_id=user_id,
                event_id=event_id,
                status=RegistrationStatus.PENDING,
            )
            try:
                registration_store.add(db, registration)
            except IntegrityError as exc:
                if not _is_duplicate_registration(exc):
                    raise
                raise ConflictError("You already have a reservation for this event")

    db.refresh(registration)
    logger.info("User %s requested a seat on event %s (registration %s)", user_id, event_id, registration.registration_id)
    return registration


def cancel_own_registration(db: Session, registration_id: str, user_id: str) -> Registration:
    """Participant withdraws their own PENDING or CONFIRMED registration."""
    registration = _load_registration(db, registration_id)
    with event_transaction(db, registration.event_id):
        registration = _load_registration(db, registration_id, for_update=True)
        if registration.user_id != user_id:
            raise ForbiddenError("You can only cancel your own reservations")
        if registration.status == RegistrationStatus.CANCELLED:
            raise InvalidStateError("This reservation is already cancelled")
        _transition(registration, RegistrationStatus.CANCELLED)

    db.refresh(registration)
    logger.info("User %s cancelled registration %s", user_id, registration_id)
    return registration


def confirm_registration(db: Session, registration_id: str) -> Registration:
    """Admin promotes a PENDING registration, rechecking confirmed seats."""
    registration = _load_registration(db, registration_id)
    with event_transaction(db, registration.event_id):
        event = _load_event(db, registration.event_id, for_update=True)
        registration = _load_registration(db, registration_id, for_update=True)

        if registration.status == RegistrationStatus.CONFIRMED:
            raise InvalidStateError("Registration is already confirmed")
        if registration.status == RegistrationStatus.CANCELLED:
            raise InvalidStateError("Cannot confirm a cancelled registration")

        confirmed = registration_store.count_by_status(
            db, event_id=event.event_id, statuses=(RegistrationStatus.CONFIRMED,)
        )
        if confirmed >= event.capacity:
            logger.info("Refused confirmation of %s: event %s at capacity (%d)", registration_id, event.event_id, confirmed)
            raise InvalidStateError("Event is at full capacity")

        _transition(registration, RegistrationStatus.CONFIRMED)

    db.refresh(registration)
    logger.info("Confirmed registration %s", registration_id)
    return registration


def reject_registration(db: Session, registration_id: str) -> Registration:
    """Admin cancels a PENDING or CONFIRMED registration, freeing its seat."""
    registration = _load_registration(db, registration_id)
    with event_transaction(db, registration.event_id):
        registration = _load_registration(db, registration_id, for_update=True)
        if registration.status == RegistrationStatus.CANCELLED:
            raise InvalidStateError("This registration is already cancelled")
        _transition(registration, RegistrationStatus.CANCELLED)

    db.refresh(registration)
    logger.info("Rejected registration %s", registration_id)
    return registration


def find_by_user(db: Session, user_id: str) -> list[Registration]:
    return registration_store.list_for_user(db, user_id)


def find_by_event(db: Session, event_id: str) -> list[Registration]:
    _load_event(db, event_id)
    return registration_store.list_for_event(db, event_id)
