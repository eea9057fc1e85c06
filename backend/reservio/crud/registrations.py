"""Registration store accessor — lookups and counts used by the capacity engine."""
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from reservio.models.registration import Registration, RegistrationStatus


def get(db: Session, registration_id: str, *, for_update: bool = False) -> Optional[Registration]:
    query = db.query(Registration).filter(Registration.registration_id == registration_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def get_by_user_and_event(db: Session, *, user_id: str, event_id: str) -> Optional[Registration]:
    """Return the single row for a (user, event) pair, whatever its status."""
    return (
        db.query(Registration)
        .filter(Registration.user_id == user_id, Registration.event_id == event_id)
        .populate_existing()
        .first()
    )


def count_by_status(db: Session, *, event_id: str, statuses: Sequence[RegistrationStatus]) -> int:
    return (
        db.query(func.count(Registration.registration_id))
        .filter(Registration.event_id == event_id, Registration.status.in_(statuses))
        .scalar()
    ) or 0


def list_for_user(db: Session, user_id: str) -> list[Registration]:
    return (
        db.query(Registration)
        .options(joinedload(Registration.event))
        .filter(Registration.user_id == user_id)
        .order_by(Registration.created_at.desc())
        .all()
    )


def list_for_event(db: Session, event_id: str) -> list[Registration]:
    return (
        db.query(Registration)
        .options(joinedload(Registration.user))
        .filter(Registration.event_id == event_id)
        .order_by(Registration.created_at.desc())
        .all()
    )


def add(db: Session, registration: Registration) -> Registration:
    db.add(registration)
    db.flush()
    return registration
