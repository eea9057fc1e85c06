"""Event store accessor — plain reads and writes over Event rows.

No business rules live here; the lifecycle manager decides what may be
written. ``for_update`` reads take a row lock on backends that support it
(PostgreSQL) and are a plain SELECT on SQLite.
"""
from typing import Optional

from sqlalchemy.orm import Session

from reservio.models.event import Event, EventStatus


def get(db: Session, event_id: str, *, for_update: bool = False) -> Optional[Event]:
    query = db.query(Event).filter(Event.event_id == event_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def list_by_status(db: Session, status: Optional[EventStatus] = None) -> list[Event]:
    """Events ordered by start date, optionally restricted to one status."""
    query = db.query(Event)
    if status is not None:
        query = query.filter(Event.status == status)
    return query.order_by(Event.start_date.asc(), Event.event_id.asc()).all()


def add(db: Session, event: Event) -> Event:
    db.add(event)
    db.flush()
    return event


def delete(db: Session, event: Event) -> None:
    db.delete(event)
    db.flush()
