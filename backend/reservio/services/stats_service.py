"""Admin aggregation view — read-only rollups over events and registrations."""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from reservio.config import settings
from reservio.models.event import Event, EventStatus
from reservio.models.registration import Registration, RegistrationStatus
from reservio.utils import utcnow

logger = logging.getLogger(__name__)


def _round_half_up(value: float, places: int = 0) -> float:
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def _counts_by_status(db: Session, column) -> dict[Any, int]:
    return dict(db.query(column, func.count()).group_by(column).all())


def get_admin_stats(db: Session) -> dict[str, Any]:
    """Event and registration counts, fill rate and the most-confirmed events.

    Fill rate and top events only consider PUBLISHED events; top events are
    ordered by confirmed seats, then by event id.
    """
    event_counts = _counts_by_status(db, Event.status)
    upcoming = (
        db.query(func.count(Event.event_id))
        .filter(Event.status == EventStatus.PUBLISHED, Event.start_date >= utcnow())
        .scalar()
    ) or 0
    registration_counts = _counts_by_status(db, Registration.status)

    confirmed_count = func.coalesce(
        func.sum(case((Registration.status == RegistrationStatus.CONFIRMED, 1), else_=0)), 0
    )
    rows = (
        db.query(Event.event_id, Event.title, Event.capacity, confirmed_count.label("confirmed"))
        .outerjoin(Registration, Registration.event_id == Event.event_id)
        .filter(Event.status == EventStatus.PUBLISHED)
        .group_by(Event.event_id, Event.title, Event.capacity)
        .all()
    )

    total_capacity = sum(row.capacity for row in rows)
    total_confirmed = sum(int(row.confirmed) for row in rows)
    average = (total_confirmed / total_capacity) * 100 if total_capacity > 0 else 0

    ranked = sorted(rows, key=lambda row: (-int(row.confirmed), row.event_id))
    top_events = [
        {
            "event_id": row.event_id,
            "title": row.title,
            "capacity": row.capacity,
            "confirmed_count": int(row.confirmed),
            "fill_percentage": int(_round_half_up(int(row.confirmed) / row.capacity * 100))
            if row.capacity > 0 else 0,
        }
        for row in ranked[: settings.TOP_EVENTS_LIMIT]
    ]

    stats = {
        "events": {
            "total": sum(event_counts.values()),
            "upcoming": upcoming,
            "published": event_counts.get(EventStatus.PUBLISHED, 0),
            "draft": event_counts.get(EventStatus.DRAFT, 0),
            "cancelled": event_counts.get(EventStatus.CANCELLED, 0),
        },
        "registrations": {
            "total": sum(registration_counts.values()),
            "pending": registration_counts.get(RegistrationStatus.PENDING, 0),
            "confirmed": registration_counts.get(RegistrationStatus.CONFIRMED, 0),
            "cancelled": registration_counts.get(RegistrationStatus.CANCELLED, 0),
        },
        "fill_rate": {
            "average_percentage": _round_half_up(average, 1),
            "total_capacity": total_capacity,
            "total_confirmed": total_confirmed,
        },
        "top_events": top_events,
    }
    logger.debug("Computed admin stats over %d published events", len(rows))
    return stats
