"""Event ORM model and its lifecycle table."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, ForeignKey, CheckConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship

from reservio.database import Base
from reservio.utils import utcnow


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CANCELLED = "CANCELLED"


# Nothing re-enters DRAFT and CANCELLED is terminal.
EVENT_TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.DRAFT: frozenset({EventStatus.PUBLISHED, EventStatus.CANCELLED}),
    EventStatus.PUBLISHED: frozenset({EventStatus.CANCELLED}),
    EventStatus.CANCELLED: frozenset(),
}


def can_transition(current: EventStatus, target: EventStatus) -> bool:
    return target in EVENT_TRANSITIONS[current]


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_events_dates_ordered"),
        CheckConstraint("capacity > 0", name="ck_events_capacity_positive"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(200), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.DRAFT, index=True)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")
