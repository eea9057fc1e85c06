"""User ORM model — mirror of the identity provider's accounts."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum as SAEnum

from reservio.database import Base
from reservio.utils import utcnow


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    PARTICIPANT = "PARTICIPANT"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Unique when present; tokens without an email claim leave it empty
    email = Column(String(255), nullable=True, unique=True)
    fullname = Column(String(100), nullable=False)
    role = Column(SAEnum(Role), nullable=False, default=Role.PARTICIPANT)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
