"""User store accessor — the local mirror of identity-provider accounts."""
from typing import Optional

from sqlalchemy.orm import Session

from reservio.models.user import User


def get(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.user_id == user_id).first()


def add(db: Session, user: User) -> User:
    db.add(user)
    db.flush()
    return user
