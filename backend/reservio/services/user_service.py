"""Keeps the ``users`` table in step with the identities presented in tokens.

Accounts live with the identity provider. The first time a subject calls
the API its row is created here, so events and registrations always have a
user to point at; later calls refresh role, email and name from the claims.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reservio.crud import users as user_store
from reservio.exceptions import ConflictError
from reservio.models.user import Role, User

logger = logging.getLogger(__name__)

FULLNAME_MAX_LENGTH = 100


def _display_name(user_id: str, email: Optional[str], name: Optional[str]) -> str:
    return (name or email or user_id)[:FULLNAME_MAX_LENGTH]


def sync_from_token(
    db: Session,
    user_id: str,
    role: Role,
    email: Optional[str] = None,
    name: Optional[str] = None,
) -> User:
    """Return the mirror row for ``user_id``, creating or refreshing it."""
    user = user_store.get(db, user_id)
    if user is None:
        user = User(user_id=user_id, role=role, email=email, fullname=_display_name(user_id, email, name))
        try:
            user_store.add(db, user)
            db.commit()
        except IntegrityError:
            db.rollback()
            # A concurrent request for the same subject may have won the insert.
            user = user_store.get(db, user_id)
            if user is None:
                raise ConflictError("An account with this email already exists")
            return user
        logger.info("Mirrored new %s account %s", role.value, user_id)
        return user

    changes = {"role": role, "email": email, "fullname": name[:FULLNAME_MAX_LENGTH] if name else None}
    changed = False
    for field, value in changes.items():
        if value is not None and getattr(user, field) != value:
            setattr(user, field, value)
            changed = True
    if changed:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("An account with this email already exists")
        logger.info("Refreshed account %s from token claims", user_id)
    return user
