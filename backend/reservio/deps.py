"""Request dependencies — identity resolution and role checks.

Tokens are issued by the identity provider; this service only verifies the
signature and reads ``sub``, ``role`` and the optional ``email``/``name``
claims. The caller's row in ``users`` is created on first sight. Role checks
happen here, before any engine operation runs.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from reservio.config import settings
from reservio.database import get_db
from reservio.models.user import Role
from reservio.schemas.auth import TokenPayload
from reservio.services import user_service

# tokenUrl only documents where the identity provider hands out tokens
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def decode_token(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        raise credentials_exception


def get_current_user(
    identity: TokenPayload = Depends(decode_token),
    db: Session = Depends(get_db),
) -> TokenPayload:
    """Decoded identity, with its mirror row guaranteed to exist."""
    user_service.sync_from_token(
        db,
        identity.sub,
        identity.role,
        email=identity.email,
        name=identity.name,
    )
    return identity


def require_role(role: Role):
    """Build a dependency that admits only callers holding ``role``."""

    def _check(user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
        if user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied: requires role {role.value}",
            )
        return user

    return _check


require_admin = require_role(Role.ADMIN)
require_participant = require_role(Role.PARTICIPANT)
