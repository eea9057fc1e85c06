"""Identity carried by a bearer token."""
from typing import Optional

from pydantic import BaseModel

from reservio.models.user import Role


class TokenPayload(BaseModel):
    sub: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None
