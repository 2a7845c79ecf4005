"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    token_version: int


class CurrentUser(BaseModel):
    """Authenticated creator attached to a request."""
    user_id: UUID
    email: str
    name: str
