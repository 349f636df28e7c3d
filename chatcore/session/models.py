"""Pydantic models for the authenticated session.

- User: identity returned by the service
- Session: immutable snapshot of the authentication state
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class User(BaseModel):
    """Identity of the logged-in user.

    Attributes:
        id: Server-side user identifier (numbers are normalized to str)
        username: Display name used in chat requests
        email: Login email; may be unknown for a restored session
    """

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Session(BaseModel):
    """Snapshot of the authentication state.

    `is_authenticated` is True only when `token` is set and the server has
    accepted it at least once.
    """

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    token: Optional[str] = None
    user: Optional[User] = None

    def __repr__(self) -> str:
        # Never render the bearer token.
        token = "<set>" if self.token else None
        return f"Session(is_authenticated={self.is_authenticated}, token={token}, user={self.user!r})"

    __str__ = __repr__


ANONYMOUS = Session()
