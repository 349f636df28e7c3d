"""Wire models for the chat service endpoints.

Only the fields the client relies on are declared; extra fields are ignored.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from chatcore.history.models import HistoryEntry


def _coerce_history_id(value: Any) -> Any:
    """Accept integer ids sent as numbers or numeric strings."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return int(value)
    return value


class LoginResponse(BaseModel):
    """Response from POST /login."""

    access_token: str
    user_id: str
    username: str

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id_as_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ChatReply(BaseModel):
    """Response from POST /get_response.

    Attributes:
        response: Assistant reply text
        history_id: Conversation identifier; present when the service opened
            or continued a stored conversation
    """

    response: str
    history_id: Optional[int] = None

    @field_validator("history_id", mode="before")
    @classmethod
    def _history_id_as_int(cls, value: Any) -> Any:
        return _coerce_history_id(value)


class HistoryResponse(BaseModel):
    """Response from GET /history."""

    chat_history: List[HistoryEntry] = []

    @field_validator("chat_history", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class DeleteChatResponse(BaseModel):
    """Response from DELETE /delete_chat/{history_id}."""

    success: bool = False
    error: Optional[str] = None
