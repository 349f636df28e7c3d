"""Pydantic models for the conversation history list."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

PREVIEW_LENGTH = 15


class ChatTurn(BaseModel):
    """One user/assistant exchange inside a stored conversation."""

    model_config = ConfigDict(frozen=True)

    user: str = ""
    ai: str = ""


class HistoryEntry(BaseModel):
    """A past conversation as listed by the service.

    Attributes:
        history_id: Server-issued conversation identifier
        chat: Exchanges in the conversation, first exchange first
    """

    model_config = ConfigDict(frozen=True)

    history_id: int
    chat: List[ChatTurn] = Field(default_factory=list)

    @property
    def first_exchange(self) -> ChatTurn | None:
        return self.chat[0] if self.chat else None

    @property
    def preview(self) -> str:
        """First user utterance, cut to 15 characters with a trailing ellipsis."""
        first = self.first_exchange
        if first is None:
            return ""
        text = first.user
        if len(text) > PREVIEW_LENGTH:
            return f"{text[:PREVIEW_LENGTH]}..."
        return text
