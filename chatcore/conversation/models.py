"""Pydantic models for the live conversation.

- Message: one transcript entry (user utterance, assistant reply or error)
- SendOutcome: result of a single send, success or failure
"""

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """Single transcript entry.

    Attributes:
        id: Unique identifier
        text: Message text
        is_user: True for the user's utterance, False for assistant-role
            entries (replies and synthetic error messages)
        is_error: True for a synthetic message describing a failed send
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str
    is_user: bool
    is_error: bool = False

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(text=text, is_user=True)

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(text=text, is_user=False)

    @classmethod
    def error(cls, text: str) -> "Message":
        return cls(text=text, is_user=False, is_error=True)


class SendOutcome(BaseModel):
    """What happened to one send.

    Attributes:
        success: True when the service replied
        rejected: True when blank input was refused without a request
        user_message: The optimistic user entry (None when rejected)
        reply: Assistant reply, or the synthetic error message on failure
        error: Human-readable failure description
        error_type: Failure class name (e.g. "TransportError")
        history_id: Conversation identifier returned by the service, if any
    """

    success: bool
    rejected: bool = False
    user_message: Optional[Message] = None
    reply: Optional[Message] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    history_id: Optional[int] = None

    @classmethod
    def blank_input(cls) -> "SendOutcome":
        return cls(success=False, rejected=True, error="Message is empty")
