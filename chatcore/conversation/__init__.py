"""Live conversation: continuity tracking and the chat exchange engine."""

from chatcore.conversation.models import Message, SendOutcome

__all__ = ["Message", "SendOutcome"]
