"""Conversation history list and its synchronization with the server."""

from chatcore.history.models import ChatTurn, HistoryEntry

__all__ = ["ChatTurn", "HistoryEntry"]
