"""
chatcore: session and conversation-continuity core of the chatbot client.

It authenticates a user, persists the bearer token, exchanges chat messages
with the remote service and keeps a resumable conversation thread keyed by
the server-issued history id. Presentation layers call into `ChatClient`.
"""

from chatcore.client import ChatClient
from chatcore.config import ClientSettings, load_settings
from chatcore.errors import (
    AuthError,
    ChatClientError,
    MalformedResponseError,
    NoTokenError,
    ServerError,
    StorageError,
    TransportError,
)

__all__ = [
    "ChatClient",
    "ClientSettings",
    "load_settings",
    "ChatClientError",
    "AuthError",
    "NoTokenError",
    "TransportError",
    "ServerError",
    "MalformedResponseError",
    "StorageError",
]
