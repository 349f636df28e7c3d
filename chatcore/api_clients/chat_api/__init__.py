"""REST client for the chat service."""

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.api_clients.chat_api.models import (
    ChatReply,
    DeleteChatResponse,
    HistoryResponse,
    LoginResponse,
)

__all__ = [
    "ChatApiClient",
    "ChatReply",
    "DeleteChatResponse",
    "HistoryResponse",
    "LoginResponse",
]
