"""Composition root for the chat client core.

`ChatClient` builds one store, one API client and one instance of each
component, and hands the SessionManager to every consumer. Presentation code
talks to this object only.

Usage:
------
async with ChatClient.from_settings(load_settings()) as client:
    await client.startup()
    if not client.sessions.is_authenticated:
        await client.sessions.login("a@b.com", "pw")
    outcome = await client.send_message("hi")
"""

from typing import List, Optional

import httpx

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.config import ClientSettings
from chatcore.conversation.exchange import ChatExchangeEngine
from chatcore.conversation.models import SendOutcome
from chatcore.conversation.tracker import ConversationTracker
from chatcore.errors import ChatClientError
from chatcore.history.models import HistoryEntry
from chatcore.history.synchronizer import HistorySynchronizer
from chatcore.session.manager import SessionManager
from chatcore.storage.base import KeyValueStore
from chatcore.storage.sqlite_store import SqliteKeyValueStore
from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


class ChatClient:
    """Wires storage, transport and the four core components together.

    Attributes:
        api: Chat service client
        store: Durable key-value store
        sessions: Session manager (single writer of the session state)
        tracker: Conversation continuity tracker
        chat: Chat exchange engine
        history: History list synchronizer
    """

    def __init__(
        self,
        api: ChatApiClient,
        store: KeyValueStore,
        serialize_sends: bool = False,
    ):
        self.api = api
        self.store = store
        self.sessions = SessionManager(api, store)
        self.tracker = ConversationTracker(store)
        self.chat = ChatExchangeEngine(api, self.tracker, serialize_sends=serialize_sends)
        self.history = HistorySynchronizer(api, self.sessions)

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ChatClient":
        """Build a client from settings.

        Args:
            settings: Resolved ClientSettings
            store: Store override; defaults to SQLite at settings.storage_path
            transport: Optional httpx transport override
        """
        api = ChatApiClient(settings.api_url, timeout=settings.request_timeout, transport=transport)
        store = store or SqliteKeyValueStore(settings.storage_path)
        return cls(api, store, serialize_sends=settings.serialize_sends)

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def startup(self, validate_session: bool = True) -> None:
        """Restore the conversation id and, optionally, the persisted session.

        Session validation failures are logged, not raised: the client simply
        starts unauthenticated (or logged out, for a rejected token).
        """
        await self.tracker.load()
        if not validate_session:
            return
        try:
            await self.sessions.restore()
        except ChatClientError as e:
            logger.warning(f"Could not restore session: {e}")

    async def send_message(self, text: str) -> SendOutcome:
        """Send `text` in the current conversation as the logged-in user.

        Raises:
            NoTokenError: No session
        """
        user = self.sessions.user
        return await self.chat.send(
            text,
            self.tracker.current,
            self.sessions.require_token(),
            user.username if user else None,
        )

    async def start_new_chat(self) -> None:
        """Clear the visible transcript and forget the current conversation."""
        self.chat.clear()
        await self.tracker.reset()

    async def fetch_history(self) -> List[HistoryEntry]:
        return await self.history.fetch()

    async def delete_history_entry(self, history_id: int) -> None:
        await self.history.delete(history_id)

    async def close(self) -> None:
        """Tear down: late results are dropped, then transports are closed."""
        self.chat.close()
        self.history.close()
        await self.api.aclose()
        await self.store.close()
