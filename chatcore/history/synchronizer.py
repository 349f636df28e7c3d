"""Past-conversation list kept in step with the server.

- fetch(): replaces the local list with the server's
- delete(): removes an entry locally only after the server confirms
- request_refresh(): re-fetches once per change of a refresh signal
"""

from typing import Hashable, List, Optional

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.errors import ChatClientError, ServerError
from chatcore.history.models import HistoryEntry
from chatcore.session.manager import SessionManager
from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

DELETE_FAILED_MESSAGE = "Failed to delete chat"

_NO_SIGNAL = object()


class HistorySynchronizer:
    """Local copy of the user's conversation list.

    Attributes:
        api: Chat service client
        sessions: Source of the bearer token
    """

    def __init__(self, api: ChatApiClient, sessions: SessionManager):
        self.api = api
        self.sessions = sessions
        self._entries: List[HistoryEntry] = []
        self._last_signal: object = _NO_SIGNAL
        self._fetch_generation = 0
        self._pending = 0
        self._closed = False

    @property
    def entries(self) -> List[HistoryEntry]:
        """Copy of the list in server order."""
        return list(self._entries)

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    def get(self, history_id: int) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.history_id == history_id:
                return entry
        return None

    def close(self) -> None:
        """Stop applying results; responses arriving later are dropped."""
        self._closed = True

    async def fetch(self) -> List[HistoryEntry]:
        """Replace the local list with the server's.

        Returns:
            The fetched entries (empty when the user has no history)

        Raises:
            NoTokenError: No session
            ChatClientError: Request failed; the previous list is kept
        """
        token = self.sessions.require_token()
        self._fetch_generation += 1
        generation = self._fetch_generation
        self._pending += 1
        try:
            result = await self.api.get_history(token)
        except ChatClientError as e:
            logger.error(f"Error fetching chat history: {e}")
            raise
        finally:
            self._pending -= 1

        entries = self._unique(result.chat_history)
        if self._closed:
            logger.warning("Discarding chat history received after close")
        elif generation != self._fetch_generation:
            logger.debug("Discarding superseded chat history fetch")
        else:
            self._entries = entries
            logger.info(f"Fetched {len(entries)} conversations")
        return entries

    async def request_refresh(self, signal: Hashable) -> bool:
        """Re-fetch if `signal` differs from the last one seen.

        The caller passes any changing value (e.g. a timestamp) each time it
        wants the list refreshed; repeating the same value is a no-op.

        Returns:
            True when a fetch was issued
        """
        if signal == self._last_signal:
            return False
        self._last_signal = signal
        await self.fetch()
        return True

    async def delete(self, history_id: int) -> None:
        """Delete a conversation on the server, then drop it locally.

        Only an explicit `{"success": true}` removes the local entry.

        Raises:
            NoTokenError: No session
            ServerError: The server answered without confirming the deletion
            ChatClientError: Request failed
        """
        token = self.sessions.require_token()
        try:
            ack = await self.api.delete_chat(token, history_id)
        except ChatClientError as e:
            logger.error(f"Error deleting chat {history_id}: {e}")
            raise

        if not ack.success:
            logger.error(f"Server did not confirm deletion of chat {history_id}")
            raise ServerError(ack.error or DELETE_FAILED_MESSAGE)

        # A fetch still in flight may predate the deletion.
        self._fetch_generation += 1
        if self._closed:
            logger.warning(f"Chat {history_id} deleted after close; local list untouched")
            return
        self._entries = [e for e in self._entries if e.history_id != history_id]
        logger.info("Deleted chat", extra={"history_id": history_id})

    @staticmethod
    def _unique(entries: List[HistoryEntry]) -> List[HistoryEntry]:
        seen = set()
        unique = []
        for entry in entries:
            if entry.history_id in seen:
                logger.warning(f"Duplicate history_id {entry.history_id} in server list")
                continue
            seen.add(entry.history_id)
            unique.append(entry)
        return unique
