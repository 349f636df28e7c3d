"""Current-conversation tracking across restarts.

The tracker owns the identifier of the conversation being continued. The
in-memory value is authoritative for the running process; the durable copy
under `historyId` is best effort and only used to restore it at startup.
"""

from typing import Optional

from chatcore.errors import StorageError
from chatcore.storage.base import KeyValueStore
from chatcore.storage.keys import HISTORY_ID_KEY
from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


class ConversationTracker:
    """Holds the nullable server-issued conversation identifier."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._current: Optional[int] = None

    @property
    def current(self) -> Optional[int]:
        return self._current

    async def load(self) -> Optional[int]:
        """Restore the identifier from durable storage.

        Returns:
            The stored identifier, or None when nothing (or garbage) is stored
        """
        try:
            raw = await self.store.get_item(HISTORY_ID_KEY)
        except StorageError as e:
            logger.error(f"Failed to load historyId: {e}")
            return self._current

        if raw is None:
            self._current = None
            return None

        try:
            self._current = int(raw.strip())
        except ValueError:
            logger.warning(f"Ignoring corrupt stored historyId: {raw!r}")
            self._current = None
        return self._current

    async def save(self, history_id: int) -> None:
        """Adopt a new identifier and persist it as a decimal string."""
        self._current = history_id
        try:
            await self.store.set_item(HISTORY_ID_KEY, str(history_id))
        except StorageError as e:
            logger.error(f"Failed to save historyId {history_id}: {e}")
            return
        logger.debug("Saved historyId", extra={"history_id": history_id})

    async def reset(self) -> None:
        """Forget the current conversation; the next send starts a new one."""
        self._current = None
        try:
            await self.store.remove_item(HISTORY_ID_KEY)
        except StorageError as e:
            logger.error(f"Failed to remove stored historyId: {e}")
            return
        logger.info("Conversation reset")
