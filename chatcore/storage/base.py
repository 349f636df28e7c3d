from abc import ABC, abstractmethod
from typing import Iterable, Optional


class KeyValueStore(ABC):
    """Durable, string-keyed, string-valued storage shared by the core components.

    All operations are coroutines: storage access is a suspension point.
    Implementations raise `chatcore.errors.StorageError` on failure.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Insert or overwrite `key`."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove `key`; removing an absent key is not an error."""

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.remove_item(key)

    async def close(self) -> None:
        pass
