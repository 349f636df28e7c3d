from typing import Dict, Iterable, Optional

from chatcore.storage.base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._items.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Copy of the current contents."""
        return dict(self._items)
