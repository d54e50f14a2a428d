import hashlib
from collections import OrderedDict


class EmbeddingCache:
    """In-process LRU cache for embedding vectors with model awareness.

    Keys include the model name so switching models never serves a vector
    produced by a different model.
    """

    def __init__(self, max_entries: int = 100):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(text: str, model: str) -> str:
        return hashlib.md5(f"{model}::{text}".encode()).hexdigest()

    async def get_cached(self, text: str, model: str) -> list[float] | None:
        """Return the cached vector for ``text`` under ``model``, if present."""
        key = self._key(text, model)
        embedding = self._entries.get(key)
        if embedding is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return list(embedding)

    async def store(self, text: str, model: str, embedding: list[float]) -> None:
        """Store a vector, evicting the least recently used entry when full."""
        if self.max_entries <= 0:
            return
        key = self._key(text, model)
        self._entries[key] = list(embedding)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
