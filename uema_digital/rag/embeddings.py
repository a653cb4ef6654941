"""Embedding generation with an in-process LRU cache.

Failures never reach the caller: an unconfigured provider or a failed
remote call both come back as ``None`` so the retriever can fall back.
"""
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional, Tuple
import httpx
import structlog

from uema_digital import config
from uema_digital.cohere_client import CohereClient, MalformedResponseError, cohere_client

logger = structlog.get_logger()

QUERY_INPUT = "search_query"
DOCUMENT_INPUT = "search_document"


@dataclass
class CacheInfo:
    hits: int
    misses: int
    size: int
    max_size: int


class EmbeddingCache:
    """LRU map from (input_type, text prefix) to a vector."""

    def __init__(self, max_size: int = None):
        self.max_size = max_size or config.EMBEDDING_CACHE_SIZE
        self._entries: "OrderedDict[Tuple[str, str], List[float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: Tuple[str, str]) -> Optional[List[float]]:
        vector = self._entries.get(key)
        if vector is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return vector

    def put(self, key: Tuple[str, str], vector: List[float]) -> None:
        self._entries[key] = vector
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("embedding_cache_evicted", key_preview=evicted[1][:40])

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return key in self._entries

    def info(self) -> CacheInfo:
        return CacheInfo(
            hits=self.hits,
            misses=self.misses,
            size=len(self._entries),
            max_size=self.max_size,
        )


class EmbeddingClient:
    """Turns text into vectors via the remote multilingual embedding model."""

    def __init__(
        self,
        client: Optional[CohereClient] = None,
        cache: Optional[EmbeddingCache] = None,
        key_chars: int = None,
        max_chars: int = None,
    ):
        """Initialize the embedding client.

        Args:
            client: Cohere client (defaults to the module-level instance)
            cache: Embedding cache (a fresh LRU cache if not provided)
            key_chars: Prefix length used as the cache key
            max_chars: Maximum characters sent to the API per text
        """
        self.client = client or cohere_client
        self.cache = cache if cache is not None else EmbeddingCache()
        self.key_chars = key_chars or config.EMBEDDING_CACHE_KEY_CHARS
        self.max_chars = max_chars or config.EMBEDDING_MAX_CHARS

    def is_configured(self) -> bool:
        return self.client.is_configured()

    def cache_key(self, text: str, input_type: str) -> Tuple[str, str]:
        return (input_type, text[: self.key_chars])

    async def embed(self, text: str, input_type: str = DOCUMENT_INPUT) -> Optional[List[float]]:
        """Embed one text, serving repeats of the same prefix from cache.

        Returns:
            The embedding vector, or None if unavailable
        """
        if not self.is_configured():
            return None

        if not text or not text.strip():
            return None

        key = self.cache_key(text, input_type)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("embedding_cache_hit", input_type=input_type)
            return cached

        try:
            vectors = await self.client.embed([text[: self.max_chars]], input_type=input_type)
        except (httpx.HTTPError, MalformedResponseError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "embedding_unavailable",
                error=str(e),
                error_type=type(e).__name__,
                text_preview=text[:60],
            )
            return None

        vector = vectors[0]
        if not vector:
            logger.warning("embedding_empty", text_preview=text[:60])
            return None

        self.cache.put(key, vector)
        return vector

    async def embed_query(self, query: str) -> Optional[List[float]]:
        return await self.embed(query, input_type=QUERY_INPUT)

    def clear_cache(self) -> None:
        """Drop every cached vector (for long-running processes)."""
        size = len(self.cache)
        self.cache.clear()
        logger.info("embedding_cache_cleared", entries=size)

    def cache_info(self) -> CacheInfo:
        return self.cache.info()
