"""Tests for the embedding client and its LRU cache."""
import pytest

from uema_digital.rag.embeddings import (
    DOCUMENT_INPUT,
    QUERY_INPUT,
    EmbeddingCache,
    EmbeddingClient,
)


class TestEmbeddingCache:
    def test_evicts_least_recently_used(self):
        cache = EmbeddingCache(max_size=2)
        cache.put(("q", "a"), [1.0])
        cache.put(("q", "b"), [2.0])
        cache.get(("q", "a"))  # 'b' is now the oldest
        cache.put(("q", "c"), [3.0])

        assert ("q", "a") in cache
        assert ("q", "b") not in cache
        assert ("q", "c") in cache
        assert len(cache) == 2

    def test_hit_and_miss_counters(self):
        cache = EmbeddingCache(max_size=4)
        cache.put(("q", "a"), [1.0])
        cache.get(("q", "a"))
        cache.get(("q", "missing"))

        info = cache.info()
        assert (info.hits, info.misses, info.size, info.max_size) == (1, 1, 1, 4)

    def test_clear(self):
        cache = EmbeddingCache(max_size=4)
        cache.put(("q", "a"), [1.0])
        cache.clear()
        assert len(cache) == 0


class TestEmbeddingClient:
    @pytest.mark.asyncio
    async def test_same_text_embedded_once(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client())

        first = await embedder.embed("Edital de concurso docente")
        second = await embedder.embed("Edital de concurso docente")

        assert first == second == [1.0, 0.0, 0.0]
        assert fake_cohere.count("embed") == 1

    @pytest.mark.asyncio
    async def test_cache_keyed_by_prefix(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client(), key_chars=10)

        await embedder.embed("0123456789 primeiro texto")
        await embedder.embed("0123456789 segundo texto")

        assert fake_cohere.count("embed") == 1

    @pytest.mark.asyncio
    async def test_query_and_document_cached_separately(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client())

        await embedder.embed("edital", input_type=DOCUMENT_INPUT)
        await embedder.embed_query("edital")

        assert fake_cohere.count("embed") == 2
        assert [p["input_type"] for p in fake_cohere.payloads("embed")] == [DOCUMENT_INPUT, QUERY_INPUT]

    @pytest.mark.asyncio
    async def test_request_payload(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client(), max_chars=5)

        await embedder.embed("abcdefghij")

        payload = fake_cohere.payloads("embed")[0]
        assert payload["texts"] == ["abcde"]
        assert payload["truncate"] == "END"
        assert payload["model"]

    @pytest.mark.asyncio
    async def test_unconfigured_provider_returns_none_without_calls(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client(api_key=""))

        assert await embedder.embed("qualquer texto") is None
        assert fake_cohere.calls == []

    @pytest.mark.asyncio
    async def test_api_failure_returns_none_and_is_not_cached(self, fake_cohere):
        fake_cohere.failing.add("embed")
        embedder = EmbeddingClient(client=fake_cohere.client())

        assert await embedder.embed("texto") is None
        assert len(embedder.cache) == 0

    @pytest.mark.asyncio
    async def test_malformed_response_returns_none(self, fake_cohere):
        fake_cohere.embed_fn = lambda text, input_type: "not-a-vector"
        embedder = EmbeddingClient(client=fake_cohere.client())

        assert await embedder.embed("texto") is None

    @pytest.mark.asyncio
    async def test_clear_cache_forces_new_call(self, fake_cohere):
        embedder = EmbeddingClient(client=fake_cohere.client())

        await embedder.embed("texto")
        embedder.clear_cache()
        await embedder.embed("texto")

        assert fake_cohere.count("embed") == 2
