"""Retrieval orchestrator for document search and chat grounding.

Handles:
- Strategy selection (semantic, rerank or keyword) once per query
- Concurrent document embedding for semantic search
- Fallback to keyword matching when a remote call fails
"""
import asyncio
import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional
import structlog

from uema_digital import config
from uema_digital.documents import DocumentStore, document_store
from uema_digital.models import Document, ScoredDocument, RetrievalStrategy
from uema_digital.rag.embeddings import DOCUMENT_INPUT, EmbeddingClient
from uema_digital.rag.keyword import keyword_rank
from uema_digital.rag.reranker import RerankerClient, document_blurb
from uema_digital.rag.similarity import rank_by_similarity

logger = structlog.get_logger()


@dataclass
class RetrievalOutcome:
    """Ranked documents plus how they were obtained."""

    strategy: RetrievalStrategy
    requested: RetrievalStrategy
    results: List[ScoredDocument] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        """True if a fallback replaced the selected strategy."""
        return self.strategy != self.requested

    @property
    def document_ids(self) -> List[str]:
        return [r.document.id for r in self.results]


def select_strategy(
    candidate_count: int,
    provider_configured: bool,
    rerank_threshold: int = None,
) -> RetrievalStrategy:
    """Pick the retrieval strategy for a candidate set."""
    threshold = config.RERANK_THRESHOLD if rerank_threshold is None else rerank_threshold
    if not provider_configured or candidate_count == 0:
        return RetrievalStrategy.KEYWORD
    if candidate_count > threshold:
        return RetrievalStrategy.RERANK
    return RetrievalStrategy.SEMANTIC


class Retriever:
    """Ranks documents for a query with graceful degradation."""

    def __init__(
        self,
        embedder: Optional[EmbeddingClient] = None,
        reranker: Optional[RerankerClient] = None,
        store: Optional[DocumentStore] = None,
        top_k: int = None,
        rerank_threshold: int = None,
    ):
        """Initialize the retriever.

        Args:
            embedder: Embedding client (default uses the shared Cohere client)
            reranker: Rerank client (default uses the shared Cohere client)
            store: Document store listed when no candidates are passed in
            top_k: Number of results to return (default from config)
            rerank_threshold: Candidate count above which rerank is used
        """
        self.embedder = embedder or EmbeddingClient()
        self.reranker = reranker or RerankerClient()
        self.store = store or document_store
        self.top_k = top_k or config.RETRIEVAL_TOP_K
        self.rerank_threshold = (
            config.RERANK_THRESHOLD if rerank_threshold is None else rerank_threshold
        )

    def provider_configured(self) -> bool:
        return self.embedder.is_configured()

    async def retrieve(
        self,
        query: str,
        documents: Optional[List[Document]] = None,
        top_k: Optional[int] = None,
    ) -> RetrievalOutcome:
        """Rank candidate documents for a query.

        Args:
            query: User query text
            documents: Candidates (listed from the store when omitted)
            top_k: Number of results to return (overrides default)

        Returns:
            RetrievalOutcome; never raises for remote or store failures
        """
        top_k = top_k or self.top_k

        if not query or not query.strip():
            logger.warning("empty_query_provided")
            return RetrievalOutcome(RetrievalStrategy.KEYWORD, RetrievalStrategy.KEYWORD)

        if documents is None:
            try:
                documents = self.store.list()
            except sqlite3.Error as e:
                logger.error("retrieval_candidates_unavailable", error=str(e))
                return RetrievalOutcome(RetrievalStrategy.KEYWORD, RetrievalStrategy.KEYWORD)

        requested = select_strategy(
            len(documents), self.provider_configured(), self.rerank_threshold
        )
        logger.info(
            "retrieval_strategy_selected",
            strategy=requested.value,
            candidate_count=len(documents),
            top_k=top_k,
        )

        results: Optional[List[ScoredDocument]] = None
        if requested == RetrievalStrategy.RERANK:
            results = await self.reranker.rerank(query, documents, top_n=top_k)
        elif requested == RetrievalStrategy.SEMANTIC:
            results = await self._semantic(query, documents, top_k)

        strategy = requested
        if results is None:
            strategy = RetrievalStrategy.KEYWORD
            results = keyword_rank(query, documents, top_k=top_k)
            if requested != RetrievalStrategy.KEYWORD:
                logger.warning(
                    "retrieval_degraded_to_keyword",
                    requested=requested.value,
                    candidate_count=len(documents),
                )

        logger.info(
            "retrieval_completed",
            strategy=strategy.value,
            requested=requested.value,
            query_length=len(query),
            results_returned=len(results),
            top_score=results[0].score if results else None,
        )

        return RetrievalOutcome(strategy, requested, results)

    async def _semantic(
        self, query: str, documents: List[Document], top_k: int
    ) -> Optional[List[ScoredDocument]]:
        query_vector = await self.embedder.embed_query(query)
        if query_vector is None:
            return None

        # Blurbs sharing a cache key are embedded once
        blurbs = [document_blurb(doc) for doc in documents]
        keys = [self.embedder.cache_key(blurb, DOCUMENT_INPUT) for blurb in blurbs]
        unique = dict(zip(keys, blurbs))
        embedded = await asyncio.gather(*(self.embedder.embed(text) for text in unique.values()))
        by_key = dict(zip(unique, embedded))
        vectors = [by_key[key] for key in keys]

        missing = sum(1 for v in vectors if v is None)
        if missing:
            logger.warning("document_embeddings_missing", missing=missing, total=len(documents))

        return rank_by_similarity(query_vector, documents, vectors, top_k=top_k)


# Singleton instance for convenience
_retriever_instance: Optional[Retriever] = None


def get_retriever() -> Retriever:
    """Get or create a singleton retriever instance.

    The embedding cache lives on this instance, so it is shared by every
    request in the process.
    """
    global _retriever_instance
    if _retriever_instance is None:
        _retriever_instance = Retriever()
    return _retriever_instance
