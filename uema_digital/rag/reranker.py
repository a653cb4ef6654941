"""Cross-encoder reranking for larger candidate sets."""
from typing import List, Optional
import httpx
import structlog

from uema_digital import config
from uema_digital.cohere_client import CohereClient, MalformedResponseError, cohere_client
from uema_digital.models import Document, ScoredDocument, RetrievalStrategy

logger = structlog.get_logger()


def document_blurb(document: Document, content_chars: int = None) -> str:
    """Flatten a document into the text sent to the rerank endpoint."""
    content_chars = content_chars or config.RERANK_CONTENT_CHARS
    parts = [document.title]
    if document.summary:
        parts.append(document.summary)
    if document.tags:
        parts.append("Tags: " + ", ".join(document.tags))
    parts.append(f"Setor: {document.sector.value}")
    if document.content:
        parts.append(document.content[:content_chars])
    return "\n".join(parts)


class RerankerClient:
    """Delegates ranking to the remote rerank model."""

    def __init__(self, client: Optional[CohereClient] = None, content_chars: int = None):
        self.client = client or cohere_client
        self.content_chars = content_chars or config.RERANK_CONTENT_CHARS

    def is_configured(self) -> bool:
        return self.client.is_configured()

    async def rerank(
        self,
        query: str,
        documents: List[Document],
        top_n: int = None,
    ) -> Optional[List[ScoredDocument]]:
        """Rerank documents for a query.

        The endpoint's order is kept as-is.

        Returns:
            Scored documents, or None if the call failed
        """
        top_n = min(top_n or config.RETRIEVAL_TOP_K, len(documents))
        if not documents:
            return []

        blurbs = [document_blurb(doc, self.content_chars) for doc in documents]

        try:
            results = await self.client.rerank(query, blurbs, top_n=top_n)
        except (httpx.HTTPError, MalformedResponseError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "rerank_unavailable",
                error=str(e),
                error_type=type(e).__name__,
                document_count=len(documents),
            )
            return None

        scored = []
        for item in results:
            index = item["index"]
            if not 0 <= index < len(documents):
                logger.warning("rerank_index_out_of_range", index=index, document_count=len(documents))
                continue
            scored.append(
                ScoredDocument(documents[index], item["relevance_score"], RetrievalStrategy.RERANK)
            )

        return scored[:top_n]
