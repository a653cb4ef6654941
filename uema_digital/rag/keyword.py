"""Offline keyword ranking, the last-resort retrieval strategy."""
from typing import List

from uema_digital import config
from uema_digital.models import Document, ScoredDocument, RetrievalStrategy

MIN_WORD_LENGTH = 3


def query_words(query: str) -> List[str]:
    """Lowercase words longer than two characters, repeats kept."""
    return [w for w in query.lower().split() if len(w) >= MIN_WORD_LENGTH]


def keyword_rank(query: str, documents: List[Document], top_k: int = None) -> List[ScoredDocument]:
    """Rank documents by the share of query words found in their text.

    Documents matching no word are dropped.
    """
    top_k = top_k or config.RETRIEVAL_TOP_K
    words = query_words(query)
    if not words:
        return []

    scored = []
    for document in documents:
        text = document.searchable_text()
        matched = sum(1 for word in words if word in text)
        if matched == 0:
            continue
        scored.append(ScoredDocument(document, matched / len(words), RetrievalStrategy.KEYWORD))

    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:top_k]
