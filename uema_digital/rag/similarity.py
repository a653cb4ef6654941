"""Cosine similarity ranking over embedding vectors."""
from typing import List, Optional, Sequence
import numpy as np

from uema_digital import config
from uema_digital.models import Document, ScoredDocument, RetrievalStrategy


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute dot(a, b) / (|a| * |b|).

    Vectors of different length, empty vectors and zero vectors have no
    similarity and score 0.0 instead of raising.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def rank_by_similarity(
    query_vector: Sequence[float],
    documents: List[Document],
    vectors: List[Optional[Sequence[float]]],
    top_k: int = None,
) -> List[ScoredDocument]:
    """Score each document against the query and keep the best top_k.

    A document with no vector scores 0 and is kept, so it ranks last.
    """
    top_k = top_k or config.RETRIEVAL_TOP_K

    scored = []
    for document, vector in zip(documents, vectors):
        score = cosine_similarity(query_vector, vector) if vector is not None else 0.0
        scored.append(ScoredDocument(document, score, RetrievalStrategy.SEMANTIC))

    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:top_k]
