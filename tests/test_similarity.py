"""Tests for cosine similarity and similarity ranking."""
import math

import pytest

from uema_digital.models import RetrievalStrategy
from uema_digital.rag.similarity import cosine_similarity, rank_by_similarity


class TestCosineSimilarity:
    @pytest.mark.parametrize("vector", [[1.0], [0.3, -0.2, 0.9], [5, 5, 5, 5]])
    def test_vector_with_itself_is_one(self, vector):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_different_lengths_score_zero(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_empty_vectors_score_zero(self):
        assert cosine_similarity([], []) == 0.0

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_known_angle(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))


class TestRankBySimilarity:
    def test_sorted_descending_and_truncated(self, make_document):
        docs = [make_document(f"Doc {i}") for i in range(4)]
        vectors = [[0.0, 1.0], [1.0, 0.0], [1.0, 1.0], [-1.0, 0.0]]

        ranked = rank_by_similarity([1.0, 0.0], docs, vectors, top_k=3)

        assert [r.document.id for r in ranked] == [docs[1].id, docs[2].id, docs[0].id]
        assert all(r.strategy == RetrievalStrategy.SEMANTIC for r in ranked)

    def test_missing_vector_kept_with_zero_score(self, make_document):
        docs = [make_document("Sem vetor"), make_document("Com vetor")]

        ranked = rank_by_similarity([1.0, 0.0], docs, [None, [1.0, 0.0]], top_k=5)

        assert len(ranked) == 2
        assert ranked[-1].document.id == docs[0].id
        assert ranked[-1].score == 0.0
