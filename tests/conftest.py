"""Pytest configuration and fixtures."""
import json
from typing import Callable, List, Optional

import httpx
import pytest

from uema_digital import config, db
from uema_digital.cohere_client import CohereClient
from uema_digital.models import Document

TEST_API_KEY = "test-cohere-key-0123456789"


@pytest.fixture(autouse=True)
def no_provider(monkeypatch):
    """Default every test to an unconfigured provider; no real network calls."""
    monkeypatch.setattr(config, "COHERE_API_KEY", "")


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    """Point the database at a fresh temporary SQLite file."""
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "test.sqlite")
    db.init_database()
    return config.DB_PATH


class FakeCohere:
    """In-process stand-in for the Cohere HTTP API."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.failing: set = set()
        self.embed_fn: Callable[[str, str], List[float]] = lambda text, input_type: [1.0, 0.0, 0.0]
        self.rerank_results: Optional[List[dict]] = None
        self.chat_text = "Resposta baseada nos documentos."

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        payload = json.loads(request.content)
        self.calls.append((endpoint, payload))

        if endpoint in self.failing:
            return httpx.Response(500, json={"message": "internal error"})

        if endpoint == "embed":
            vectors = [self.embed_fn(text, payload["input_type"]) for text in payload["texts"]]
            return httpx.Response(200, json={"embeddings": vectors})

        if endpoint == "rerank":
            results = self.rerank_results
            if results is None:
                results = [
                    {"index": i, "relevance_score": round(1.0 - i * 0.1, 2)}
                    for i in range(payload["top_n"])
                ]
            return httpx.Response(200, json={"results": results})

        if endpoint == "chat":
            return httpx.Response(200, json={"text": self.chat_text})

        return httpx.Response(404, json={"message": "not found"})

    def client(self, api_key: str = TEST_API_KEY) -> CohereClient:
        return CohereClient(
            api_key=api_key,
            base_url="https://cohere.test/v1",
            transport=httpx.MockTransport(self.handler),
        )

    def count(self, endpoint: str) -> int:
        return sum(1 for name, _ in self.calls if name == endpoint)

    def payloads(self, endpoint: str) -> List[dict]:
        return [payload for name, payload in self.calls if name == endpoint]


@pytest.fixture
def fake_cohere():
    return FakeCohere()


@pytest.fixture
def make_document():
    """Factory for documents with sensible defaults."""
    counter = {"n": 0}

    def _make(title: str, **kwargs) -> Document:
        counter["n"] += 1
        kwargs.setdefault("id", f"doc-{counter['n']}")
        return Document(title=title, **kwargs)

    return _make


@pytest.fixture
def edital_corpus(make_document):
    """One document about Edital 01/2025 and two unrelated ones."""
    return [
        make_document(
            "Edital de Concurso Docente 01/2025",
            sector="PROGEP",
            tags=["Concurso", "Docente"],
            content="Edital 01/2025 para professor efetivo, prazo 30 dias para inscrição.",
        ),
        make_document(
            "Relatório Financeiro Q3 2025",
            sector="PROPLAD",
            tags=["Financeiro", "Orçamento"],
            summary="Análise dos gastos do terceiro trimestre.",
        ),
        make_document(
            "Ata de Reunião CONSUN",
            sector="PROTOCOLO",
            tags=["Conselho"],
            content="Deliberações do conselho universitário.",
        ),
    ]
