"""Tests for the grounded chat composer."""
import pytest

from uema_digital.models import RetrievalStrategy, ScoredDocument
from uema_digital.rag.composer import (
    ERROR_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    GroundedChatComposer,
    build_preamble,
    to_chat_history,
)
from uema_digital.rag.embeddings import EmbeddingClient
from uema_digital.rag.reranker import RerankerClient
from uema_digital.rag.retriever import Retriever


def scored(doc, score=0.9):
    return ScoredDocument(doc, score, RetrievalStrategy.KEYWORD)


class StaticStore:
    def __init__(self, documents):
        self.documents = documents

    def list(self):
        return list(self.documents)


class TestBuildPreamble:
    def test_no_documents_contains_fallback_instruction(self):
        preamble = build_preamble([])

        assert "Não encontrei documentos específicos" in preamble
        assert "(vazio)" in preamble

    def test_rules_and_glossary_always_present(self, edital_corpus):
        preamble = build_preamble([scored(edital_corpus[0])])

        assert "Cite somente documentos" in preamble
        assert "PROGEP: Pró-Reitoria de Gestão de Pessoas" in preamble
        assert "PROTOCOLO" in preamble

    def test_lists_document_fields(self, make_document):
        doc = make_document(
            "Plano de Cargos e Salários",
            sector="PROGEP",
            summary="Tabela salarial dos servidores",
            tags=["RH", "Salários"],
            content="y" * 40,
        )

        preamble = build_preamble([scored(doc)], content_chars=10)

        assert "[1] Plano de Cargos e Salários" in preamble
        assert "Setor: PROGEP" in preamble
        assert "Resumo: Tabela salarial dos servidores" in preamble
        assert "Tags: RH, Salários" in preamble
        assert "y" * 10 in preamble and "y" * 11 not in preamble
        assert "Não encontrei documentos específicos" not in preamble


def test_history_mapping_skips_unknown_roles():
    history = [
        {"role": "user", "content": "Olá"},
        {"role": "assistant", "content": "Como posso ajudar?"},
        {"role": "system", "content": "ignorar"},
        {"role": "user", "content": ""},
    ]

    assert to_chat_history(history) == [
        {"role": "USER", "message": "Olá"},
        {"role": "CHATBOT", "message": "Como posso ajudar?"},
    ]


@pytest.mark.asyncio
async def test_zero_documents_still_calls_model(fake_cohere):
    composer = GroundedChatComposer(client=fake_cohere.client())

    reply = await composer.compose("Qual o prazo do edital 09/2030?", [], [])

    assert reply.text == fake_cohere.chat_text
    assert reply.related_doc_ids == []
    payload = fake_cohere.payloads("chat")[0]
    assert "Não encontrei documentos específicos" in payload["preamble"]
    assert payload["message"] == "Qual o prazo do edital 09/2030?"


@pytest.mark.asyncio
async def test_compose_sends_history_and_returns_offered_ids(fake_cohere, edital_corpus):
    composer = GroundedChatComposer(client=fake_cohere.client(), temperature=0.2)
    history = [{"role": "user", "content": "Oi"}, {"role": "assistant", "content": "Olá!"}]

    reply = await composer.compose("E o edital?", [scored(d) for d in edital_corpus[:2]], history)

    assert reply.related_doc_ids == [edital_corpus[0].id, edital_corpus[1].id]
    payload = fake_cohere.payloads("chat")[0]
    assert payload["chat_history"] == [
        {"role": "USER", "message": "Oi"},
        {"role": "CHATBOT", "message": "Olá!"},
    ]
    assert payload["temperature"] == 0.2
    assert edital_corpus[0].title in payload["preamble"]


@pytest.mark.asyncio
async def test_api_failure_returns_apology(fake_cohere, edital_corpus):
    fake_cohere.failing.add("chat")
    composer = GroundedChatComposer(client=fake_cohere.client())

    reply = await composer.compose("pergunta", [scored(edital_corpus[0])])

    assert reply.text == ERROR_MESSAGE
    assert reply.related_doc_ids == []


@pytest.mark.asyncio
async def test_blank_model_text_returns_apology(fake_cohere):
    fake_cohere.chat_text = "   "
    composer = GroundedChatComposer(client=fake_cohere.client())

    reply = await composer.compose("pergunta", [])

    assert reply.text == ERROR_MESSAGE


@pytest.mark.asyncio
async def test_unconfigured_provider_returns_fixed_message(fake_cohere):
    composer = GroundedChatComposer(client=fake_cohere.client(api_key=""))

    reply = await composer.compose("pergunta", [])

    assert reply.text == NOT_CONFIGURED_MESSAGE
    assert fake_cohere.calls == []


@pytest.mark.asyncio
async def test_answer_retrieves_then_composes(fake_cohere, edital_corpus):
    client = fake_cohere.client()
    fake_cohere.failing.add("embed")  # forces keyword retrieval
    retriever = Retriever(
        embedder=EmbeddingClient(client=client),
        reranker=RerankerClient(client=client),
        store=StaticStore(edital_corpus),
    )
    composer = GroundedChatComposer(client=client, retriever=retriever)

    reply = await composer.answer("prazo edital 01/2025")

    assert reply.related_doc_ids == [edital_corpus[0].id]
    assert reply.retrieval.strategy == RetrievalStrategy.KEYWORD
    assert fake_cohere.count("chat") == 1
