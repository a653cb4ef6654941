"""Tests for the SQLite document store and conversation memory."""
import pytest

from uema_digital.documents import DocumentNotFound, DocumentStore
from uema_digital.memory import ConversationManager
from uema_digital.memory.manager import make_title
from uema_digital.models import Document, DocumentStatus, Sector


@pytest.fixture
def store(tmp_db):
    return DocumentStore()


class TestDocumentStore:
    def test_create_and_get_round_trip(self, store):
        doc = store.create(Document(
            id="",
            title="Edital 01/2025",
            sector="PROGEP",
            tags=["Concurso", "Concurso", " Docente "],
            content="Prazo de 30 dias",
        ))

        loaded = store.get(doc.id)
        assert doc.id
        assert loaded.title == "Edital 01/2025"
        assert loaded.tags == ["Concurso", "Docente"]
        assert loaded.sector == Sector.PROGEP
        assert loaded.content == "Prazo de 30 dias"

    def test_list_filters_and_orders_newest_first(self, store):
        store.create(Document(id="a", title="Antigo", sector="PROG", created_at="2025-01-01"))
        store.create(Document(id="b", title="Novo", sector="PROG", status="published", created_at="2025-06-01"))
        store.create(Document(id="c", title="Outro setor", sector="PPG", created_at="2025-03-01"))

        assert [d.id for d in store.list()] == ["b", "c", "a"]
        assert [d.id for d in store.list(sector="PROG")] == ["b", "a"]
        assert [d.id for d in store.list(status="published")] == ["b"]
        assert [d.id for d in store.list(text="setor")] == ["c"]

    def test_update(self, store):
        store.create(Document(id="x", title="Rascunho"))

        updated = store.update("x", status=DocumentStatus.PUBLISHED, tags=["A", "A", "B"])

        assert updated.status == DocumentStatus.PUBLISHED
        assert updated.tags == ["A", "B"]
        assert updated.title == "Rascunho"

    def test_missing_document_raises(self, store):
        with pytest.raises(DocumentNotFound):
            store.get("nope")
        with pytest.raises(DocumentNotFound):
            store.update("nope", title="x")
        with pytest.raises(DocumentNotFound):
            store.delete("nope")

    def test_delete_and_count(self, store):
        store.create(Document(id="x", title="Apagar"))
        assert store.count() == 1

        store.delete("x")

        assert store.count() == 0


class TestConversationManager:
    def test_messages_and_history_window(self, tmp_db):
        manager = ConversationManager(context_window_size=2)
        session_id = manager.create_session()

        manager.add_message(session_id, "user", "Olá")
        manager.add_message(session_id, "assistant", "Oi!", ["d1"])
        manager.add_message(session_id, "user", "Qual o prazo?")

        assert manager.format_conversation_history(session_id) == [
            {"role": "assistant", "content": "Oi!"},
            {"role": "user", "content": "Qual o prazo?"},
        ]
        messages = manager.get_all_messages(session_id)
        assert [m["related_docs"] for m in messages] == [[], ["d1"], []]

    def test_delete_session_removes_messages(self, tmp_db):
        manager = ConversationManager()
        session_id = manager.create_session("Teste")
        manager.add_message(session_id, "user", "Olá")

        assert manager.delete_session(session_id) is True
        assert manager.get_session(session_id) is None
        assert manager.get_all_messages(session_id) == []
        assert manager.delete_session(session_id) is False

    def test_session_title_from_first_message(self, tmp_db):
        manager = ConversationManager()
        session_id = manager.create_session()

        manager.update_session_title(session_id, "Qual é o prazo de inscrição do edital de concurso docente 01/2025?")

        title = manager.get_session(session_id)["title"]
        assert title.endswith("...")
        assert len(title) <= 53


def test_make_title_short_message_unchanged():
    assert make_title("Qual o prazo?") == "Qual o prazo?"
