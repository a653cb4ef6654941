"""Grounded chat: answers constrained to the retrieved documents.

The preamble tells the model to cite only the listed documents and to say
so when nothing relevant was found. The model's reply is not checked
against the list; `related_doc_ids` are the documents that were offered.
"""
from dataclasses import dataclass, field
from typing import List, Dict, Optional
import httpx
import structlog

from uema_digital import config
from uema_digital.cohere_client import CohereClient, MalformedResponseError, cohere_client
from uema_digital.models import ScoredDocument
from uema_digital.rag.retriever import Retriever, RetrievalOutcome, get_retriever

logger = structlog.get_logger()

NOT_CONFIGURED_MESSAGE = (
    "Desculpe, o assistente de IA não está configurado. "
    "Configure a chave da API Cohere (COHERE_API_KEY) para usar este recurso."
)
ERROR_MESSAGE = (
    "Desculpe, ocorreu um erro ao processar sua mensagem. Por favor, tente novamente."
)
NO_DOCUMENTS_INSTRUCTION = (
    "Nenhum documento relevante foi encontrado no sistema para esta pergunta. "
    'Responda exatamente que "Não encontrei documentos específicos sobre este assunto '
    'no repositório" e sugira ao usuário refinar a busca ou procurar o setor responsável.'
)

SECTOR_GLOSSARY = {
    "PROGEP": "Pró-Reitoria de Gestão de Pessoas",
    "PROPLAD": "Pró-Reitoria de Planejamento e Administração",
    "PROEXAE": "Pró-Reitoria de Extensão e Assuntos Estudantis",
    "PPG": "Pró-Reitoria de Pesquisa e Pós-Graduação",
    "PROG": "Pró-Reitoria de Graduação",
    "PROTOCOLO": "Setor de Protocolo Geral",
}

BASE_INSTRUCTIONS = """Você é o assistente virtual do Repositório Digital da UEMA (Universidade Estadual do Maranhão).
Suas funções são ajudar usuários a encontrar documentos e processos e responder dúvidas sobre procedimentos administrativos.
Responda em português, de forma cordial, objetiva e formal.

REGRAS:
- Use APENAS as informações dos documentos listados em CONTEXTO DOS DOCUMENTOS.
- Cite somente documentos que aparecem nessa lista, pelo título exato. Nunca invente documentos, números de edital, prazos ou valores.
- Se a lista estiver vazia ou nenhum documento responder à pergunta, diga que não encontrou documentos específicos sobre o assunto.
"""

HISTORY_ROLES = {"user": "USER", "assistant": "CHATBOT"}


@dataclass
class ChatAnswer:
    """The model's reply and the document ids offered as context."""

    text: str
    related_doc_ids: List[str] = field(default_factory=list)
    retrieval: Optional[RetrievalOutcome] = None


def format_glossary() -> str:
    lines = [f"- {abbr}: {name}" for abbr, name in SECTOR_GLOSSARY.items()]
    return "GLOSSÁRIO DE SETORES:\n" + "\n".join(lines)


def format_document(index: int, scored: ScoredDocument, content_chars: int) -> str:
    doc = scored.document
    excerpt = (doc.content or "").strip()[:content_chars]
    return (
        f"[{index}] {doc.title}\n"
        f"Setor: {doc.sector.value}\n"
        f"Resumo: {doc.summary or 'N/A'}\n"
        f"Tags: {', '.join(doc.tags) if doc.tags else 'N/A'}\n"
        f"Conteúdo: {excerpt or 'N/A'}"
    )


def build_preamble(documents: List[ScoredDocument], content_chars: int = None) -> str:
    """Assemble the system instructions for one chat turn."""
    content_chars = content_chars or config.CHAT_CONTENT_CHARS

    sections = [BASE_INSTRUCTIONS, format_glossary()]
    if documents:
        listing = "\n\n---\n\n".join(
            format_document(i, scored, content_chars)
            for i, scored in enumerate(documents, 1)
        )
        sections.append(f"CONTEXTO DOS DOCUMENTOS:\n{listing}")
    else:
        sections.append(f"CONTEXTO DOS DOCUMENTOS:\n(vazio)\n\n{NO_DOCUMENTS_INSTRUCTION}")

    return "\n\n".join(sections)


def to_chat_history(history: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Map stored {'role', 'content'} turns to the Cohere chat format."""
    mapped = []
    for turn in history:
        role = HISTORY_ROLES.get(turn.get("role"))
        content = turn.get("content")
        if role and content:
            mapped.append({"role": role, "message": content})
    return mapped


class GroundedChatComposer:
    """Builds grounded prompts and forwards them to the chat model."""

    def __init__(
        self,
        client: Optional[CohereClient] = None,
        retriever: Optional[Retriever] = None,
        temperature: float = None,
    ):
        self.client = client or cohere_client
        self._retriever = retriever
        self.temperature = config.CHAT_TEMPERATURE if temperature is None else temperature

    @property
    def retriever(self) -> Retriever:
        if self._retriever is None:
            self._retriever = get_retriever()
        return self._retriever

    async def compose(
        self,
        message: str,
        documents: List[ScoredDocument],
        history: Optional[List[Dict[str, str]]] = None,
    ) -> ChatAnswer:
        """Ask the chat model, constrained to the given documents.

        Never raises for remote failures; returns a fixed apology instead.
        """
        related = [scored.document.id for scored in documents]

        if not self.client.is_configured():
            logger.info("chat_provider_not_configured")
            return ChatAnswer(NOT_CONFIGURED_MESSAGE, [])

        preamble = build_preamble(documents)

        try:
            text = await self.client.chat(
                message,
                preamble=preamble,
                chat_history=to_chat_history(history or []),
                temperature=self.temperature,
            )
        except (httpx.HTTPError, MalformedResponseError, KeyError, TypeError, ValueError) as e:
            logger.error(
                "grounded_chat_failed",
                error=str(e),
                error_type=type(e).__name__,
                document_count=len(documents),
            )
            return ChatAnswer(ERROR_MESSAGE, [])

        if not text.strip():
            logger.error("empty_chat_response", document_count=len(documents))
            return ChatAnswer(ERROR_MESSAGE, [])

        logger.info(
            "grounded_chat_completed",
            document_count=len(documents),
            response_length=len(text),
        )
        return ChatAnswer(text.strip(), related)

    async def answer(
        self,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        top_k: Optional[int] = None,
    ) -> ChatAnswer:
        """Retrieve documents for the message, then compose a grounded reply."""
        outcome = await self.retriever.retrieve(message, top_k=top_k)
        reply = await self.compose(message, outcome.results, history)
        reply.retrieval = outcome
        return reply
