"""AI tag and summary generation for documents.

Both helpers degrade to deterministic text processing when the provider
is missing or the call fails.
"""
from typing import List, Optional
import httpx
import structlog

from uema_digital.cohere_client import CohereClient, MalformedResponseError, cohere_client

logger = structlog.get_logger()

MAX_TAGS = 5
ENRICHMENT_TEMPERATURE = 0.3

STOP_WORDS = {
    "documento", "uema", "processo", "de", "da", "do", "das", "dos", "para",
    "com", "em", "o", "a", "os", "as", "que", "por", "uma", "um", "sobre",
    "como", "pelo", "pela", "entre", "este", "esta", "esse", "essa", "nos", "nas",
}

TAGS_PROMPT = """Analise o seguinte documento e gere de 3 a 5 tags relevantes em português.
Documento: "{title}"
{content}
Responda APENAS com as tags separadas por vírgula, sem explicações. Exemplo: Tag1, Tag2, Tag3"""

SUMMARY_PROMPT = """Gere um resumo conciso em português (máximo 2 frases) para o seguinte documento:
Título: "{title}"
{content}
Responda APENAS com o resumo, sem introduções."""


def fallback_tags(title: str, content: Optional[str] = None) -> List[str]:
    """Unique words longer than three characters, stop words removed."""
    words = f"{title} {content or ''}".lower().split()
    tags = []
    for word in words:
        word = word.strip(".,;:!?()[]\"'")
        if len(word) > 3 and word not in STOP_WORDS and word not in tags:
            tags.append(word)
        if len(tags) == MAX_TAGS:
            break
    return tags


def fallback_summary(title: str, content: Optional[str] = None) -> str:
    return f"Documento: {title}. {(content or '')[:150]}..."


def parse_tags(text: str) -> List[str]:
    tags = [tag.strip().strip(".") for tag in text.split(",")]
    return list(dict.fromkeys(tag for tag in tags if tag))[:MAX_TAGS]


class DocumentEnricher:
    """Generates tags and summaries with the chat model."""

    def __init__(self, client: Optional[CohereClient] = None):
        self.client = client or cohere_client

    async def _ask(self, prompt: str) -> Optional[str]:
        if not self.client.is_configured():
            return None
        try:
            return await self.client.chat(prompt, temperature=ENRICHMENT_TEMPERATURE)
        except (httpx.HTTPError, MalformedResponseError, KeyError, TypeError, ValueError) as e:
            logger.warning("enrichment_failed", error=str(e), error_type=type(e).__name__)
            return None

    async def generate_tags(self, title: str, content: Optional[str] = None) -> List[str]:
        """Suggest up to five tags for a document."""
        excerpt = f'Conteúdo: "{content[:500]}"' if content else ""
        text = await self._ask(TAGS_PROMPT.format(title=title, content=excerpt))
        tags = parse_tags(text) if text else []
        if not tags:
            tags = fallback_tags(title, content)
        logger.info("tags_generated", title_preview=title[:60], count=len(tags), ai=bool(text))
        return tags

    async def generate_summary(self, title: str, content: Optional[str] = None) -> str:
        """Write a short summary for a document."""
        excerpt = f'Conteúdo: "{content[:1000]}"' if content else ""
        text = await self._ask(SUMMARY_PROMPT.format(title=title, content=excerpt))
        if text and text.strip():
            return text.strip()
        return fallback_summary(title, content)


enricher = DocumentEnricher()
