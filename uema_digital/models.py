"""Domain types shared by the document store, retrieval and chat layers."""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Dict, Any, Optional


class Sector(str, Enum):
    """Organizational units that own documents and processes."""

    PROGEP = "PROGEP"
    PROPLAD = "PROPLAD"
    PROTOCOLO = "PROTOCOLO"
    PROEXAE = "PROEXAE"
    PPG = "PPG"
    PROG = "PROG"


class DocumentType(str, Enum):
    PDF = "PDF"
    DOCX = "DOCX"
    XLSX = "XLSX"
    PPTX = "PPTX"
    TXT = "TXT"
    IMG = "IMG"
    OTHER = "OTHER"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass
class Document:
    """An institutional document as held by the document store."""

    id: str
    title: str
    type: DocumentType = DocumentType.PDF
    sector: Sector = Sector.PROGEP
    status: DocumentStatus = DocumentStatus.DRAFT
    tags: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    content: Optional[str] = None
    size: str = "0 KB"
    author: str = "Sistema"
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def __post_init__(self):
        self.type = DocumentType(self.type)
        self.sector = Sector(self.sector)
        self.status = DocumentStatus(self.status)
        # Tags behave as a set but keep their insertion order
        self.tags = list(dict.fromkeys(t.strip() for t in self.tags if t and t.strip()))

    def searchable_text(self) -> str:
        """Concatenate every field the keyword ranker matches against."""
        parts = [
            self.title,
            " ".join(self.tags),
            self.summary or "",
            self.sector.value,
            self.content or "",
        ]
        return " ".join(parts).lower()

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["sector"] = self.sector.value
        data["status"] = self.status.value
        if not include_content:
            data.pop("content")
        return data


class RetrievalStrategy(str, Enum):
    """How a ranked list was produced."""

    SEMANTIC = "semantic"
    RERANK = "rerank"
    KEYWORD = "keyword"


@dataclass
class ScoredDocument:
    """A document with its relevance score for one query."""

    document: Document
    score: float
    strategy: RetrievalStrategy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document.to_dict(include_content=False),
            "score": round(self.score, 4),
            "strategy": self.strategy.value,
        }
