"""Request payload models for the HTTP API."""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from uema_digital import config
from uema_digital.models import DocumentType, DocumentStatus, Sector


class DocumentCreate(BaseModel):
    """Input for creating a document."""
    title: str = Field(..., min_length=1, max_length=300)
    type: DocumentType = DocumentType.PDF
    sector: Sector = Sector.PROGEP
    status: DocumentStatus = DocumentStatus.DRAFT
    tags: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    content: Optional[str] = None
    size: str = "0 KB"
    author: Optional[str] = None
    enrich: bool = Field(default=True, description="Generate missing tags and summary")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be blank")
        return v.strip()


class DocumentUpdate(BaseModel):
    """Partial update of a document; unset fields are left alone."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    type: Optional[DocumentType] = None
    sector: Optional[Sector] = None
    status: Optional[DocumentStatus] = None
    tags: Optional[List[str]] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    size: Optional[str] = None
    author: Optional[str] = None


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=config.MAX_MESSAGE_CHARS)
    top_k: Optional[int] = Field(default=None, ge=1, le=50)
    client_id: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=config.MAX_MESSAGE_CHARS)
    session_id: Optional[str] = None
    top_k: Optional[int] = Field(default=None, ge=1, le=20)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message cannot be empty")
        return v.strip()


class SessionCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
