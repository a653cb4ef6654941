"""Document store: the single source of truth the retrieval pipeline reads."""
import uuid
from typing import List, Optional
import structlog

from uema_digital import db
from uema_digital.models import Document

logger = structlog.get_logger()


class DocumentNotFound(LookupError):
    """Raised when a document id does not exist."""


class DocumentStore:
    """CRUD over SQLite-backed documents.

    The store does no indexing; all ranking happens in the rag package.
    """

    def create(self, document: Document) -> Document:
        if not document.id:
            document.id = str(uuid.uuid4())
        db.insert_document(document.to_dict())
        return document

    def get(self, document_id: str) -> Document:
        row = db.get_document(document_id)
        if row is None:
            raise DocumentNotFound(document_id)
        return _to_document(row)

    def list(
        self,
        sector: Optional[str] = None,
        status: Optional[str] = None,
        text: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        rows = db.list_documents(sector=sector, status=status, text=text, limit=limit)
        return [_to_document(row) for row in rows]

    def update(self, document_id: str, **fields) -> Document:
        if fields and not db.update_document(document_id, _column_values(fields)):
            raise DocumentNotFound(document_id)
        return self.get(document_id)

    def delete(self, document_id: str) -> None:
        if not db.delete_document(document_id):
            raise DocumentNotFound(document_id)

    def count(self) -> int:
        return db.get_document_count()


def _column_values(fields: dict) -> dict:
    values = {}
    for key, value in fields.items():
        values[key] = value.value if hasattr(value, "value") else value
    if "tags" in values and values["tags"] is not None:
        values["tags"] = list(dict.fromkeys(t.strip() for t in values["tags"] if t.strip()))
    return values


def _to_document(row: dict) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        type=row["type"],
        sector=row["sector"],
        status=row["status"],
        tags=row["tags"],
        summary=row.get("summary"),
        content=row.get("content"),
        size=row["size"],
        author=row["author"],
        created_at=row["created_at"],
    )


document_store = DocumentStore()
