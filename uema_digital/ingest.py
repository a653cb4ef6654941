"""Bulk import of documents into the document store.

Orchestrates:
- Reading a YAML (or JSON) list of documents
- Payload validation
- Tag and summary generation for documents missing them
- Insertion into SQLite
"""
from pathlib import Path
from typing import Callable, Dict, List, Optional, Any
import uuid
import yaml
from pydantic import ValidationError
import structlog

from uema_digital import db
from uema_digital.documents import DocumentStore, document_store
from uema_digital.models import Document
from uema_digital.rag.enrichment import DocumentEnricher, enricher
from uema_digital.schemas import DocumentCreate

logger = structlog.get_logger()


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Read document records from a YAML or JSON file.

    The file holds either a list of documents or {'documents': [...]}.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no document list
    """
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)  # YAML is a superset of JSON

    if isinstance(data, dict):
        data = data.get("documents")
    if not isinstance(data, list):
        raise ValueError(f"No document list found in {path}")
    return data


class DocumentImporter:
    """Imports document records into the store."""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        enricher_: Optional[DocumentEnricher] = None,
        enrich: bool = True,
    ):
        self.store = store or document_store
        self.enricher = enricher_ or enricher
        self.enrich = enrich
        self.stats = {
            "documents_imported": 0,
            "documents_failed": 0,
            "documents_skipped": 0,
            "documents_enriched": 0,
        }

    async def import_record(self, record: Dict[str, Any]) -> Optional[Document]:
        """Validate, enrich and insert one record.

        Returns:
            The stored document, or None if skipped or invalid
        """
        document_id = str(record.get("id") or uuid.uuid4())
        if record.get("id") and db.get_document(document_id) is not None:
            self.stats["documents_skipped"] += 1
            logger.info("document_already_present", document_id=document_id)
            return None

        fields = {k: v for k, v in record.items() if k not in ("id", "created_at")}
        try:
            payload = DocumentCreate.model_validate(fields)
        except ValidationError as e:
            self.stats["documents_failed"] += 1
            logger.error("document_record_invalid", document_id=document_id, errors=e.error_count())
            return None

        tags, summary = payload.tags, payload.summary
        if self.enrich and payload.enrich and (not tags or not summary):
            if not tags:
                tags = await self.enricher.generate_tags(payload.title, payload.content)
            if not summary:
                summary = await self.enricher.generate_summary(payload.title, payload.content)
            self.stats["documents_enriched"] += 1

        extra = {"created_at": str(record["created_at"])} if record.get("created_at") else {}
        document = self.store.create(Document(
            id=document_id,
            title=payload.title,
            type=payload.type,
            sector=payload.sector,
            status=payload.status,
            tags=tags,
            summary=summary,
            content=payload.content,
            size=payload.size,
            author=payload.author or "Sistema",
            **extra,
        ))
        self.stats["documents_imported"] += 1
        return document

    async def import_all(
        self,
        records: List[Dict[str, Any]],
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ) -> Dict[str, int]:
        """Import every record, continuing past individual failures.

        Returns:
            Import statistics
        """
        total = len(records)
        for i, record in enumerate(records, 1):
            await self.import_record(record)
            if progress_callback:
                progress_callback(i, total, str(record.get("title", "")))

        logger.info("document_import_completed", **self.stats)
        return self.stats


def clear_documents() -> int:
    """Delete every document. Returns the number deleted."""
    count = 0
    for row in db.list_documents():
        if db.delete_document(row["id"]):
            count += 1
    logger.info("documents_cleared", count=count)
    return count
