"""Database initialization and helpers for UEMA Digital.

SQLite database for storing:
- Institutional documents with tags, summary and extracted text
- Chat sessions
- Chat messages with the documents offered as context
"""
import sqlite3
import json
from typing import Optional, List, Dict, Any
from datetime import datetime
import structlog

from uema_digital import config

logger = structlog.get_logger()


def get_connection() -> sqlite3.Connection:
    """Get a connection to the SQLite database.

    Returns:
        sqlite3.Connection with row_factory set to sqlite3.Row
    """
    config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(config.DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database() -> None:
    """Initialize the database schema.

    Creates tables if they don't exist:
    - documents: document metadata and extracted text
    - sessions: chat sessions
    - messages: chat messages, cascading on session delete
    """
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                type TEXT NOT NULL,
                sector TEXT NOT NULL,
                status TEXT NOT NULL,
                tags_json TEXT NOT NULL DEFAULT '[]',
                summary TEXT,
                content TEXT,
                size TEXT NOT NULL,
                author TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_sector
            ON documents(sector)
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                title TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
                role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
                content TEXT NOT NULL,
                related_docs_json TEXT,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_session
            ON messages(session_id, id)
        """)

        conn.commit()
        logger.info("database_initialized", db_path=str(config.DB_PATH))

    except Exception as e:
        conn.rollback()
        logger.error("database_init_failed", error=str(e))
        raise
    finally:
        conn.close()


def _now() -> str:
    return datetime.utcnow().isoformat()


def _document_row(row: sqlite3.Row) -> Dict[str, Any]:
    document = dict(row)
    document["tags"] = json.loads(document.pop("tags_json") or "[]")
    return document


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def insert_document(document: Dict[str, Any]) -> None:
    """Insert a document row.

    Args:
        document: Dict with every column except tags_json/updated_at;
            'tags' is a list of strings

    Raises:
        sqlite3.IntegrityError: If the id already exists
    """
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("""
            INSERT INTO documents (
                id, title, type, sector, status, tags_json,
                summary, content, size, author, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            document["id"],
            document["title"],
            document["type"],
            document["sector"],
            document["status"],
            json.dumps(document.get("tags") or [], ensure_ascii=False),
            document.get("summary"),
            document.get("content"),
            document["size"],
            document["author"],
            document["created_at"],
            _now(),
        ))

        conn.commit()
        logger.info("document_inserted", document_id=document["id"])

    except Exception as e:
        conn.rollback()
        logger.error("document_insert_failed", error=str(e), document_id=document.get("id"))
        raise
    finally:
        conn.close()


def update_document(document_id: str, fields: Dict[str, Any]) -> bool:
    """Update columns of a document.

    Args:
        document_id: Document to update
        fields: Column values to set; 'tags' is accepted as a list

    Returns:
        True if a row was updated, False if not found
    """
    allowed = {"title", "type", "sector", "status", "tags", "summary", "content", "size", "author"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown document fields: {sorted(unknown)}")

    values = dict(fields)
    if "tags" in values:
        values["tags_json"] = json.dumps(values.pop("tags") or [], ensure_ascii=False)
    values["updated_at"] = _now()

    assignments = ", ".join(f"{column} = ?" for column in values)

    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            f"UPDATE documents SET {assignments} WHERE id = ?",
            (*values.values(), document_id),
        )
        conn.commit()
        updated = cursor.rowcount > 0
        if updated:
            logger.info("document_updated", document_id=document_id, fields=sorted(fields))
        return updated

    except Exception as e:
        conn.rollback()
        logger.error("document_update_failed", error=str(e), document_id=document_id)
        raise
    finally:
        conn.close()


def get_document(document_id: str) -> Optional[Dict[str, Any]]:
    """Get a single document row, or None if not found."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("SELECT * FROM documents WHERE id = ?", (document_id,))
        row = cursor.fetchone()
        return _document_row(row) if row else None

    except Exception as e:
        logger.error("document_retrieval_failed", error=str(e), document_id=document_id)
        raise
    finally:
        conn.close()


def list_documents(
    sector: Optional[str] = None,
    status: Optional[str] = None,
    text: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """List documents, newest first.

    Args:
        sector: Only documents from this sector
        status: Only documents with this status
        text: Case-insensitive substring of the title
        limit: Maximum number of rows

    Returns:
        List of document dictionaries
    """
    clauses = []
    params: List[Any] = []
    if sector:
        clauses.append("sector = ?")
        params.append(sector)
    if status:
        clauses.append("status = ?")
        params.append(status)
    if text:
        clauses.append("LOWER(title) LIKE ?")
        params.append(f"%{text.lower()}%")

    query = "SELECT * FROM documents"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, id"
    if limit:
        query += " LIMIT ?"
        params.append(limit)

    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(query, params)
        return [_document_row(row) for row in cursor.fetchall()]

    except Exception as e:
        logger.error("documents_list_failed", error=str(e))
        raise
    finally:
        conn.close()


def delete_document(document_id: str) -> bool:
    """Delete a document. Returns True if deleted, False if not found."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("document_deleted", document_id=document_id)
        return deleted

    except Exception as e:
        conn.rollback()
        logger.error("document_delete_failed", error=str(e), document_id=document_id)
        raise
    finally:
        conn.close()


def get_document_count() -> int:
    """Get the total number of documents in the database."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("SELECT COUNT(*) FROM documents")
        return cursor.fetchone()[0]

    except Exception as e:
        logger.error("document_count_failed", error=str(e))
        raise
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Sessions and messages
# ---------------------------------------------------------------------------


def create_session(session_id: str, title: Optional[str] = None) -> None:
    """Create a chat session row."""
    now = _now()
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            "INSERT INTO sessions (id, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (session_id, title or "Nova conversa", now, now),
        )
        conn.commit()

    except Exception as e:
        conn.rollback()
        logger.error("session_create_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def get_session(session_id: str) -> Optional[Dict[str, Any]]:
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
        row = cursor.fetchone()
        return dict(row) if row else None

    except Exception as e:
        logger.error("session_retrieval_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def list_sessions(limit: int = 50) -> List[Dict[str, Any]]:
    """List sessions, most recently updated first."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            "SELECT * FROM sessions ORDER BY updated_at DESC, created_at DESC LIMIT ?",
            (limit,),
        )
        return [dict(row) for row in cursor.fetchall()]

    except Exception as e:
        logger.error("sessions_list_failed", error=str(e))
        raise
    finally:
        conn.close()


def update_session_title(session_id: str, title: str) -> None:
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            "UPDATE sessions SET title = ?, updated_at = ? WHERE id = ?",
            (title, _now(), session_id),
        )
        conn.commit()

    except Exception as e:
        conn.rollback()
        logger.error("session_title_update_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def delete_session(session_id: str) -> bool:
    """Delete a session and its messages. Returns False if not found."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        conn.commit()
        return cursor.rowcount > 0

    except Exception as e:
        conn.rollback()
        logger.error("session_delete_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def add_message(
    session_id: str,
    role: str,
    content: str,
    related_docs: Optional[List[str]] = None,
) -> int:
    """Insert a message and touch the session's updated_at.

    Returns:
        ID of the inserted message
    """
    now = _now()
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("""
            INSERT INTO messages (session_id, role, content, related_docs_json, created_at)
            VALUES (?, ?, ?, ?, ?)
        """, (
            session_id,
            role,
            content,
            json.dumps(related_docs) if related_docs is not None else None,
            now,
        ))
        message_id = cursor.lastrowid
        cursor.execute("UPDATE sessions SET updated_at = ? WHERE id = ?", (now, session_id))
        conn.commit()
        return message_id

    except Exception as e:
        conn.rollback()
        logger.error("message_insert_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def _message_row(row: sqlite3.Row) -> Dict[str, Any]:
    message = dict(row)
    related = message.pop("related_docs_json")
    message["related_docs"] = json.loads(related) if related else []
    return message


def get_messages(session_id: str) -> List[Dict[str, Any]]:
    """All messages of a session in chronological order."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY id",
            (session_id,),
        )
        return [_message_row(row) for row in cursor.fetchall()]

    except Exception as e:
        logger.error("messages_retrieval_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()


def get_recent_messages(session_id: str, limit: int) -> List[Dict[str, Any]]:
    """The last `limit` messages of a session, in chronological order."""
    conn = get_connection()
    cursor = conn.cursor()

    try:
        cursor.execute(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY id DESC LIMIT ?",
            (session_id, limit),
        )
        rows = [_message_row(row) for row in cursor.fetchall()]
        rows.reverse()
        return rows

    except Exception as e:
        logger.error("messages_retrieval_failed", error=str(e), session_id=session_id)
        raise
    finally:
        conn.close()
