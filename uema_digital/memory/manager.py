"""Conversation memory manager for the UEMA Digital assistant.

Handles session creation, message persistence, and conversation history
for multi-turn grounded chat.
"""
import uuid
from typing import List, Dict, Any, Optional
import structlog

from uema_digital import config, db

logger = structlog.get_logger()

TITLE_MAX_CHARS = 50


def make_title(first_message: str) -> str:
    """A session title from the first user message, cut on a word boundary."""
    title = first_message.strip()[:TITLE_MAX_CHARS]
    if len(first_message.strip()) > TITLE_MAX_CHARS:
        title = title.rsplit(" ", 1)[0] + "..."
    return title


class ConversationManager:
    """Manages chat sessions and conversation history."""

    def __init__(self, context_window_size: int = None):
        """Initialize the conversation manager.

        Args:
            context_window_size: Number of recent messages to include in context
        """
        self.context_window_size = context_window_size or config.CONTEXT_WINDOW_SIZE

    def create_session(self, title: Optional[str] = None) -> str:
        """Create a new chat session.

        Returns:
            The created session ID
        """
        session_id = str(uuid.uuid4())
        db.create_session(session_id, title)
        logger.info("conversation_session_created", session_id=session_id)
        return session_id

    def add_message(
        self,
        session_id: str,
        role: str,
        content: str,
        related_docs: Optional[List[str]] = None,
    ) -> int:
        """Add a message to a session.

        Args:
            session_id: The session to add the message to
            role: Message role ('user' or 'assistant')
            content: The message content
            related_docs: Document ids offered as context for an answer

        Returns:
            ID of the inserted message
        """
        message_id = db.add_message(session_id, role, content, related_docs)
        logger.info(
            "conversation_message_added",
            session_id=session_id,
            role=role,
            message_id=message_id,
        )
        return message_id

    def get_recent_messages(
        self, session_id: str, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        limit = limit or self.context_window_size
        return db.get_recent_messages(session_id, limit)

    def get_all_messages(self, session_id: str) -> List[Dict[str, Any]]:
        return db.get_messages(session_id)

    def format_conversation_history(self, session_id: str) -> List[Dict[str, str]]:
        """Format recent conversation history for the chat composer.

        Returns:
            List of message dictionaries with 'role' and 'content' keys
        """
        messages = self.get_recent_messages(session_id)

        # Only role and content reach the model
        history = [{"role": msg["role"], "content": msg["content"]} for msg in messages]

        logger.debug(
            "conversation_history_formatted",
            session_id=session_id,
            message_count=len(history),
        )
        return history

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        return db.get_session(session_id)

    def list_sessions(self, limit: int = 50) -> List[Dict[str, Any]]:
        return db.list_sessions(limit)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session and all its messages.

        Returns:
            True if deleted, False if not found
        """
        deleted = db.delete_session(session_id)
        if deleted:
            logger.info("conversation_session_deleted", session_id=session_id)
        return deleted

    def update_session_title(self, session_id: str, first_message: str) -> str:
        title = make_title(first_message)
        db.update_session_title(session_id, title)
        logger.info("session_title_updated", session_id=session_id, title=title)
        return title
