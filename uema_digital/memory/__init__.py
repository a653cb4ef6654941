"""Chat session persistence."""
from uema_digital.memory.manager import ConversationManager

__all__ = ["ConversationManager"]
