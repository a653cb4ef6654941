"""Application configuration with sensible defaults."""
import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))

# Cohere configuration
COHERE_API_KEY = os.getenv("COHERE_API_KEY", "")
COHERE_BASE_URL = os.getenv("COHERE_BASE_URL", "https://api.cohere.ai/v1")
CHAT_MODEL = os.getenv("CHAT_MODEL", "command-r7b-12-2024")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "embed-multilingual-v3.0")
RERANK_MODEL = os.getenv("RERANK_MODEL", "rerank-multilingual-v3.0")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30.0"))

# Retrieval parameters (character-based)
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "5"))
RERANK_THRESHOLD = int(os.getenv("RERANK_THRESHOLD", "10"))  # rerank above this many candidates
RERANK_CONTENT_CHARS = int(os.getenv("RERANK_CONTENT_CHARS", "1000"))
EMBEDDING_CACHE_SIZE = int(os.getenv("EMBEDDING_CACHE_SIZE", "1024"))
EMBEDDING_CACHE_KEY_CHARS = int(os.getenv("EMBEDDING_CACHE_KEY_CHARS", "500"))
EMBEDDING_MAX_CHARS = int(os.getenv("EMBEDDING_MAX_CHARS", "2000"))

# Chat
CHAT_CONTENT_CHARS = int(os.getenv("CHAT_CONTENT_CHARS", "500"))
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
CONTEXT_WINDOW_SIZE = int(os.getenv("CONTEXT_WINDOW_SIZE", "6"))
MAX_MESSAGE_CHARS = int(os.getenv("MAX_MESSAGE_CHARS", "2000"))

# Database
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "uema_digital.sqlite")))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def provider_configured(api_key: str = None) -> bool:
    """Return True when a usable Cohere API key is present."""
    key = COHERE_API_KEY if api_key is None else api_key
    return bool(key) and len(key) > 10
