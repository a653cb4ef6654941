#!/usr/bin/env python
"""Validate setup - check dependencies, configuration and the Cohere API."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("UEMA Digital - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 11):
        print_success("Python version >= 3.11")
    else:
        print_error("Python version < 3.11 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("numpy", "Vector math"),
        ("pydantic", "Data validation"),
        ("yaml", "YAML seed files"),
        ("structlog", "Structured logging"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Configuration and database
    print_section("3. Configuration")

    try:
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from uema_digital import config, db

        print_success("Config loaded successfully")
        print_info(f"  Chat model: {config.CHAT_MODEL}")
        print_info(f"  Embedding model: {config.EMBEDDING_MODEL}")
        print_info(f"  Rerank model: {config.RERANK_MODEL}")
        print_info(f"  Rerank above: {config.RERANK_THRESHOLD} documents")
        print_info(f"  Database: {config.DB_PATH}")

        db.init_database()
        count = db.get_document_count()
        print_success(f"Database ready ({count} documents)")
        if count == 0:
            print_warning("No documents yet. Run: python scripts/seed_documents.py")
            warnings.append("Empty document store")

    except Exception as e:
        print_error(f"Failed to load config or database: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Cohere API
    print_section("4. Cohere API")

    if not config.provider_configured():
        print_warning("COHERE_API_KEY not set - search runs in keyword mode and chat is disabled")
        warnings.append("AI provider not configured")
    else:
        from uema_digital.rag.embeddings import EmbeddingClient

        vector = await EmbeddingClient().embed_query("teste")
        if vector:
            print_success(f"Embedding API working (dimension: {len(vector)})")
        else:
            print_error("Embedding API call failed (see logs)")
            errors.append("Embedding API unavailable")

    # 5. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
