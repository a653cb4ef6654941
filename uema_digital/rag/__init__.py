"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- Embedding generation with an LRU cache
- Cosine similarity ranking
- Cross-encoder reranking
- Keyword fallback ranking
- Strategy selection and retrieval
- Grounded chat prompt composition
"""
