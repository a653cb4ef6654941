"""UEMA Digital: document repository backend with grounded AI search and chat."""

__version__ = "0.1.0"
