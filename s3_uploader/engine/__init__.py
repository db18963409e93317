"""
Engine Module — Ingestion state machine and URL rewriting.
"""

from .ingest import IngestionOrchestrator, relative_key
from .rewrite import UrlRewriter

__all__ = ["IngestionOrchestrator", "UrlRewriter", "relative_key"]
