"""
Vector Ingestion

Metadata projection, index record building and batch embedding.
"""

from pf2e_oracle.ingestion.documents import DocumentBuilder
from pf2e_oracle.ingestion.metadata import extract_metadata
from pf2e_oracle.ingestion.service import IngestionResult, IngestionService

__all__ = [
    "DocumentBuilder",
    "IngestionResult",
    "IngestionService",
    "extract_metadata",
]
