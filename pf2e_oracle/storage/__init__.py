"""
PF2e Oracle Storage Layer

Relational entry storage (SQLAlchemy) and the ChromaDB vector index.
"""

from pf2e_oracle.storage.chromadb import (
    get_chroma_client,
    get_or_create_collection,
)
from pf2e_oracle.storage.database import (
    create_db_engine,
    get_session_factory,
    init_db,
    session_scope,
)
from pf2e_oracle.storage.entries import EntryStore
from pf2e_oracle.storage.models import Base, StoredEntry
from pf2e_oracle.storage.vector_index import IndexRecord, SearchHit, VectorIndex

__all__ = [
    # Client management
    "get_chroma_client",
    "get_or_create_collection",
    # Relational
    "Base",
    "StoredEntry",
    "EntryStore",
    "create_db_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
    # Vector index
    "IndexRecord",
    "SearchHit",
    "VectorIndex",
]
