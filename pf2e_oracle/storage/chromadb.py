"""
ChromaDB Client Management

Initialization and collection management for ChromaDB.
"""

import os
from typing import Any, Optional

import chromadb
from chromadb.config import Settings

from pf2e_oracle.configs.paths import get_default_chroma_path


def get_chroma_client(persist_dir: Optional[str] = None) -> chromadb.PersistentClient:
    """
    Initialize persistent ChromaDB client.

    Args:
        persist_dir: Directory for persistence (defaults to the data directory)

    Returns:
        ChromaDB PersistentClient instance
    """
    path = os.path.expanduser(persist_dir or get_default_chroma_path())
    os.makedirs(path, exist_ok=True)
    return chromadb.PersistentClient(
        path=path,
        settings=Settings(anonymized_telemetry=False),
    )


def get_or_create_collection(
    client: chromadb.ClientAPI,
    name: str = "pf2e_rules",
    embedding_function: Optional[Any] = None,
) -> chromadb.Collection:
    """
    Get or create the rules collection with cosine similarity.

    Args:
        client: ChromaDB client
        name: Collection name
        embedding_function: Override ChromaDB's default embedding model

    Returns:
        ChromaDB Collection
    """
    kwargs: dict[str, Any] = {"name": name, "metadata": {"hnsw:space": "cosine"}}
    if embedding_function is not None:
        kwargs["embedding_function"] = embedding_function
    return client.get_or_create_collection(**kwargs)

