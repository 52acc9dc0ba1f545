"""
Pytest fixtures for PF2e Oracle tests.
"""

import hashlib
import json
import math
import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path for entrypoint imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before any pf2e_oracle.configs import reads it
os.environ["PF2E_DATA_PATH"] = tempfile.mkdtemp(prefix="pf2e_oracle_test_")

from chromadb import Documents, EmbeddingFunction, Embeddings  # noqa: E402

EMBEDDING_DIMENSIONS = 64
WORD = re.compile(r"[a-z0-9]+")


class HashingEmbeddingFunction(EmbeddingFunction):
    """
    Deterministic bag-of-words embeddings for tests.

    Texts sharing words land close together, and no model is downloaded.
    """

    def __init__(self) -> None:
        pass

    def __call__(self, input: Documents) -> Embeddings:
        return [self._embed(text) for text in input]

    @staticmethod
    def _embed(text: str) -> list[float]:
        vector = [0.0] * EMBEDDING_DIMENSIONS
        vector[0] = 0.1  # keeps empty texts off the zero vector
        for word in WORD.findall(text.lower()):
            digest = hashlib.md5(word.encode()).digest()
            vector[1 + digest[0] % (EMBEDDING_DIMENSIONS - 1)] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_chroma_client():
    """Create a temporary ChromaDB client for testing."""
    import chromadb
    from chromadb.config import Settings

    with tempfile.TemporaryDirectory() as tmpdir:
        client = chromadb.PersistentClient(
            path=tmpdir,
            settings=Settings(anonymized_telemetry=False),
        )
        yield client


@pytest.fixture
def embedding_function() -> HashingEmbeddingFunction:
    return HashingEmbeddingFunction()


@pytest.fixture
def temp_collection(temp_chroma_client, embedding_function):
    """Rules collection backed by the hashing embedding function."""
    from pf2e_oracle.storage import get_or_create_collection

    return get_or_create_collection(temp_chroma_client, "pf2e_rules_test", embedding_function=embedding_function)


@pytest.fixture
def vector_index(temp_collection):
    from pf2e_oracle.storage import VectorIndex

    return VectorIndex(temp_collection)


@pytest.fixture
def session_factory(temp_dir):
    """Session factory for a fresh SQLite database file."""
    from pf2e_oracle.storage import create_db_engine, get_session_factory, init_db

    engine = create_db_engine(f"sqlite:///{temp_dir / 'entries.db'}")
    init_db(engine)
    yield get_session_factory(engine)
    engine.dispose()


@pytest.fixture
def entry_store(session_factory):
    from pf2e_oracle.storage import EntryStore

    return EntryStore(session_factory)


@pytest.fixture
def save_entry(entry_store):
    """Store a document under a path and return the saved entry."""

    def _save(path: str, document: dict, content_hash: str = "h1", category=None):
        return entry_store.save(
            source_path=path,
            content_hash=content_hash,
            source_id=document.get("_id", ""),
            category=category or document.get("type", "unknown"),
            name=document.get("name", ""),
            raw_content=json.dumps(document),
        )

    return _save
