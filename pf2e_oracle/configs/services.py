"""
Shared Services

Thread-safe lazy-initialized services shared across HTTP endpoints and jobs.
Uses singleton pattern with double-checked locking for thread safety.
"""

from threading import RLock
from typing import Any, Optional

import chromadb
from sqlalchemy.orm import sessionmaker

from pf2e_oracle.cleanup import OrphanCleanupService
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.runtime import get_full_config
from pf2e_oracle.github import GitHubClient
from pf2e_oracle.importer import FoundryImportService
from pf2e_oracle.ingestion import IngestionService
from pf2e_oracle.jobs import AsyncJobExecutor, JobKind, JobStore
from pf2e_oracle.llm import get_provider
from pf2e_oracle.llm.chat import ChatService
from pf2e_oracle.search import RagService
from pf2e_oracle.storage import (
    EntryStore,
    VectorIndex,
    create_db_engine,
    get_chroma_client,
    get_or_create_collection,
    get_session_factory,
    init_db,
)

logger = get_logger("services")

# Runtime configuration (mutable)
CONFIG = get_full_config()


class ServiceManager:
    """
    Thread-safe singleton manager for all shared services.

    Provides lazy initialization of the database, ChromaDB collection,
    GitHub client, job stores and the services built on top of them -
    ensuring each is created only once even under concurrent access.
    """

    _instance: Optional["ServiceManager"] = None
    _lock = RLock()

    # Attributes that can be replaced through override()
    SERVICE_NAMES = (
        "session_factory",
        "entries",
        "chromadb_client",
        "collection",
        "vector_index",
        "github",
        "import_jobs",
        "ingestion_jobs",
        "job_executor",
        "import_service",
        "ingestion_service",
        "cleanup_service",
        "rag",
        "chat",
    )

    def __new__(cls) -> "ServiceManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._resource_lock = RLock()
        self._clear()
        self._initialized = True

    def _clear(self) -> None:
        for name in self.SERVICE_NAMES:
            setattr(self, f"_{name}", None)

    def _lazy(self, name: str, factory) -> Any:
        value = getattr(self, f"_{name}")
        if value is None:
            with self._resource_lock:
                value = getattr(self, f"_{name}")
                if value is None:
                    value = factory()
                    setattr(self, f"_{name}", value)
        return value

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def _create_session_factory(self) -> sessionmaker:
        engine = create_db_engine(CONFIG["database_url"])
        init_db(engine)
        logger.info(f"Database ready: {engine.url.render_as_string(hide_password=True)}")
        return get_session_factory(engine)

    @property
    def session_factory(self) -> sessionmaker:
        return self._lazy("session_factory", self._create_session_factory)

    @property
    def entries(self) -> EntryStore:
        return self._lazy("entries", lambda: EntryStore(self.session_factory))

    @property
    def chromadb_client(self) -> chromadb.ClientAPI:
        return self._lazy("chromadb_client", lambda: get_chroma_client(CONFIG["chroma_path"]))

    @property
    def collection(self) -> chromadb.Collection:
        """Get or create the ChromaDB collection."""
        return self._lazy(
            "collection",
            lambda: get_or_create_collection(self.chromadb_client, CONFIG["collection_name"]),
        )

    @property
    def vector_index(self) -> VectorIndex:
        return self._lazy("vector_index", lambda: VectorIndex(self.collection))

    # -------------------------------------------------------------------------
    # Remote source and jobs
    # -------------------------------------------------------------------------

    @property
    def github(self) -> GitHubClient:
        return self._lazy(
            "github",
            lambda: GitHubClient(
                repository=CONFIG["github"]["repository"],
                token=CONFIG["github"]["token"],
            ),
        )

    @property
    def import_jobs(self) -> JobStore:
        return self._lazy("import_jobs", lambda: JobStore(JobKind.IMPORT))

    @property
    def ingestion_jobs(self) -> JobStore:
        return self._lazy("ingestion_jobs", lambda: JobStore(JobKind.INGESTION))

    @property
    def job_executor(self) -> AsyncJobExecutor:
        return self._lazy("job_executor", AsyncJobExecutor)

    # -------------------------------------------------------------------------
    # Domain services
    # -------------------------------------------------------------------------

    @property
    def import_service(self) -> FoundryImportService:
        return self._lazy(
            "import_service",
            lambda: FoundryImportService(
                self.github,
                self.entries,
                max_parallel_downloads=CONFIG["github"]["max_parallel_downloads"],
                path_prefix=CONFIG["import"]["path_prefix"],
                progress_interval=CONFIG["import"]["progress_interval"],
            ),
        )

    @property
    def ingestion_service(self) -> IngestionService:
        return self._lazy(
            "ingestion_service",
            lambda: IngestionService(
                self.entries,
                self.vector_index,
                max_parallel_embeddings=CONFIG["ingestion"]["max_parallel_embeddings"],
                batch_size=CONFIG["ingestion"]["batch_size"],
                progress_interval=CONFIG["import"]["progress_interval"],
            ),
        )

    @property
    def cleanup_service(self) -> OrphanCleanupService:
        return self._lazy(
            "cleanup_service",
            lambda: OrphanCleanupService(
                self.github,
                self.entries,
                self.vector_index,
                path_prefix=CONFIG["import"]["path_prefix"],
            ),
        )

    @property
    def rag(self) -> RagService:
        return self._lazy("rag", lambda: RagService(self.vector_index))

    @property
    def chat(self) -> ChatService:
        """Get the chat service. Raises LLMUnavailableError if no provider is reachable."""
        return self._lazy(
            "chat",
            lambda: ChatService(self.rag, get_provider(CONFIG)),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def shutdown(self) -> None:
        """Stop background jobs. Safe to call when nothing was started."""
        with self._resource_lock:
            executor = self._job_executor
        if executor is not None and not executor.is_shutdown:
            executor.shutdown(wait=True)

    def reset(self) -> None:
        """Reset all services (for testing)."""
        self.shutdown()
        with self._resource_lock:
            self._clear()

    def override(self, **services: Any) -> None:
        """Replace services directly (for testing)."""
        with self._resource_lock:
            for name, value in services.items():
                if name not in self.SERVICE_NAMES:
                    raise ValueError(f"Unknown service: {name}")
                setattr(self, f"_{name}", value)


# Module-level singleton instance
_services = ServiceManager()


# --- Public API ---


def get_services() -> ServiceManager:
    """Get the shared service manager."""
    return _services


def get_entry_store() -> EntryStore:
    return _services.entries


def get_vector_index() -> VectorIndex:
    return _services.vector_index


def get_import_service() -> FoundryImportService:
    return _services.import_service


def get_ingestion_service() -> IngestionService:
    return _services.ingestion_service


def get_cleanup_service() -> OrphanCleanupService:
    return _services.cleanup_service


def get_rag_service() -> RagService:
    return _services.rag


def get_chat_service() -> ChatService:
    return _services.chat


def get_import_jobs() -> JobStore:
    return _services.import_jobs


def get_ingestion_jobs() -> JobStore:
    return _services.ingestion_jobs


def get_job_executor() -> AsyncJobExecutor:
    return _services.job_executor


def shutdown_services() -> None:
    """Stop background work on application shutdown."""
    _services.shutdown()


def reset_services() -> None:
    """Reset all lazy-initialized services (for testing)."""
    _services.reset()


def override_services(**services: Any) -> None:
    """Replace services directly (for testing)."""
    _services.override(**services)
