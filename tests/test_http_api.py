"""
Tests for HTTP API endpoints.

Services are replaced through override_services(): storage and the
vector index are real (temporary), GitHub is a double.
"""

import json
import time
from unittest.mock import MagicMock

import pytest
from factories import fake_github, make_document, remote_dir, remote_file, tree
from fastapi.testclient import TestClient

from pf2e_oracle.cleanup import OrphanCleanupService
from pf2e_oracle.exceptions import GitHubAuthError, GitHubServerError, LLMUnavailableError
from pf2e_oracle.importer import FoundryImportService
from pf2e_oracle.ingestion import IngestionService
from pf2e_oracle.jobs import AsyncJobExecutor, JobKind, JobStore
from pf2e_oracle.search import RagService


@pytest.fixture
def github():
    listing = tree(
        remote_dir("packs/pf2e/spells"),
        remote_file("packs/pf2e/spells/fireball.json", "h1"),
        remote_file("packs/pf2e/spells/heal.json", "h2"),
    )
    files = {
        "packs/pf2e/spells/fireball.json": json.dumps(make_document()),
        "packs/pf2e/spells/heal.json": json.dumps(make_document(name="Heal", level=1, traits=("healing",))),
    }
    github = fake_github(listing, files)
    github.list_categories.return_value = ["spells"]
    return github


@pytest.fixture
def chat_service():
    return MagicMock()


@pytest.fixture
def api_client(github, entry_store, vector_index, chat_service):
    """Create a test client wired to temporary storage."""
    from pf2e_oracle.configs.services import override_services, reset_services

    reset_services()
    override_services(
        entries=entry_store,
        vector_index=vector_index,
        github=github,
        import_jobs=JobStore(JobKind.IMPORT),
        ingestion_jobs=JobStore(JobKind.INGESTION),
        job_executor=AsyncJobExecutor(max_workers=2),
        import_service=FoundryImportService(github, entry_store),
        ingestion_service=IngestionService(entry_store, vector_index),
        cleanup_service=OrphanCleanupService(github, entry_store, vector_index),
        rag=RagService(vector_index),
        chat=chat_service,
    )

    from pf2e_oracle.http import app

    yield TestClient(app)

    reset_services()


def wait_for_job(client: TestClient, location: str, timeout: float = 10.0) -> dict:
    """Poll a job URL until it reaches a terminal status."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        job = client.get(location).json()
        if job["status"] in ("completed", "failed"):
            return job
        time.sleep(0.02)
    raise AssertionError(f"Job at {location} did not finish")


class TestImportEndpoints:
    """Tests for /api/import."""

    def test_import_all_returns_202_with_location(self, api_client):
        response = api_client.post("/api/import/all")

        assert response.status_code == 202
        body = response.json()
        assert body["target"] == "ALL"
        assert body["kind"] == "import"
        assert response.headers["Location"] == f"/api/import/jobs/{body['id']}"

        job = wait_for_job(api_client, response.headers["Location"])
        assert job["status"] == "completed"
        assert job["result"]["imported"] == 2
        assert job["progress"]["processed"] == 2

    def test_import_category(self, api_client, entry_store):
        response = api_client.post("/api/import/categories/spells")

        job = wait_for_job(api_client, response.headers["Location"])

        assert job["target"] == "spells"
        assert job["status"] == "completed"
        assert entry_store.count() == 2

    def test_failed_listing_fails_job(self, api_client, github):
        github.fetch_tree.side_effect = GitHubServerError("GitHub server error", status_code=502)

        response = api_client.post("/api/import/all")
        job = wait_for_job(api_client, response.headers["Location"])

        assert job["status"] == "failed"
        assert "GitHub server error" in job["error_message"]

    def test_jobs_listed(self, api_client):
        created = api_client.post("/api/import/all").json()
        wait_for_job(api_client, f"/api/import/jobs/{created['id']}")

        jobs = api_client.get("/api/import/jobs").json()

        assert [job["id"] for job in jobs] == [created["id"]]

    def test_unknown_job_is_problem_404(self, api_client):
        response = api_client.get("/api/import/jobs/does-not-exist")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
        problem = response.json()
        assert problem["status"] == 404
        assert problem["type"].endswith("/job-not-found")
        assert problem["instance"] == "/api/import/jobs/does-not-exist"

    def test_invalid_category_is_problem_400(self, api_client):
        response = api_client.post("/api/import/categories/..")

        assert response.status_code == 400
        assert response.json()["type"].endswith("/invalid-argument")

    def test_list_categories(self, api_client):
        assert api_client.get("/api/import/categories").json() == ["spells"]

    def test_github_auth_error_passed_through(self, api_client, github):
        github.list_categories.side_effect = GitHubAuthError("Bad credentials", status_code=401)

        response = api_client.get("/api/import/categories")

        assert response.status_code == 401
        assert response.json()["statusCode"] == 401

    def test_github_server_error_is_bad_gateway(self, api_client, github):
        github.list_categories.side_effect = GitHubServerError("Server error", status_code=500)

        assert api_client.get("/api/import/categories").status_code == 502

    def test_stats(self, api_client, save_entry):
        save_entry("packs/pf2e/spells/fireball.json", make_document())
        save_entry("packs/pf2e/feats/power.json", make_document(name="Power Attack", doc_type="feat"))

        assert api_client.get("/api/import/stats").json() == {
            "total": 2,
            "by_type": {"feat": 1, "spell": 1},
        }


class TestCleanupEndpoints:
    def test_preview_and_cleanup(self, api_client, save_entry, entry_store):
        save_entry("packs/pf2e/spells/fireball.json", make_document())
        gone = save_entry("packs/pf2e/spells/removed.json", make_document(name="Removed"))

        preview = api_client.get("/api/import/cleanup/preview").json()
        assert preview == [
            {"id": gone.id, "source_path": "packs/pf2e/spells/removed.json", "category": "spells"}
        ]
        assert entry_store.count() == 2

        result = api_client.post("/api/import/cleanup").json()
        assert result["deleted_from_database"] == 1
        assert result["orphan_paths"] == ["packs/pf2e/spells/removed.json"]
        assert entry_store.count() == 1


class TestIngestionEndpoints:
    """Tests for /api/ingestion."""

    def test_ingest_all_then_search(self, api_client, save_entry):
        save_entry("packs/pf2e/spells/fireball.json", make_document())

        response = api_client.post("/api/ingestion/all")
        assert response.status_code == 202
        assert response.headers["Location"].startswith("/api/ingestion/jobs/")
        job = wait_for_job(api_client, response.headers["Location"])
        assert job["status"] == "completed"
        assert job["result"]["processed"] == 1

        results = api_client.get("/api/search", params={"q": "fire blast", "category": "spell"}).json()
        assert results["result_count"] == 1
        assert results["results"][0]["name"] == "Fireball"

    def test_force_category(self, api_client, save_entry):
        save_entry("packs/pf2e/spells/fireball.json", make_document())
        first = api_client.post("/api/ingestion/all").headers["Location"]
        wait_for_job(api_client, first)

        again = api_client.post("/api/ingestion/categories/spell", params={"force": "true"})
        job = wait_for_job(api_client, again.headers["Location"])

        assert job["target"] == "spell"
        assert job["result"]["processed"] == 1

    def test_stats_and_types(self, api_client, save_entry):
        save_entry("packs/pf2e/spells/fireball.json", make_document())
        save_entry("packs/pf2e/feats/power.json", make_document(name="Power Attack", doc_type="feat"))

        assert api_client.get("/api/ingestion/types").json() == [
            {"type": "feat", "count": 1},
            {"type": "spell", "count": 1},
        ]
        assert api_client.get("/api/ingestion/stats").json() == {
            "total_entries": 2,
            "vectorized_entries": 0,
            "pending_entries": 2,
            "index_records": 0,
        }

    def test_unknown_job(self, api_client):
        assert api_client.get("/api/ingestion/jobs/nope").status_code == 404


class TestSearchAndChat:
    def test_search_validation(self, api_client):
        assert api_client.get("/api/search").status_code == 422
        assert api_client.get("/api/search", params={"q": "x", "limit": 0}).status_code == 422

    def test_search_empty_index(self, api_client):
        body = api_client.get("/api/search", params={"q": "fireball"}).json()
        assert body == {"query": "fireball", "result_count": 0, "results": []}

    def test_chat(self, api_client, chat_service):
        chat_service.chat.return_value = "Feuerball (Fireball) verursacht 6W6 Feuerschaden."

        response = api_client.post("/api/chat", json={"message": "Wie viel Schaden macht Feuerball?"})

        assert response.status_code == 200
        assert response.json() == {"response": "Feuerball (Fireball) verursacht 6W6 Feuerschaden."}
        chat_service.chat.assert_called_once_with("Wie viel Schaden macht Feuerball?")

    def test_chat_requires_message(self, api_client):
        assert api_client.post("/api/chat", json={"message": ""}).status_code == 422

    def test_chat_without_provider(self, api_client, chat_service):
        chat_service.chat.side_effect = LLMUnavailableError("No LLM providers available")

        response = api_client.post("/api/chat", json={"message": "What is flanking?"})

        assert response.status_code == 503
        assert response.json()["type"].endswith("/llm-unavailable")


class TestInfrastructure:
    def test_health(self, api_client):
        assert api_client.get("/health").json() == {"status": "healthy"}

    def test_info(self, api_client):
        from pf2e_oracle import __version__

        body = api_client.get("/info").json()
        assert body["version"] == __version__
        assert body["startup_time"]

    def test_correlation_id_echoed(self, api_client):
        response = api_client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, api_client):
        response = api_client.get("/health")
        assert len(response.headers["X-Correlation-ID"]) == 36

    def test_correlation_id_on_problem_responses(self, api_client):
        response = api_client.get("/api/import/jobs/nope", headers={"X-Correlation-ID": "trace-1"})
        assert response.headers["X-Correlation-ID"] == "trace-1"
