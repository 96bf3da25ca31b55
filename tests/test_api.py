"""
Tests for the HTTP API

Runs every endpoint through FastAPI's TestClient against an in-memory
database and fake engines.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_services
from api.main import app
from citetrack.services import build_services
from citetrack.utils.config import Settings

from conftest import CITING_ANSWER, FakeEngineClient, FakeEngineClients


@pytest.fixture
def services(session_factory):
    clients = FakeEngineClients({
        "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
        "Perplexity": FakeEngineClient("Perplexity", "", allows_empty_response=True),
    })
    settings = Settings(BATCH_DELAY_SECONDS=0, USER_DELAY_SECONDS=0)
    return build_services(settings=settings, session_factory=session_factory, clients=clients)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def tracked(seed):
    user = seed.user(plan="pro")
    seed.domain(user, "acme.com")
    query = seed.query(user, "best trail shoes?", engines=["ChatGPT", "Gemini"])
    return user, query


# ============================================================================
# Engine Endpoints
# ============================================================================

class TestEngineEndpoints:
    """Test the per-engine endpoints."""

    def test_openai_success(self, client, tracked):
        _, query = tracked
        response = client.post("/api/process-openai-query", json={
            "queryId": query.id,
            "queryText": query.query_text,
            "userDomains": ["acme.com"],
            "brandKeywords": ["acme"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["engine"] == "ChatGPT"
        assert data["queryId"] == query.id
        assert data["citation"]["cited"] is True
        assert data["citation"]["position"] == "top"
        assert data["citation"]["matchedKeywords"] == ["acme.com", "acme"]

    def test_perplexity_empty_answer(self, client, tracked):
        _, query = tracked
        response = client.post("/api/process-perplexity-query", json={
            "queryId": query.id,
            "queryText": query.query_text,
            "userDomains": ["acme.com"],
        })

        assert response.status_code == 200
        assert response.json()["citation"]["cited"] is False

    def test_gemini_without_key(self, client, tracked):
        _, query = tracked
        response = client.post("/api/process-gemini-query", json={
            "queryId": query.id,
            "queryText": query.query_text,
        })

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "engine": "Gemini",
            "queryId": query.id,
            "error": "Gemini API key not configured",
        }

    def test_missing_fields(self, client):
        response = client.post("/api/process-openai-query", json={"queryId": "abc"})

        assert response.status_code == 500
        assert response.json()["error"] == "Missing required fields: queryId, queryText"


# ============================================================================
# Batch Endpoint
# ============================================================================

class TestBatchEndpoint:
    """Test /api/process-query-batch."""

    def test_batch(self, client, tracked):
        user, query = tracked
        response = client.post("/api/process-query-batch", json={
            "userId": user.id,
            "engines": ["ChatGPT", "Gemini"],
            "priority": "high",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["totalQueries"] == 1
        assert data["processedCount"] == 1
        assert data["failedCount"] == 1
        assert {s["engine"]: s["status"] for s in data["statuses"]} == {
            "ChatGPT": "completed",
            "Gemini": "failed",
        }

    def test_missing_user_id(self, client):
        response = client.post("/api/process-query-batch", json={})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Missing required field: userId"}

    def test_user_without_queries(self, client, seed):
        user = seed.user()
        response = client.post("/api/process-query-batch", json={"userId": user.id})

        assert response.status_code == 200
        assert response.json()["processedCount"] == 0
        assert response.json()["message"] == "No queries to process"


# ============================================================================
# Scheduler Endpoint
# ============================================================================

class TestSchedulerEndpoint:
    """Test /api/query-scheduler."""

    def test_manual_run(self, client, tracked):
        response = client.post("/api/query-scheduler", json={"type": "manual"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["type"] == "manual"
        assert data["summary"]["totalUsers"] == 1
        assert data["summary"]["processedUsers"] == 1
        assert data["message"] == "Processed 1 users and 1 queries"

    def test_defaults_to_daily(self, client):
        response = client.post("/api/query-scheduler", json={})

        assert response.status_code == 200
        assert response.json()["type"] == "daily"
        assert response.json()["summary"]["totalUsers"] == 0

    def test_unknown_type_rejected(self, client):
        response = client.post("/api/query-scheduler", json={"type": "hourly"})
        assert response.status_code == 422


# ============================================================================
# Citations, Health and CORS
# ============================================================================

class TestCitationsEndpoint:
    """Test /api/users/{user_id}/citations."""

    def test_history_and_stats(self, client, tracked):
        user, query = tracked
        client.post("/api/process-openai-query", json={
            "queryId": query.id,
            "queryText": query.query_text,
            "userDomains": ["acme.com"],
            "brandKeywords": ["acme"],
        })
        client.post("/api/process-perplexity-query", json={
            "queryId": query.id,
            "queryText": query.query_text,
            "userDomains": ["acme.com"],
        })

        response = client.get(f"/api/users/{user.id}/citations")

        assert response.status_code == 200
        data = response.json()
        assert len(data["citations"]) == 2
        assert data["citations"][0]["queryText"] == "best trail shoes?"
        assert data["stats"]["total"] == 2
        assert data["stats"]["cited"] == 1
        assert data["stats"]["visibilityScore"] == 50
        assert len(data["recentActivity"]) == 2


class TestAppSurface:
    """Test health checks and CORS preflight."""

    def test_root(self, client):
        response = client.get("/")
        assert response.json() == {"status": "ok", "service": "Citetrack"}

    def test_preflight(self, client):
        response = client.options("/api/process-openai-query", headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type, authorization",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.parametrize("path", [
        "/api/process-query-batch",
        "/api/query-scheduler",
        "/api/process-gemini-query",
    ])
    def test_bare_options_gets_cors_headers(self, client, path):
        response = client.options(path)

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert "x-client-info" in response.headers["access-control-allow-headers"]

    def test_post_routes_unaffected_by_options_fallback(self, client):
        response = client.post("/api/process-query-batch", json={})
        assert response.status_code == 500
        assert response.json()["error"] == "Missing required field: userId"
