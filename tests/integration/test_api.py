"""
Integration Tests - HTTP API
"""
import uuid

import httpx
import pytest

from insight_engine.analytics.engine import EngineContext, InsightEngine
from insight_engine.database.store import InsightRepository, SqlAlchemyBusinessStore
from insight_engine.main import create_app

HEADERS = {"X-User-ID": "user-1"}


@pytest.fixture
def app(seeded, test_settings):
    """Application wired to the seeded database without running the lifespan"""
    application = create_app()
    application.state.session_factory = seeded.factory
    application.state.engine = InsightEngine(EngineContext(
        settings=test_settings,
        store=SqlAlchemyBusinessStore(seeded.factory),
        insights=InsightRepository(seeded.factory),
        llm=None,
    ))
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


class TestHealthEndpoints:
    """Tests for health checks"""

    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["llm"]["status"] in ("configured", "rules_only")

    async def test_live_and_ready(self, client):
        assert (await client.get("/api/v1/health/live")).json() == {"status": "alive"}
        assert (await client.get("/api/v1/health/ready")).json() == {"status": "ready"}

    async def test_request_headers(self, client):
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Response-Time"].endswith("ms")

    async def test_ready_without_database(self):
        application = create_app()
        transport = httpx.ASGITransport(app=application)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            response = await http.get("/api/v1/health/ready")

        assert response.status_code == 503


class TestAnalyticsEndpoints:
    """Tests for summary and report"""

    async def test_summary(self, client):
        response = await client.get("/api/v1/analytics/summary", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["inventory_count"] == 2
        assert body["low_stock_count"] == 1
        assert body["recent_sales_count"] == 3
        assert body["recent_revenue"] == pytest.approx(408.5)
        assert body["top_products"][0]["name"] == "Cordless Drill"

    async def test_report(self, client):
        response = await client.get("/api/v1/analytics/report", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["forecast"] == {"revenue": 470, "sales": 3, "confidence": 85}
        assert body["anomalies"][0]["severity"] == "high"
        assert len(body["revenue_trend"]) == 30
        assert len(body["monthly_revenue"]) == 6
        assert 0 <= body["optimization_score"] <= 100

    async def test_missing_caller_header(self, client):
        response = await client.get("/api/v1/analytics/summary")

        assert response.status_code == 401

    async def test_other_caller_sees_only_own_data(self, client):
        response = await client.get("/api/v1/analytics/summary", headers={"X-User-ID": "user-2"})

        body = response.json()
        assert body["inventory_count"] == 1
        assert body["recent_revenue"] == pytest.approx(999.0)


class TestQueryEndpoint:
    """Tests for question answering"""

    async def test_rule_based_answer(self, client):
        response = await client.post("/api/v1/query", json={"question": "How is my inventory?"}, headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["answered_by"] == "rules"
        assert body["confidence"] == 90
        assert "2 items" in body["answer"]

    async def test_blank_question(self, client):
        response = await client.post("/api/v1/query", json={"question": "   "}, headers=HEADERS)

        assert response.status_code == 400

    async def test_missing_question(self, client):
        response = await client.post("/api/v1/query", json={}, headers=HEADERS)

        assert response.status_code == 422

    async def test_question_requires_caller(self, client):
        response = await client.post("/api/v1/query", json={"question": "profit?"})

        assert response.status_code == 401


class TestInsightEndpoints:
    """Tests for insight generation and acknowledgement"""

    async def test_generate_list_and_mark_read(self, client):
        generated = await client.post("/api/v1/insights/generate", headers=HEADERS)

        assert generated.status_code == 201
        insights = generated.json()
        types = [insight["insight_type"] for insight in insights]
        assert types[0] == "anomaly"
        assert "forecast" in types
        assert all(insight["is_read"] is False for insight in insights)

        listed = (await client.get("/api/v1/insights", headers=HEADERS)).json()
        assert len(listed) == len(insights)

        target = insights[0]["id"]
        marked = await client.post(f"/api/v1/insights/{target}/read", headers=HEADERS)
        assert marked.status_code == 200
        assert marked.json()["is_read"] is True

        unread = (await client.get("/api/v1/insights", params={"unread_only": "true"}, headers=HEADERS)).json()
        assert target not in [insight["id"] for insight in unread]
        assert len(unread) == len(insights) - 1

    async def test_generation_appends(self, client):
        first = (await client.post("/api/v1/insights/generate", headers=HEADERS)).json()
        await client.post("/api/v1/insights/generate", headers=HEADERS)

        listed = (await client.get("/api/v1/insights", headers=HEADERS)).json()
        assert len(listed) == 2 * len(first)

    async def test_mark_read_unknown(self, client):
        response = await client.post(f"/api/v1/insights/{uuid.uuid4()}/read", headers=HEADERS)

        assert response.status_code == 404

    async def test_mark_read_other_callers_insight(self, client):
        generated = (await client.post("/api/v1/insights/generate", headers=HEADERS)).json()

        response = await client.post(
            f"/api/v1/insights/{generated[0]['id']}/read",
            headers={"X-User-ID": "user-2"},
        )

        assert response.status_code == 404

    async def test_info(self, client):
        body = (await client.get("/api/v1/info")).json()

        assert body["name"] == "Inventory Insights API"
