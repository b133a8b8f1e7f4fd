"""Tests for health check routes"""
import time
from fastapi import FastAPI
from fastapi.testclient import TestClient
from app.api.routes.health import create_health_router


def make_client(**getters):
    app = FastAPI()
    app.include_router(create_health_router(start_time=time.time(), **getters))
    return TestClient(app)


class TestHealthRoutes:
    """Test health check and metrics endpoints"""

    def test_health_check_returns_healthy(self):
        """Should return healthy status"""
        response = make_client().get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "uptime" in data
        assert "version" in data

    def test_health_reports_running_and_queued_documents(self):
        client = make_client(active_tasks_getter=lambda: 2, in_flight_getter=lambda: 7)

        status = client.get("/api/v1/health").json()["pipeline_status"]

        assert status["running_documents"] == 2
        assert status["queued_documents"] == 5

    def test_metrics_endpoint(self):
        """Should return Prometheus metrics"""
        response = make_client().get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    def test_document_categories_endpoint(self):
        """Should list every category with its merge strategy"""
        response = make_client().get("/api/v1/document-categories")
        assert response.status_code == 200
        categories = {c["category"]: c for c in response.json()["categories"]}
        assert len(categories) == 11
        assert categories["MEDICAL_BILLS"] == {"category": "MEDICAL_BILLS", "strategy": "bills", "extracted": True}
        assert categories["PHOTOS"]["extracted"] is False
