"""Tests for chronology routes"""
import asyncio
from datetime import date
import json
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from app.adapters.storage.memory_repository import InMemoryCaseRepository
from app.api.rate_limit import limiter
from app.api.routes.chronology import create_chronology_router
from app.core.builders.chronology_builder import ChronologyEngine
from app.core.exceptions import LLMError
from app.core.extraction.retry_utils import RetryConfig
from app.core.models.case import Case
from app.core.models.medical_event import MedicalEvent
from app.core.ports.llm import LLMPort, ModelConfig


@pytest.fixture(autouse=True)
def rate_limits_off():
    """Route tests share one limiter; its counters must not leak between tests"""
    limiter.enabled = False
    yield
    limiter.enabled = True


class ScriptedLLM(LLMPort):
    """Answers each prompt by the first marker found in it."""

    ANSWERS = {
        "Suggest a reasonable explanation": json.dumps([
            {"startDate": "2024-01-15", "endDate": "2024-04-01", "explanation": "Waiting on MRI approval",
             "impact": "low"},
        ]),
        "chronological medical treatment narrative": "Jane was treated for neck pain.",
        "executive summary for this case": "Soft tissue injury with ongoing care.",
    }

    def get_model_config(self, model):
        return ModelConfig("scripted", "test", 100, 0.0, 10.0, 1000, "")

    async def generate(self, prompt, model, max_tokens=None, temperature=None, system=None):
        for marker, answer in self.ANSWERS.items():
            if marker in prompt:
                return answer
        raise LLMError("no scripted answer")


def seed(repo, with_events=True):
    asyncio.run(repo.save_case(Case(id="case-1", client_first_name="Jane", client_last_name="Doe")))
    if not with_events:
        return
    events = [
        MedicalEvent(id="e1", case_id="case-1", document_id="doc-1", date_of_service=date(2024, 1, 15),
                     provider_name="City ER", provider_type="Emergency Room", total_charge=1200.0,
                     insurance_paid=800.0, vital_signs={"pain_score": 7}),
        MedicalEvent(id="e2", case_id="case-1", document_id="doc-1", date_of_service=date(2024, 4, 1),
                     provider_name="Dr. Lee", provider_type="Specialist", total_charge=300.5,
                     patient_responsibility=60.0),
    ]
    for event in events:
        asyncio.run(repo.save_medical_event(event))


class TestChronologyRoutes:
    @pytest.fixture
    def repo(self):
        return InMemoryCaseRepository()

    @pytest.fixture
    def client(self, repo):
        engine = ChronologyEngine(repository=repo, llm=ScriptedLLM(), retry_config=RetryConfig.disabled())
        app = FastAPI()
        app.include_router(create_chronology_router(repository=repo, chronology_engine=engine))
        return TestClient(app)

    def test_generate_returns_chronology(self, client, repo):
        seed(repo)

        response = client.post("/api/v1/cases/case-1/chronology/generate")

        assert response.status_code == 200
        data = response.json()
        assert data["totalVisits"] == 2
        assert data["totalMedicalCosts"] == 1500.5
        assert data["treatmentGaps"] == [{
            "startDate": "2024-01-15", "endDate": "2024-04-01", "durationDays": 77,
            "explanation": "Waiting on MRI approval", "impact": "low",
        }]
        assert data["executiveSummary"] == "Soft tissue injury with ongoing care."

    def test_generate_without_events_is_rejected(self, client, repo):
        seed(repo, with_events=False)

        response = client.post("/api/v1/cases/case-1/chronology/generate")

        assert response.status_code == 400
        assert "No medical events" in response.json()["detail"]

    def test_unknown_case_is_404(self, client):
        for path in ("", "/timeline", "/gaps", "/pain-history", "/costs", "/narrative"):
            assert client.get(f"/api/v1/cases/case-404/chronology{path}").status_code == 404

    def test_chronology_not_generated_yet(self, client, repo):
        seed(repo)

        assert client.get("/api/v1/cases/case-1/chronology").status_code == 404
        assert client.get("/api/v1/cases/case-1/chronology/narrative").status_code == 404
        assert client.get("/api/v1/cases/case-1/chronology/gaps").json() == {"gaps": [], "hasGaps": False}
        assert client.get("/api/v1/cases/case-1/chronology/pain-history").json() == []

    def test_reads_after_generation(self, client, repo):
        seed(repo)
        client.post("/api/v1/cases/case-1/chronology/generate")

        gaps = client.get("/api/v1/cases/case-1/chronology/gaps").json()
        assert gaps["hasGaps"] is True
        assert gaps["gaps"][0]["durationDays"] == 77

        pain = client.get("/api/v1/cases/case-1/chronology/pain-history").json()
        assert [(p["date"], p["score"]) for p in pain] == [("2024-01-15", 7.0)]

        narrative = client.get("/api/v1/cases/case-1/chronology/narrative").json()
        assert narrative == {
            "narrative": "Jane was treated for neck pain.",
            "executiveSummary": "Soft tissue injury with ongoing care.",
        }

        timeline = client.get("/api/v1/cases/case-1/chronology/timeline").json()
        assert [e["id"] for e in timeline["events"]] == ["e1", "e2"]
        assert timeline["dateRange"] == {"start": "2024-01-15", "end": "2024-04-01"}

    def test_cost_breakdown(self, client, repo):
        seed(repo)
        client.post("/api/v1/cases/case-1/chronology/generate")

        costs = client.get("/api/v1/cases/case-1/chronology/costs").json()

        assert costs["totalCosts"] == 1500.5
        assert costs["byProvider"] == [
            {"provider": "City ER", "amount": 1200.0},
            {"provider": "Dr. Lee", "amount": 300.5},
        ]
        assert {"type": "Specialist", "amount": 300.5} in costs["byProviderType"]
        assert costs["events"][0] == {
            "date": "2024-01-15", "provider": "City ER", "type": "Emergency Room",
            "charge": 1200.0, "paid": 800.0, "balance": 0.0,
        }
