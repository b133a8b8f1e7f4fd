"""Medical chronology routes"""
import logging
from collections import defaultdict

from fastapi import APIRouter, HTTPException, Request

from app.api.rate_limit import limiter
from app.core.builders.chronology_builder import ChronologyEngine
from app.core.builders.date_utils import format_date
from app.core.models.chronology import MedicalChronology
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)


def create_chronology_router(
    repository: CaseRepositoryPort,
    chronology_engine: ChronologyEngine,
) -> APIRouter:
    """Create chronology router with dependency injection.

    Args:
        repository: Case repository
        chronology_engine: Engine used for explicit (re)generation and reads

    Returns:
        APIRouter configured with chronology endpoints
    """
    router = APIRouter(tags=["Chronology"])

    async def require_case(case_id: str) -> None:
        if await repository.get_case(case_id) is None:
            raise HTTPException(status_code=404, detail="Case not found")

    async def require_chronology(case_id: str) -> MedicalChronology:
        await require_case(case_id)
        chronology = await chronology_engine.get_chronology(case_id)
        if chronology is None:
            raise HTTPException(status_code=404, detail="Chronology not generated yet")
        return chronology

    @router.post("/api/v1/cases/{case_id}/chronology/generate")
    @limiter.limit("5/minute")
    async def generate_chronology(request: Request, case_id: str):
        """Generate or regenerate the medical chronology"""
        await require_case(case_id)
        if not await repository.list_medical_events(case_id):
            raise HTTPException(
                status_code=400,
                detail="No medical events found. Please upload and process medical documents first.",
            )

        chronology = await chronology_engine.generate(case_id)
        return chronology.to_dict()

    @router.get("/api/v1/cases/{case_id}/chronology")
    @limiter.limit("60/minute")
    async def get_chronology(request: Request, case_id: str):
        chronology = await require_chronology(case_id)
        return chronology.to_dict()

    @router.get("/api/v1/cases/{case_id}/chronology/timeline")
    @limiter.limit("60/minute")
    async def get_timeline(request: Request, case_id: str):
        """Timeline events, gaps and date range for visualization"""
        await require_case(case_id)
        return await chronology_engine.get_timeline_data(case_id)

    @router.get("/api/v1/cases/{case_id}/chronology/gaps")
    @limiter.limit("60/minute")
    async def get_gaps(request: Request, case_id: str):
        """Treatment gaps with any explanations"""
        await require_case(case_id)
        chronology = await chronology_engine.get_chronology(case_id)
        gaps = [g.to_dict() for g in chronology.treatment_gaps] if chronology else []
        return {"gaps": gaps, "hasGaps": bool(gaps)}

    @router.get("/api/v1/cases/{case_id}/chronology/pain-history")
    @limiter.limit("60/minute")
    async def get_pain_history(request: Request, case_id: str):
        await require_case(case_id)
        chronology = await chronology_engine.get_chronology(case_id)
        return [p.to_dict() for p in chronology.pain_score_history] if chronology else []

    @router.get("/api/v1/cases/{case_id}/chronology/costs")
    @limiter.limit("60/minute")
    async def get_costs(request: Request, case_id: str):
        """Cost breakdown by provider type and by provider"""
        await require_case(case_id)
        chronology = await chronology_engine.get_chronology(case_id)
        events = await repository.list_medical_events(case_id)

        by_type = defaultdict(float)
        by_provider = defaultdict(float)
        for event in events:
            charge = event.total_charge or 0.0
            by_type[event.provider_type or "Other"] += charge
            by_provider[event.display_provider or "Unknown"] += charge

        return {
            "totalCosts": chronology.total_medical_costs if chronology else 0.0,
            "byProviderType": [{"type": t, "amount": round(a, 2)} for t, a in by_type.items()],
            "byProvider": sorted(
                ({"provider": p, "amount": round(a, 2)} for p, a in by_provider.items()),
                key=lambda item: -item["amount"],
            ),
            "events": [
                {
                    "date": format_date(e.date_of_service),
                    "provider": e.display_provider,
                    "type": e.provider_type,
                    "charge": e.total_charge or 0.0,
                    "paid": e.insurance_paid or 0.0,
                    "balance": e.patient_responsibility or 0.0,
                }
                for e in events
            ],
        }

    @router.get("/api/v1/cases/{case_id}/chronology/narrative")
    @limiter.limit("60/minute")
    async def get_narrative(request: Request, case_id: str):
        """Narrative and executive summary for letter drafting"""
        chronology = await require_chronology(case_id)
        return {
            "narrative": chronology.chronology_narrative,
            "executiveSummary": chronology.executive_summary,
        }

    return router
