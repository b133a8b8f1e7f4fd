"""Medical event review and correction routes"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from app.api.rate_limit import limiter
from app.api.schemas import MedicalEventUpdateRequest
from app.core.builders.date_utils import format_date, parse_date
from app.core.models.medical_event import MedicalEvent
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)


def create_medical_events_router(repository: CaseRepositoryPort) -> APIRouter:
    """Create medical event router.

    Args:
        repository: Case repository

    Returns:
        APIRouter configured with medical event endpoints
    """
    router = APIRouter(tags=["Medical Events"])

    async def require_case(case_id: str) -> None:
        if await repository.get_case(case_id) is None:
            raise HTTPException(status_code=404, detail="Case not found")

    async def require_event(case_id: str, event_id: str) -> MedicalEvent:
        await require_case(case_id)
        event = await repository.get_medical_event(event_id)
        if event is None or event.case_id != case_id:
            raise HTTPException(status_code=404, detail="Medical event not found")
        return event

    @router.get("/api/v1/cases/{case_id}/medical-events")
    @limiter.limit("60/minute")
    async def list_medical_events(
        request: Request,
        case_id: str,
        provider_type: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ):
        """Medical events of a case, oldest first, with summary stats"""
        await require_case(case_id)
        start, end = parse_date(start_date), parse_date(end_date)
        if (start_date and start is None) or (end_date and end is None):
            raise HTTPException(status_code=400, detail="start_date and end_date must be dates such as YYYY-MM-DD")

        events = [
            e for e in await repository.list_medical_events(case_id)
            if (provider_type is None or e.provider_type == provider_type)
            and (start is None or e.date_of_service >= start)
            and (end is None or e.date_of_service <= end)
        ]

        return {
            "events": [e.to_dict() for e in events],
            "summary": {
                "totalEvents": len(events),
                "totalCosts": round(sum(e.total_charge or 0.0 for e in events), 2),
                "uniqueProviders": len({e.provider_name for e in events if e.provider_name}),
                "dateRange": {
                    "start": format_date(events[0].date_of_service),
                    "end": format_date(events[-1].date_of_service),
                } if events else None,
            },
        }

    @router.get("/api/v1/cases/{case_id}/medical-events/{event_id}")
    @limiter.limit("60/minute")
    async def get_medical_event(request: Request, case_id: str, event_id: str):
        event = await require_event(case_id, event_id)
        return event.to_dict()

    @router.put("/api/v1/cases/{case_id}/medical-events/{event_id}")
    @limiter.limit("30/minute")
    async def update_medical_event(
        request: Request,
        case_id: str,
        event_id: str,
        body: MedicalEventUpdateRequest,
    ):
        """Apply attorney corrections; unknown fields are ignored"""
        event = await require_event(case_id, event_id)
        changed = event.apply_updates(body.dict(exclude_unset=True))
        await repository.save_medical_event(event)

        logger.info(f"Updated medical event {event_id}: {', '.join(changed) or 'no changes'}")
        return event.to_dict()

    @router.delete("/api/v1/cases/{case_id}/medical-events/{event_id}")
    @limiter.limit("30/minute")
    async def delete_medical_event(request: Request, case_id: str, event_id: str):
        await require_event(case_id, event_id)
        await repository.delete_medical_event(event_id)

        logger.info(f"Deleted medical event {event_id} from case {case_id}")
        return {"message": "Medical event deleted"}

    return router
