"""Health check and monitoring routes"""
import time
from datetime import datetime
from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import generate_latest

from app.api.schemas import HealthResponse
from app.core.extraction.categories import CATEGORY_RULES


def create_health_router(
    start_time: float,
    active_tasks_getter=None,
    in_flight_getter=None,
) -> APIRouter:
    """Create health check router.

    Args:
        start_time: Server start time for uptime calculation
        active_tasks_getter: Callable that returns the number of running document tasks
        in_flight_getter: Callable that returns submitted but unfinished document tasks

    Returns:
        FastAPI router with health endpoints
    """
    router = APIRouter(tags=["Health"])

    @router.get("/api/v1/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint"""
        running = active_tasks_getter() if active_tasks_getter else 0
        in_flight = in_flight_getter() if in_flight_getter else 0

        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(),
            version="1.0.0",
            uptime=time.time() - start_time,
            pipeline_status={
                "running_documents": running,
                "queued_documents": max(0, in_flight - running),
                "status": "running",
            },
        )

    @router.get("/metrics")
    async def get_metrics():
        """Prometheus metrics endpoint"""
        return Response(generate_latest(), media_type="text/plain")

    @router.get("/api/v1/document-categories")
    async def get_document_categories():
        """Document categories and how each is extracted"""
        return {
            "categories": [
                {
                    "category": category.value,
                    "strategy": rule.strategy.value,
                    "extracted": rule.calls_oracle,
                }
                for category, rule in CATEGORY_RULES.items()
            ]
        }

    return router
