#!/usr/bin/env python3
"""
Case document pipeline REST API

Composes the adapters, the document processor and the chronology engine
behind a thin FastAPI surface.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import redis
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.adapters.llm import BedrockAdapter
from app.adapters.pdf import PyMuPDFTextExtractor
from app.adapters.storage import RedisCaseRepository, S3ObjectStore
from app.api.rate_limit import limiter
from app.api.routes.chronology import create_chronology_router
from app.api.routes.documents import create_documents_router
from app.api.routes.health import create_health_router
from app.api.routes.medical_events import create_medical_events_router
from app.api.schemas import ErrorResponse
from app.core.builders.chronology_builder import ChronologyEngine
from app.core.exceptions import (ChronologyError, CoreError, InvalidTransitionError,
                                 NotFoundError, ValidationError)
from app.core.pipeline.document_processor import DocumentProcessor
from app.core.ports.llm import LLMPort
from app.core.ports.object_storage import ObjectStoragePort
from app.core.ports.storage import CaseRepositoryPort
from app.core.ports.text_extraction import TextExtractionPort

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "demand_api_requests_total", "Total API requests", [
        "method", "endpoint", "status"])
REQUEST_DURATION = Histogram(
    "demand_api_request_duration_seconds",
    "Request duration")


# Core errors surfaced to clients, most specific first
_ERROR_STATUS = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ValidationError, 422),
    (ChronologyError, 400),
)


def _status_for(exc: CoreError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details, timestamp=datetime.now())
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


class CasePipelineAPI:
    """Case pipeline API using the core engine with dependency injection"""

    def __init__(
        self,
        repository: Optional[CaseRepositoryPort] = None,
        object_storage: Optional[ObjectStoragePort] = None,
        text_extractor: Optional[TextExtractionPort] = None,
        llm_adapter: Optional[LLMPort] = None,
        processor: Optional[DocumentProcessor] = None,
        chronology_engine: Optional[ChronologyEngine] = None,
    ):
        """Initialize API with dependency injection.

        Args:
            repository: Case repository (default: Redis at REDIS_URL)
            object_storage: Document binary store (default: S3 bucket DOCUMENT_BUCKET)
            text_extractor: Text extraction adapter (default: PyMuPDFTextExtractor)
            llm_adapter: Extraction oracle (default: BedrockAdapter in AWS_REGION)
            processor: Document processor (default: built from the above)
            chronology_engine: Chronology engine (default: built from the above)
        """
        region = os.environ.get("AWS_REGION", "us-east-1")

        if repository is None:
            redis_client = redis.Redis.from_url(
                os.environ.get("REDIS_URL", "redis://localhost:6379/0"), decode_responses=False
            )
            repository = RedisCaseRepository(redis_client)
        self.repository = repository
        self.object_storage = object_storage or S3ObjectStore(
            bucket=os.environ.get("DOCUMENT_BUCKET", "case-documents"), region=region,
        )
        llm = llm_adapter or BedrockAdapter(region=region)

        self.chronology_engine = chronology_engine or ChronologyEngine(repository=self.repository, llm=llm)
        self.processor = processor or DocumentProcessor(
            repository=self.repository,
            object_storage=self.object_storage,
            text_extractor=text_extractor or PyMuPDFTextExtractor(),
            llm=llm,
            chronology_engine=self.chronology_engine,
        )

        # Start time for uptime
        self.start_time = time.time()

        # Create FastAPI app
        self.app = FastAPI(
            title="Case Document Pipeline API",
            description="Document processing, medical events and chronology for case files",
            version="1.0.0",
            docs_url="/docs",
            redoc_url="/redoc",
            lifespan=self._lifespan,
        )

        # Setup
        self._setup_middleware()
        self._setup_routes()
        self._setup_error_handlers()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        logger.info("Case pipeline API started")
        yield
        await self.stop()

    def _setup_middleware(self):
        """Setup API middleware"""
        # CORS
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Rate limiting
        self.app.state.limiter = limiter
        self.app.add_exception_handler(
            RateLimitExceeded, _rate_limit_exceeded_handler)
        self.app.add_middleware(SlowAPIMiddleware)

        # Request logging middleware
        @self.app.middleware("http")
        async def log_requests(request, call_next):
            start_time = time.time()
            response = await call_next(request)
            process_time = time.time() - start_time

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            REQUEST_DURATION.observe(process_time)

            logger.info(
                f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s"
            )

            return response

    def _setup_routes(self):
        """Setup API routes"""
        @self.app.get("/")
        async def root():
            return {
                "service": "Case Document Pipeline API",
                "version": "1.0.0",
                "status": "operational",
                "docs": "/docs",
            }

        executor = self.processor.executor
        self.app.include_router(create_health_router(
            start_time=self.start_time,
            active_tasks_getter=lambda: executor.running,
            in_flight_getter=executor.in_flight,
        ))
        self.app.include_router(create_documents_router(
            repository=self.repository,
            object_storage=self.object_storage,
            processor=self.processor,
        ))
        self.app.include_router(create_chronology_router(
            repository=self.repository,
            chronology_engine=self.chronology_engine,
        ))
        self.app.include_router(create_medical_events_router(repository=self.repository))

    def _setup_error_handlers(self):
        """Setup error handlers"""
        @self.app.exception_handler(HTTPException)
        async def http_exception_handler(request, exc):
            return _error_response(exc.status_code, f"HTTP_{exc.status_code}", exc.detail)

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request, exc):
            return _error_response(422, "VALIDATION_ERROR", "Request validation failed",
                                   details={"errors": jsonable_encoder(exc.errors())})

        @self.app.exception_handler(CoreError)
        async def core_exception_handler(request, exc):
            status_code = _status_for(exc)
            if status_code == 500:
                logger.error(f"Pipeline error: {exc}", exc_info=True)
            return _error_response(status_code, type(exc).__name__, str(exc))

        @self.app.exception_handler(Exception)
        async def global_exception_handler(request, exc):
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
            return _error_response(500, "INTERNAL_SERVER_ERROR", "An internal server error occurred",
                                   details={"exception": str(exc)})

    async def stop(self):
        """Wait for in-flight document tasks before shutdown"""
        logger.info("Stopping case pipeline API...")
        await self.processor.executor.drain()
        logger.info("Case pipeline API stopped")


# FastAPI app factory
def create_app(**dependencies) -> FastAPI:
    """Create FastAPI application; keyword arguments override CasePipelineAPI defaults"""
    api = CasePipelineAPI(**dependencies)
    return api.app


# CLI entry point
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Case Document Pipeline API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")

    args = parser.parse_args()
    uvicorn.run(create_app(), host=args.host, port=args.port)
