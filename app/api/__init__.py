"""
Case Document Pipeline API

FastAPI-based REST API for document processing and chronology review.
"""

from .case_api import create_app, CasePipelineAPI

__all__ = ["create_app", "CasePipelineAPI"]
