"""
API Services Package
"""

from api.services.pipeline_service import get_pipeline_service

__all__ = ["get_pipeline_service"]
