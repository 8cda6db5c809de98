"""
Pipeline Service Provider

Builds the shared EmailPipelineService for request handlers. Settings are
validated and the schema is created on first use, not at import time.
"""

import logging
from functools import lru_cache

from src.config.settings import get_settings
from src.email_processing.service import EmailPipelineService

logger = logging.getLogger(__name__)


@lru_cache()
def get_pipeline_service() -> EmailPipelineService:
    """Provide the pipeline service instance for dependency injection."""
    settings = get_settings()
    service = EmailPipelineService.from_settings(settings)
    service.database.init_db()
    logger.info(f"Pipeline service initialized ({settings.ENVIRONMENT.value})")
    return service
