"""
Error Response Models

Body shapes returned by the API whenever a request fails.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Body of every failed API response.

    ``error_code`` carries the same values the pipeline reports so clients
    can branch on it independently of the HTTP status.
    """
    status: str = Field(default="error", description="Always 'error'")
    message: str = Field(..., description="Readable description of the failure")
    error_code: str = Field(..., description="Stable machine-readable code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context, if any")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the failure was reported")


class ValidationErrorItem(BaseModel):
    loc: List[str] = Field(..., description="Path to the offending field")
    msg: str
    type: str


class ValidationErrorResponse(ErrorResponse):
    """ErrorResponse listing each rejected request field."""
    validation_errors: List[ValidationErrorItem] = Field(default_factory=list)
