"""
Operation Result Models

Structured success/failure envelope returned by every top-level pipeline
operation, shared by the CLI and the HTTP surface.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.email_processing.errors import PipelineError


class ErrorDetail(BaseModel):
    """Machine-readable code plus human-readable message."""
    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class OperationResult(BaseModel):
    """
    Result envelope for pipeline operations.

    Exactly one of ``data`` and ``error`` is populated.
    """
    status: str = Field(default="success", description="'success' or 'error'")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Operation payload")
    error: Optional[ErrorDetail] = Field(default=None, description="Failure details")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Result timestamp")

    @property
    def success(self) -> bool:
        return self.status == "success"

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "OperationResult":
        return cls(status="success", data=data)

    @classmethod
    def fail(cls, error_code: str, message: str) -> "OperationResult":
        return cls(status="error", error=ErrorDetail(error_code=error_code, message=message))

    @classmethod
    def from_error(cls, error: PipelineError) -> "OperationResult":
        return cls.fail(error.error_code, error.message)
