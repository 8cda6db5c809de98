"""
Pipeline Request Models
"""

from pydantic import BaseModel, Field, field_validator


class ReplyRequest(BaseModel):
    """Body of a reply generation request."""
    owner_id: str = Field(..., description="Id of the user requesting the reply")

    @field_validator("owner_id")
    @classmethod
    def validate_owner_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("owner_id must not be empty")
        return value
