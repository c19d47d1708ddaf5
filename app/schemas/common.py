"""
Shared schema primitives used across the API.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class MessageResponse(BaseModel):
    """Plain acknowledgement body for actions without a resource to return."""
    message: str


class ErrorResponse(BaseModel):
    """Standard `{code, message, details}` envelope returned for all 4xx/5xx responses."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


AUTH_RESPONSES: dict = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or revoked session."},
}
