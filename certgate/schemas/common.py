"""
Response shapes shared by every router.
"""

from typing import List, Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Body of every non-decision error (422, 429, 500, 503)."""

    detail: str
    code: Optional[str] = None
    request_id: Optional[str] = None
    errors: Optional[List[FieldError]] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    database: str = "connected"
