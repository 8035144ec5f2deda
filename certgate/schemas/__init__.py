"""
Pydantic schemas for API request/response validation.
"""

from certgate.schemas.certification import (
    AuditEntryResponse,
    AuditTrailResponse,
    CertificationStatusResponse,
    EnforcementStatusResponse,
    LevelApplicationRequest,
    LevelCompletionRequest,
    LevelResponse,
    ProgressionDecisionResponse,
    UnlimitedAccessResponse,
)
from certgate.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    # Certification
    "AuditEntryResponse",
    "AuditTrailResponse",
    "CertificationStatusResponse",
    "EnforcementStatusResponse",
    "LevelApplicationRequest",
    "LevelCompletionRequest",
    "LevelResponse",
    "ProgressionDecisionResponse",
    "UnlimitedAccessResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
]
