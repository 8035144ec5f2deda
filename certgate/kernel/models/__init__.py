"""
Kernel Data Models

SQLAlchemy models for certification state and the validation audit log.
"""

from certgate.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from certgate.kernel.models.certification import CoachCertification, LevelCompletion
from certgate.kernel.models.audit import (
    AuditAction,
    AuditDecision,
    ReasonCode,
    ValidationAuditEntry,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Certification state
    "CoachCertification",
    "LevelCompletion",
    # Audit log
    "AuditAction",
    "AuditDecision",
    "ReasonCode",
    "ValidationAuditEntry",
]
