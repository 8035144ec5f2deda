"""
Stable Kernel Layer

Foundational storage for the certification service:
- Certification state (one record per coach, versioned for compare-and-swap)
- Immutable validation audit log (every decision logged before commit)
- Coach identity lookups

Invariants:
- Decisions and the state changes they authorize commit together
- Audit rows are never updated or deleted
- Certification records are never deleted and never lose levels
"""

from certgate.kernel.models import (
    AuditAction,
    AuditDecision,
    CoachCertification,
    LevelCompletion,
    ReasonCode,
    ValidationAuditEntry,
)

__all__ = [
    "AuditAction",
    "AuditDecision",
    "CoachCertification",
    "LevelCompletion",
    "ReasonCode",
    "ValidationAuditEntry",
]
