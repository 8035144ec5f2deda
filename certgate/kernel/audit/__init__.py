"""
Validation audit trail.

Append-only record of every progression decision.
"""

from certgate.kernel.audit.audit_log import AuditLogStore
from certgate.kernel.audit.entry_types import NewAuditEntry

__all__ = [
    "AuditLogStore",
    "NewAuditEntry",
]
