"""
Certification Engine - sequential level progression enforcement.

Levels 1-5 must be completed strictly in order:
- apply for level N      -> approved only when N == current_level + 1
- complete level N       -> approved only when N is the pending level
- level 1 completed      -> unlimited platform access
- each completed level   -> commission tier from the level catalog

Every decision is audited in the same transaction as the state it changes.
"""

from certgate.engines.certification.access_gate import AccessGate, AccessStatus
from certgate.engines.certification.enforcement_metrics import EnforcementMetrics, EnforcementStatus
from certgate.engines.certification.levels import (
    LEVEL_CATALOG,
    CommissionTier,
    LevelInfo,
    commission_rate_for,
    commission_tier_for,
    list_levels,
)
from certgate.engines.certification.records import CoachCertificationRecord, LevelCompletionEntry
from certgate.engines.certification.repository import CertificationRepository
from certgate.engines.certification.state_machine import CertificationState, state_of
from certgate.engines.certification.validator import LevelProgressionValidator, ProgressionDecision

__all__ = [
    "AccessGate",
    "AccessStatus",
    "EnforcementMetrics",
    "EnforcementStatus",
    "LEVEL_CATALOG",
    "CommissionTier",
    "LevelInfo",
    "commission_rate_for",
    "commission_tier_for",
    "list_levels",
    "CoachCertificationRecord",
    "LevelCompletionEntry",
    "CertificationRepository",
    "CertificationState",
    "state_of",
    "LevelProgressionValidator",
    "ProgressionDecision",
]
