"""
Level Catalog - the five sequential PCP coaching certification levels.

Levels:
- Level 1: Entry Coach (PCP-L1)
- Level 2: Certified Coach (PCP-L2)
- Level 3: Advanced Coach (PCP-L3)
- Level 4: Master Coach (PCP-L4)
- Level 5: Grand Master (PCP-L5)

Level 0 is "uncertified" and is never requestable. The commission tier is a
pure function of the highest completed level.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

MIN_LEVEL = 1
MAX_LEVEL = 5
UNCERTIFIED = 0


class CommissionTier(str, Enum):
    """Billing category derived from the confirmed certification level."""

    NONE = "none"
    ENTRY = "entry"
    CERTIFIED = "certified"
    ADVANCED = "advanced"
    MASTER = "master"
    GRAND_MASTER = "grand_master"


class LevelInfo(BaseModel):
    """Static description of one certification level."""

    level: int
    code: str
    name: str
    badge: str
    programme_cost: int  # USD
    commission_tier: CommissionTier
    commission_rate: float  # platform share, percent per session


LEVEL_CATALOG: Dict[int, LevelInfo] = {
    1: LevelInfo(
        level=1,
        code="PCP-L1",
        name="Entry Coach",
        badge="🥉",
        programme_cost=699,
        commission_tier=CommissionTier.ENTRY,
        commission_rate=15.0,
    ),
    2: LevelInfo(
        level=2,
        code="PCP-L2",
        name="Certified Coach",
        badge="🥈",
        programme_cost=1299,
        commission_tier=CommissionTier.CERTIFIED,
        commission_rate=13.0,
    ),
    3: LevelInfo(
        level=3,
        code="PCP-L3",
        name="Advanced Coach",
        badge="🥇",
        programme_cost=2499,
        commission_tier=CommissionTier.ADVANCED,
        commission_rate=12.0,
    ),
    4: LevelInfo(
        level=4,
        code="PCP-L4",
        name="Master Coach",
        badge="💎",
        programme_cost=4999,
        commission_tier=CommissionTier.MASTER,
        commission_rate=10.0,
    ),
    5: LevelInfo(
        level=5,
        code="PCP-L5",
        name="Grand Master",
        badge="👑",
        programme_cost=7999,
        commission_tier=CommissionTier.GRAND_MASTER,
        commission_rate=8.0,
    ),
}


def is_requestable(level: int) -> bool:
    """True for levels a coach may apply for or complete."""
    return MIN_LEVEL <= level <= MAX_LEVEL


def get_level(level: int) -> LevelInfo:
    """Look up a catalog entry. Raises KeyError for 0 or out-of-range levels."""
    return LEVEL_CATALOG[level]


def list_levels() -> List[LevelInfo]:
    """All levels in progression order."""
    return [LEVEL_CATALOG[n] for n in range(MIN_LEVEL, MAX_LEVEL + 1)]


def commission_tier_for(current_level: int) -> CommissionTier:
    """Commission tier for a coach whose highest completed level is current_level."""
    if current_level == UNCERTIFIED:
        return CommissionTier.NONE
    return LEVEL_CATALOG[current_level].commission_tier


def commission_rate_for(current_level: int) -> Optional[float]:
    """Published platform commission rate, or None for uncertified coaches."""
    if current_level == UNCERTIFIED:
        return None
    return LEVEL_CATALOG[current_level].commission_rate


def next_level(current_level: int) -> Optional[int]:
    """The only level a coach may apply for next, or None once certified at the top."""
    if current_level >= MAX_LEVEL:
        return None
    return current_level + 1
