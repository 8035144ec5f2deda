"""
Coach identity lookups.
"""

from certgate.kernel.identity.coach_directory import (
    CoachDirectory,
    HttpCoachDirectory,
    PatternCoachDirectory,
    StaticCoachDirectory,
    build_coach_directory,
)

__all__ = [
    "CoachDirectory",
    "HttpCoachDirectory",
    "PatternCoachDirectory",
    "StaticCoachDirectory",
    "build_coach_directory",
]
