"""
API v1 routes.
"""

from fastapi import APIRouter

from certgate.api.v1 import certification

router = APIRouter()

router.include_router(certification.router, prefix="/certification", tags=["Certification"])
