"""API router aggregator.

All endpoint routers are included here; the app mounts this at /api.
"""

from fastapi import APIRouter

from techformpro.api import onboarding

router = APIRouter()

# =============================================================================
# Onboarding
# =============================================================================

router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
