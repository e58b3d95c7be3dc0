"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...models.domain import TokenCache
from ..dependencies import get_token_cache

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    """Check OSRM service health."""
    try:
        osrm_health_check = _get_osrm_health_check()
        return {"service": "osrm", "healthy": osrm_health_check()}
    except Exception as e:
        return {"service": "osrm", "healthy": False, "error": str(e)}


@router.get("/health/gps", status_code=status.HTTP_200_OK)
def health_gps(token_cache: TokenCache = Depends(get_token_cache)) -> dict:
    """Check that the GPS vendor accepts the configured credentials."""
    from ...services.gps.client import check_health as gps_health_check

    return {"service": "gps", "healthy": gps_health_check(token_cache)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and journal storage status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set FJ_SUPABASE_URL and FJ_SUPABASE_KEY environment variables.",
        }

    try:
        response = supabase.table("journal_policies").select("id", count="exact").limit(1).execute()
        policy_count = response.count or 0
        return {
            "configured": True,
            "connected": True,
            "policy_configured": policy_count > 0,
            "message": "Database connected." if policy_count else "Database connected but no journal policy exists.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
