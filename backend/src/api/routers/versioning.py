"""Versioning policy endpoints."""
from fastapi import APIRouter, Depends

from api.dependencies import get_current_limits
from core.versioning_limits import ALLOWED_VERSION_INTERVALS_MS, VersioningLimits
from schemas.version import VersioningSettingsResponse

router = APIRouter(prefix="/versioning", tags=["versioning"])


@router.get("/settings", response_model=VersioningSettingsResponse)
async def get_versioning_settings(
    limits: VersioningLimits = Depends(get_current_limits),
) -> VersioningSettingsResponse:
    """Return the active version history policy (set through the environment)."""
    return VersioningSettingsResponse(
        auto_versioning_enabled=limits.auto_versioning_enabled,
        interval_ms=limits.interval_ms,
        min_change_chars=limits.min_change_chars,
        max_regular_versions=limits.max_regular_versions,
        similarity_threshold=limits.similarity_threshold,
        allowed_interval_ms=list(ALLOWED_VERSION_INTERVALS_MS),
    )
