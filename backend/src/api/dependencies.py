"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.config import Settings, get_settings
from core.versioning_limits import VersioningLimits, get_versioning_limits
from db.session import get_async_session


def get_current_limits(settings: Settings = Depends(get_settings)) -> VersioningLimits:
    """Versioning limits derived from the application settings."""
    return get_versioning_limits(settings)


__all__ = [
    "get_async_session",
    "get_current_limits",
    "get_settings",
]
