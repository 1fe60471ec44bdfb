"""Version history policy: when snapshots are taken, how many are kept, how diffs match."""
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import Settings

# Intervals the autosave check may run at (milliseconds)
ALLOWED_VERSION_INTERVALS_MS: tuple[int, ...] = (30_000, 60_000, 120_000, 300_000)

DEFAULT_VERSION_INTERVAL_MS = 60_000
DEFAULT_MIN_CHANGE_CHARS = 140
DEFAULT_MAX_REGULAR_VERSIONS = 100
MIN_MAX_REGULAR_VERSIONS = 10

# A note leaving the editor gets its first version once it has this many characters
MIN_INITIAL_VERSION_CHARS = 3

# Minimum similarity ratio for two paragraphs (or lines) to count as the same block.
# Fixed policy value, not a runtime setting.
SIMILARITY_THRESHOLD = 0.7


@dataclass(frozen=True)
class VersioningLimits:
    """Retention and matching limits applied to every note's version history."""

    auto_versioning_enabled: bool = True
    interval_ms: int = DEFAULT_VERSION_INTERVAL_MS
    min_change_chars: int = DEFAULT_MIN_CHANGE_CHARS
    max_regular_versions: int = DEFAULT_MAX_REGULAR_VERSIONS
    similarity_threshold: float = SIMILARITY_THRESHOLD

    @property
    def interval(self) -> timedelta:
        """Minimum time between two automatic versions."""
        return timedelta(milliseconds=self.interval_ms)


DEFAULT_VERSIONING_LIMITS = VersioningLimits()


def get_versioning_limits(settings: "Settings") -> VersioningLimits:
    """
    Build the versioning limits from validated application settings.

    Args:
        settings: Application settings (already range-checked by pydantic).

    Returns:
        VersioningLimits with the configured interval, change size and cap.
    """
    return VersioningLimits(
        auto_versioning_enabled=settings.auto_versioning_enabled,
        interval_ms=settings.version_interval_ms,
        min_change_chars=settings.version_min_change_chars,
        max_regular_versions=settings.version_max_regular,
    )
