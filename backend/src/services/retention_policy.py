"""
Retention policy decisions for note versions.

Pure functions only: whether a new automatic snapshot is warranted, and which
existing snapshots fall outside the retention cap. Persistence lives in
version_service.
"""
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol, TypeVar

from core.versioning_limits import MIN_INITIAL_VERSION_CHARS, VersioningLimits
from services.edit_ops import edit_distance
from services.text_blocks import is_blank


class DecisionReason(StrEnum):
    """Why the retention gate did or did not create a version."""

    DISABLED = "disabled"
    BLANK_CONTENT = "blank_content"
    INITIAL_VERSION = "initial_version"
    TOO_SHORT = "too_short"
    TOO_SOON = "too_soon"
    TOO_SMALL = "too_small"
    CHANGED = "changed"


@dataclass(frozen=True)
class RetentionDecision:
    """Outcome of the automatic versioning gate."""

    create: bool
    reason: DecisionReason
    changed_chars: int = 0


class EvictionCandidate(Protocol):
    """Anything with a forced-save flag can be considered for eviction."""

    is_forced_save: bool


VersionT = TypeVar("VersionT", bound=EvictionCandidate)


def changed_char_count(previous: str, current: str) -> int:
    """Number of characters inserted, deleted, or substituted between two texts."""
    if previous == current:
        return 0
    return edit_distance(previous, current)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def should_create_version(
    *,
    last_created_at: datetime | None,
    last_content: str | None,
    new_content: str,
    now: datetime,
    limits: VersioningLimits,
    on_exit: bool = False,
) -> RetentionDecision:
    """
    Decide whether the current note content should become a new automatic version.

    A version is created only when enough time has passed since the previous one
    AND enough characters changed. When the editor is being left (``on_exit``)
    the interval is not waited for, and a note without any version gets its first
    one as soon as it holds a few characters.

    Args:
        last_created_at: Creation time of the newest version, or None if there is none.
        last_content: Content of the newest version, or None if there is none.
        new_content: Current note content.
        now: Current time.
        limits: Active versioning limits.
        on_exit: Whether the check runs because the user is leaving the note.

    Returns:
        RetentionDecision with the verdict, the reason and the changed character count.
    """
    if not limits.auto_versioning_enabled:
        return RetentionDecision(create=False, reason=DecisionReason.DISABLED)
    if is_blank(new_content):
        return RetentionDecision(create=False, reason=DecisionReason.BLANK_CONTENT)

    if last_created_at is None or last_content is None:
        changed = len(new_content)
        if changed >= limits.min_change_chars or (
            on_exit and changed >= MIN_INITIAL_VERSION_CHARS
        ):
            return RetentionDecision(
                create=True, reason=DecisionReason.INITIAL_VERSION, changed_chars=changed,
            )
        return RetentionDecision(
            create=False, reason=DecisionReason.TOO_SHORT, changed_chars=changed,
        )

    if not on_exit and _as_utc(now) - _as_utc(last_created_at) < limits.interval:
        return RetentionDecision(create=False, reason=DecisionReason.TOO_SOON)

    changed = changed_char_count(last_content, new_content)
    if changed < limits.min_change_chars:
        return RetentionDecision(
            create=False, reason=DecisionReason.TOO_SMALL, changed_chars=changed,
        )
    return RetentionDecision(create=True, reason=DecisionReason.CHANGED, changed_chars=changed)


def select_versions_to_evict(
    versions: Sequence[VersionT],
    keep: int,
    preserve_forced: bool = False,
) -> list[VersionT]:
    """
    Pick the versions that fall outside the retention cap.

    Args:
        versions: A note's versions ordered newest first.
        keep: How many of the most recent versions survive unconditionally.
        preserve_forced: Spare forced saves older than the cap (automatic cap
            enforcement); a manual cleanup passes False and evicts them too.

    Returns:
        Versions to delete, oldest last as they were given.
    """
    excess = versions[max(keep, 0):]
    if preserve_forced:
        return [version for version in excess if not version.is_forced_save]
    return list(excess)
