"""Tests for the version retention policy."""
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from core.versioning_limits import VersioningLimits
from services.retention_policy import (
    DecisionReason,
    changed_char_count,
    select_versions_to_evict,
    should_create_version,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)
LIMITS = VersioningLimits(interval_ms=60_000, min_change_chars=140)
BASE_CONTENT = "Meeting notes\n\nAgenda items to discuss."


@dataclass
class FakeVersion:
    """Minimal stand-in for a stored version."""

    name: str
    is_forced_save: bool = False


class TestChangedCharCount:
    """Tests for changed_char_count function."""

    def test__changed_char_count__identical(self) -> None:
        """Test identical texts have no changes."""
        assert changed_char_count("same", "same") == 0

    def test__changed_char_count__append(self) -> None:
        """Test appended characters are counted."""
        assert changed_char_count("abc", "abc" + "x" * 50) == 50

    def test__changed_char_count__deletion(self) -> None:
        """Test deleted characters are counted."""
        assert changed_char_count("a" * 200, "") == 200

    def test__changed_char_count__same_length_rewrite(self) -> None:
        """Test rewriting text without changing its length still counts."""
        assert changed_char_count("a" * 10, "b" * 10) == 10

    def test__changed_char_count__at_least_length_delta(self) -> None:
        """Test the count is never below the length difference."""
        old, new = "The quick brown fox", "The slow brown fox jumps over"
        assert changed_char_count(old, new) >= abs(len(new) - len(old))


class TestShouldCreateVersion:
    """Tests for should_create_version function."""

    def test__should_create_version__small_edit_after_interval(self) -> None:
        """Test 50 changed characters after 70 seconds does not create a version."""
        decision = should_create_version(
            last_created_at=NOW - timedelta(seconds=70),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 50,
            now=NOW,
            limits=LIMITS,
        )
        assert decision.create is False
        assert decision.reason == DecisionReason.TOO_SMALL
        assert decision.changed_chars == 50

    def test__should_create_version__large_edit_after_interval(self) -> None:
        """Test 200 changed characters after 70 seconds creates a version."""
        decision = should_create_version(
            last_created_at=NOW - timedelta(seconds=70),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 200,
            now=NOW,
            limits=LIMITS,
        )
        assert decision.create is True
        assert decision.reason == DecisionReason.CHANGED

    def test__should_create_version__large_edit_too_soon(self) -> None:
        """Test a large edit within the interval waits."""
        decision = should_create_version(
            last_created_at=NOW - timedelta(seconds=30),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 200,
            now=NOW,
            limits=LIMITS,
        )
        assert decision.create is False
        assert decision.reason == DecisionReason.TOO_SOON

    def test__should_create_version__exact_thresholds_create(self) -> None:
        """Test the interval and the change size are inclusive bounds."""
        decision = should_create_version(
            last_created_at=NOW - timedelta(seconds=60),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 140,
            now=NOW,
            limits=LIMITS,
        )
        assert decision.create is True

    def test__should_create_version__on_exit_skips_interval(self) -> None:
        """Test leaving the editor does not wait for the interval."""
        decision = should_create_version(
            last_created_at=NOW - timedelta(seconds=5),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 200,
            now=NOW,
            limits=LIMITS,
            on_exit=True,
        )
        assert decision.create is True

    def test__should_create_version__disabled(self) -> None:
        """Test nothing is created when automatic versioning is off."""
        decision = should_create_version(
            last_created_at=None,
            last_content=None,
            new_content="x" * 500,
            now=NOW,
            limits=VersioningLimits(auto_versioning_enabled=False),
        )
        assert decision.create is False
        assert decision.reason == DecisionReason.DISABLED

    def test__should_create_version__blank_content(self) -> None:
        """Test blank content is never versioned."""
        decision = should_create_version(
            last_created_at=None,
            last_content=None,
            new_content="   \n\n ",
            now=NOW,
            limits=LIMITS,
            on_exit=True,
        )
        assert decision.create is False
        assert decision.reason == DecisionReason.BLANK_CONTENT

    def test__should_create_version__first_version_needs_enough_content(self) -> None:
        """Test a new note's first automatic version waits for the minimum size."""
        short = should_create_version(
            last_created_at=None, last_content=None, new_content="Hi there",
            now=NOW, limits=LIMITS,
        )
        long = should_create_version(
            last_created_at=None, last_content=None, new_content="x" * 140,
            now=NOW, limits=LIMITS,
        )
        assert short.create is False
        assert short.reason == DecisionReason.TOO_SHORT
        assert long.create is True
        assert long.reason == DecisionReason.INITIAL_VERSION

    def test__should_create_version__first_version_on_exit(self) -> None:
        """Test leaving a new note with at least 3 characters creates its first version."""
        created = should_create_version(
            last_created_at=None, last_content=None, new_content="abc",
            now=NOW, limits=LIMITS, on_exit=True,
        )
        skipped = should_create_version(
            last_created_at=None, last_content=None, new_content="ab",
            now=NOW, limits=LIMITS, on_exit=True,
        )
        assert created.create is True
        assert created.reason == DecisionReason.INITIAL_VERSION
        assert skipped.create is False

    def test__should_create_version__naive_timestamp_is_utc(self) -> None:
        """Test a naive stored timestamp is compared as UTC."""
        decision = should_create_version(
            last_created_at=(NOW - timedelta(seconds=70)).replace(tzinfo=None),
            last_content=BASE_CONTENT,
            new_content=BASE_CONTENT + "x" * 200,
            now=NOW,
            limits=LIMITS,
        )
        assert decision.create is True


class TestSelectVersionsToEvict:
    """Tests for select_versions_to_evict function."""

    def test__select_versions_to_evict__fifo(self) -> None:
        """Test 12 versions capped at 10 evict the 2 oldest."""
        versions = [FakeVersion(f"v{i}") for i in range(12, 0, -1)]  # newest first
        evicted = select_versions_to_evict(versions, keep=10)
        assert [v.name for v in evicted] == ["v2", "v1"]

    def test__select_versions_to_evict__under_cap(self) -> None:
        """Test nothing is evicted when under the cap."""
        versions = [FakeVersion(f"v{i}") for i in range(5)]
        assert select_versions_to_evict(versions, keep=10) == []

    def test__select_versions_to_evict__preserves_forced(self) -> None:
        """Test forced saves beyond the cap survive automatic eviction."""
        versions = [
            FakeVersion("v4"),
            FakeVersion("v3"),
            FakeVersion("v2", is_forced_save=True),
            FakeVersion("v1"),
        ]
        evicted = select_versions_to_evict(versions, keep=2, preserve_forced=True)
        assert [v.name for v in evicted] == ["v1"]

    def test__select_versions_to_evict__manual_includes_forced(self) -> None:
        """Test a manual cleanup evicts forced saves too."""
        versions = [
            FakeVersion("v3"),
            FakeVersion("v2", is_forced_save=True),
            FakeVersion("v1"),
        ]
        evicted = select_versions_to_evict(versions, keep=1)
        assert [v.name for v in evicted] == ["v2", "v1"]

    def test__select_versions_to_evict__forced_within_cap_count(self) -> None:
        """Test forced saves inside the newest window still count toward the cap."""
        versions = [FakeVersion("v3", is_forced_save=True), FakeVersion("v2"), FakeVersion("v1")]
        evicted = select_versions_to_evict(versions, keep=2, preserve_forced=True)
        assert [v.name for v in evicted] == ["v1"]
