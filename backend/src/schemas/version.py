"""Pydantic schemas for note version endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from services.legacy_ai_meta import format_duration
from services.version_diff import DiffClass


class VersionResponse(BaseModel):
    """Schema for version metadata (list views, no content)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    note_id: UUID
    created_at: datetime
    change_description: str | None
    custom_name: str | None
    is_forced_save: bool
    ai_provider: str | None = None
    ai_model: str | None = None
    ai_duration_ms: int | None = None

    @computed_field
    @property
    def ai_duration_display(self) -> str | None:
        """Human-readable automation duration (None when the version has no automation metadata)."""
        if self.ai_provider is None and self.ai_model is None and self.ai_duration_ms is None:
            return None
        return format_duration(self.ai_duration_ms)


class VersionDetailResponse(VersionResponse):
    """Schema for a single version including its content."""

    content: str
    diff_ops_json: str | None = None


class HighlightSpanResponse(BaseModel):
    """A run of characters with one classification."""

    model_config = ConfigDict(from_attributes=True)

    text: str
    kind: DiffClass


class VersionDiffResponse(BaseModel):
    """Schema for one version classified against its neighbors."""

    version: VersionDetailResponse
    previous_version_id: UUID | None
    next_version_id: UUID | None
    spans: list[HighlightSpanResponse]


class VersionHistoryItem(BaseModel):
    """History entry with highlight spans."""

    version: VersionDetailResponse
    spans: list[HighlightSpanResponse]


class VersionListResponse(BaseModel):
    """Schema for version list responses (newest first)."""

    items: list[VersionResponse]
    total: int


class VersionHistoryResponse(BaseModel):
    """Schema for version list responses with diffs (newest first)."""

    items: list[VersionHistoryItem]
    total: int


class AutoVersionRequest(BaseModel):
    """Current editor content for the automatic versioning check."""

    content: str
    on_exit: bool = False  # The user is leaving the note


class AutoVersionResponse(BaseModel):
    """Result of the automatic versioning check."""

    created: bool
    version: VersionResponse | None = None


class AiMetaUpdate(BaseModel):
    """Automation metadata for a version."""

    provider: str | None = Field(default=None, max_length=50)
    model: str | None = Field(default=None, max_length=100)
    duration_ms: int | None = Field(default=None, ge=0)


class ForceSaveRequest(BaseModel):
    """Content to save and snapshot unconditionally."""

    content: str
    custom_name: str | None = Field(default=None, max_length=200)
    ai_meta: AiMetaUpdate | None = None


class RollbackRequest(BaseModel):
    """Optional unsaved editor content to back up before rolling back."""

    current_content: str | None = None


class RollbackResponse(BaseModel):
    """Schema for rollback operation response."""

    message: str
    note_id: UUID
    content: str
    backup_version: VersionResponse
    rollback_version: VersionResponse


class VersionRename(BaseModel):
    """New custom name for a version (blank or null clears it)."""

    custom_name: str | None = Field(default=None, max_length=200)


class CleanupRequest(BaseModel):
    """How many of the most recent versions to keep."""

    keep_count: int = Field(ge=1)


class CleanupResponse(BaseModel):
    """Schema for cleanup operation response."""

    deleted: int
    remaining: int


class VersioningSettingsResponse(BaseModel):
    """Active version history policy."""

    model_config = ConfigDict(from_attributes=True)

    auto_versioning_enabled: bool
    interval_ms: int
    min_change_chars: int
    max_regular_versions: int
    similarity_threshold: float
    allowed_interval_ms: list[int]
