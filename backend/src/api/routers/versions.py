"""Note version API endpoints: history, diffs, snapshots and rollback."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_limits
from core.versioning_limits import VersioningLimits
from schemas.version import (
    AiMetaUpdate,
    AutoVersionRequest,
    AutoVersionResponse,
    CleanupRequest,
    CleanupResponse,
    ForceSaveRequest,
    HighlightSpanResponse,
    RollbackRequest,
    RollbackResponse,
    VersionDetailResponse,
    VersionDiffResponse,
    VersionHistoryItem,
    VersionHistoryResponse,
    VersionListResponse,
    VersionRename,
    VersionResponse,
)
from services.exceptions import NoteNotFoundError, RollbackError, VersionNotFoundError
from services.legacy_ai_meta import AiMeta
from services.version_diff import Highlight, group_spans
from services.version_service import version_service

router = APIRouter(prefix="/notes/{note_id}/versions", tags=["versions"])


def _spans(highlights: list[Highlight]) -> list[HighlightSpanResponse]:
    return [HighlightSpanResponse.model_validate(span) for span in group_spans(highlights)]


def _ai_meta(update: AiMetaUpdate | None) -> AiMeta | None:
    if update is None:
        return None
    return AiMeta(provider=update.provider, model=update.model, duration_ms=update.duration_ms)


async def _require_note(db: AsyncSession, note_id: UUID) -> None:
    try:
        await version_service.get_note(db, note_id)
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")


@router.get("/", response_model=VersionListResponse)
async def list_versions(
    note_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> VersionListResponse:
    """
    List a note's versions, newest first.

    Returns metadata only; fetch a single version for its content.

    Returns:
    - 200 with the versions (empty list if the note has none)
    - 404 if the note doesn't exist
    """
    await _require_note(db, note_id)
    versions = await version_service.list_versions(db, note_id)
    return VersionListResponse(
        items=[VersionResponse.model_validate(v) for v in versions],
        total=len(versions),
    )


@router.get("/diffs", response_model=VersionHistoryResponse)
async def list_versions_with_diffs(
    note_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    limits: VersioningLimits = Depends(get_current_limits),
) -> VersionHistoryResponse:
    """
    List a note's versions with highlights against their neighbors.

    Each version is compared with the one before it (added text) and the one
    after it (removed text). Reordered paragraphs are not highlighted.
    """
    await _require_note(db, note_id)
    entries = await version_service.get_history_with_diffs(
        db, note_id, limits.similarity_threshold,
    )
    return VersionHistoryResponse(
        items=[
            VersionHistoryItem(
                version=VersionDetailResponse.model_validate(entry.version),
                spans=_spans(entry.highlights),
            )
            for entry in entries
        ],
        total=len(entries),
    )


@router.get("/{version_id}", response_model=VersionDetailResponse)
async def get_version(
    note_id: UUID,
    version_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> VersionDetailResponse:
    """Get a single version including its content."""
    version = await version_service.get_version(db, version_id, note_id=note_id)
    if version is None:
        raise HTTPException(status_code=404, detail="Version not found")
    return VersionDetailResponse.model_validate(version)


@router.get("/{version_id}/diff", response_model=VersionDiffResponse)
async def get_version_diff(
    note_id: UUID,
    version_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    limits: VersioningLimits = Depends(get_current_limits),
) -> VersionDiffResponse:
    """
    Get a version's highlights against its chronological neighbors.

    Returns:
    - 200 with highlight spans
    - 404 if the version doesn't exist for this note
    """
    try:
        result = await version_service.get_version_diff(
            db, note_id, version_id, limits.similarity_threshold,
        )
    except VersionNotFoundError:
        raise HTTPException(status_code=404, detail="Version not found")

    return VersionDiffResponse(
        version=VersionDetailResponse.model_validate(result.version),
        previous_version_id=result.previous_version_id,
        next_version_id=result.next_version_id,
        spans=_spans(result.highlights),
    )


@router.post("/autosave", response_model=AutoVersionResponse)
async def autosave(
    note_id: UUID,
    data: AutoVersionRequest,
    db: AsyncSession = Depends(get_async_session),
    limits: VersioningLimits = Depends(get_current_limits),
) -> AutoVersionResponse:
    """
    Run the automatic versioning check for the current editor content.

    Creates a version only when enough time has passed and enough changed.
    A version that could not be stored is reported as not created; the
    editor keeps working either way.
    """
    try:
        version = await version_service.maybe_create_auto_version(
            db, note_id, data.content, limits, on_exit=data.on_exit,
        )
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")

    return AutoVersionResponse(
        created=version is not None,
        version=VersionResponse.model_validate(version) if version else None,
    )


@router.post("/force", response_model=VersionResponse, status_code=201)
async def force_save(
    note_id: UUID,
    data: ForceSaveRequest,
    db: AsyncSession = Depends(get_async_session),
    limits: VersioningLimits = Depends(get_current_limits),
) -> VersionResponse:
    """Save the note and create a version regardless of the retention policy."""
    try:
        version = await version_service.force_save(
            db,
            note_id,
            data.content,
            limits,
            custom_name=data.custom_name,
            ai_meta=_ai_meta(data.ai_meta),
        )
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return VersionResponse.model_validate(version)


@router.post("/{version_id}/rollback", response_model=RollbackResponse)
async def rollback_to_version(
    note_id: UUID,
    version_id: UUID,
    data: RollbackRequest | None = None,
    db: AsyncSession = Depends(get_async_session),
    limits: VersioningLimits = Depends(get_current_limits),
) -> RollbackResponse:
    """
    Restore the note to a version's content.

    The current content is saved as a backup version first.

    Returns:
    - 200 with the restored content and both new versions
    - 404 if the note or version doesn't exist
    - 500 if the note could not be updated (the backup version is kept)
    """
    current_content = data.current_content if data else None
    try:
        result = await version_service.rollback_to_version(
            db, note_id, version_id, limits, current_content=current_content,
        )
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except VersionNotFoundError:
        raise HTTPException(status_code=404, detail="Version not found")
    except RollbackError:
        # Keep the backup version: commit what succeeded before failing the request
        await db.commit()
        raise HTTPException(
            status_code=500,
            detail="Rollback failed; the previous content was saved as a backup version",
        )

    return RollbackResponse(
        message="Rolled back to version",
        note_id=note_id,
        content=result.note.content,
        backup_version=VersionResponse.model_validate(result.backup),
        rollback_version=VersionResponse.model_validate(result.rollback),
    )


@router.patch("/{version_id}", response_model=VersionResponse)
async def rename_version(
    note_id: UUID,
    version_id: UUID,
    data: VersionRename,
    db: AsyncSession = Depends(get_async_session),
) -> VersionResponse:
    """Set or clear a version's custom name."""
    try:
        version = await version_service.rename_version(
            db, version_id, data.custom_name, note_id=note_id,
        )
    except VersionNotFoundError:
        raise HTTPException(status_code=404, detail="Version not found")
    return VersionResponse.model_validate(version)


@router.put("/{version_id}/ai-meta", response_model=VersionResponse)
async def update_ai_meta(
    note_id: UUID,
    version_id: UUID,
    data: AiMetaUpdate,
    db: AsyncSession = Depends(get_async_session),
) -> VersionResponse:
    """Replace a version's automation metadata."""
    try:
        version = await version_service.update_ai_meta(
            db, version_id, _ai_meta(data), note_id=note_id,
        )
    except VersionNotFoundError:
        raise HTTPException(status_code=404, detail="Version not found")
    return VersionResponse.model_validate(version)


@router.delete("/{version_id}", status_code=204)
async def delete_version(
    note_id: UUID,
    version_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """Delete a single version."""
    deleted = await version_service.delete_version(db, version_id, note_id=note_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Version not found")
    return Response(status_code=204)


@router.delete("/", response_model=CleanupResponse)
async def delete_all_versions(
    note_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> CleanupResponse:
    """Delete every version of a note."""
    await _require_note(db, note_id)
    deleted = await version_service.delete_all_versions(db, note_id)
    return CleanupResponse(deleted=deleted, remaining=0)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_versions(
    note_id: UUID,
    data: CleanupRequest,
    db: AsyncSession = Depends(get_async_session),
) -> CleanupResponse:
    """Keep only the most recent versions, forced saves included in the cut."""
    await _require_note(db, note_id)
    deleted = await version_service.cleanup_versions(db, note_id, data.keep_count)
    remaining = await version_service.count_versions(db, note_id)
    return CleanupResponse(deleted=deleted, remaining=remaining)
