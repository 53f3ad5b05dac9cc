"""
Resume Import Router - upload a resume, review what was found, sync it
into the profile.

The heavy lifting runs in the background; clients poll ``GET /status``.
"""
from fastapi import APIRouter, Depends, UploadFile, File, status

from ..config import get_settings
from ..schemas.imports import ImportSnapshot, ToggleRequest, BulkSelectRequest
from ..services.auth import AuthenticatedUser, get_current_user
from ..services.import_pipeline import ImportDocument, ImportPipeline, ImportSessionRegistry
from ..services.profile_store import SqlProfileStore
from ..services.profile_sync import SqlProfileSyncer
from ..services.resume_parser import GeminiResumeParser
from ..services.resume_records import SqlResumeRecordStore
from ..services.supabase_upload import SupabaseResumeStorage

router = APIRouter(prefix="/api/resume/import", tags=["Resume Import"])


def build_import_pipeline(user_id: str) -> ImportPipeline:
    settings = get_settings()
    return ImportPipeline(
        user_id=user_id,
        parser=GeminiResumeParser(),
        storage=SupabaseResumeStorage(settings.resume_bucket),
        profile_store=SqlProfileStore(),
        syncer=SqlProfileSyncer(),
        records=SqlResumeRecordStore(),
        max_file_size_mb=settings.max_upload_mb,
        done_reset_seconds=settings.import_done_reset_seconds,
        error_reset_seconds=settings.import_error_reset_seconds,
        sync_error_reset_seconds=settings.import_sync_error_reset_seconds,
    )


import_sessions = ImportSessionRegistry(build_import_pipeline)


def get_import_sessions() -> ImportSessionRegistry:
    return import_sessions


def get_pipeline(
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: ImportSessionRegistry = Depends(get_import_sessions),
) -> ImportPipeline:
    return sessions.get(current_user.id)


# ============================================================================
# Upload → review
# ============================================================================

@router.post("", response_model=ImportSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def start_import(
    file: UploadFile = File(...),
    pipeline: ImportPipeline = Depends(get_pipeline),
):
    """
    Start importing a resume (PDF or TXT, max 10MB).

    Oversized or unsupported files are rejected immediately and the import
    stays idle. Otherwise parsing continues in the background.
    """
    content = await file.read()
    pipeline.submit(ImportDocument(
        file_name=file.filename or "resume.pdf",
        content=content,
        content_type=file.content_type,
    ))
    return pipeline.snapshot()


@router.get("/status", response_model=ImportSnapshot)
async def get_import_status(pipeline: ImportPipeline = Depends(get_pipeline)):
    return pipeline.snapshot()


# ============================================================================
# Review
# ============================================================================

@router.post("/toggle", response_model=ImportSnapshot)
async def toggle_candidate(request: ToggleRequest, pipeline: ImportPipeline = Depends(get_pipeline)):
    """Flip one item's selection. Items already in the profile stay unselected."""
    pipeline.toggle(request.kind, request.id)
    return pipeline.snapshot()


@router.post("/accept-all", response_model=ImportSnapshot)
async def accept_all(request: BulkSelectRequest, pipeline: ImportPipeline = Depends(get_pipeline)):
    pipeline.accept_all(request.kind)
    return pipeline.snapshot()


@router.post("/deny-all", response_model=ImportSnapshot)
async def deny_all(request: BulkSelectRequest, pipeline: ImportPipeline = Depends(get_pipeline)):
    pipeline.deny_all(request.kind)
    return pipeline.snapshot()


# ============================================================================
# Confirm / cancel
# ============================================================================

@router.post("/confirm", response_model=ImportSnapshot)
async def confirm_import(pipeline: ImportPipeline = Depends(get_pipeline)):
    """Add the selected items to the profile and save the source resume."""
    return await pipeline.confirm()


@router.delete("", response_model=ImportSnapshot)
async def cancel_import(pipeline: ImportPipeline = Depends(get_pipeline)):
    pipeline.cancel()
    return pipeline.snapshot()
