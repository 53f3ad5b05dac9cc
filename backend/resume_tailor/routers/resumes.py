"""
Resumes Router - stored resumes, tailored saves, export and the block editor
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..exceptions import BlockDataError, StorageUploadError
from ..models import ResumeType
from ..schemas.blocks import ResumeDocument
from ..schemas.resume import (
    ResumeResponse, SaveTailoredRequest, SaveTailoredResponse, ResumeContentUpdate,
)
from ..services.auth import AuthenticatedUser, get_current_user
from ..services.resume_editor import EditorSessionRegistry, ResumeEditor, SaveState
from ..services.resume_import import document_from_content
from ..services.resume_records import (
    list_resumes, get_resume, save_tailored_resume, update_resume_content,
)
from ..services.resume_renderer import render_pdf, render_text
from ..services.supabase_upload import create_signed_url, delete_from_supabase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resumes", tags=["Resumes"])

editor_sessions = EditorSessionRegistry(preview_delay=get_settings().preview_debounce_seconds)


def get_editor_sessions() -> EditorSessionRegistry:
    return editor_sessions


async def _get_resume_or_404(db: AsyncSession, user_id: str, resume_id: int):
    resume = await get_resume(db, user_id, resume_id)
    if not resume:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resume not found"
        )
    return resume


def _parse_document(content: Dict[str, Any]) -> ResumeDocument:
    try:
        return ResumeDocument.from_content(content)
    except ValidationError as e:
        raise BlockDataError(
            "Invalid resume document",
            details={"errors": e.errors(include_url=False, include_context=False)},
            cause=e
        )


def _pdf_response(pdf_bytes: bytes, name: str) -> Response:
    safe_name = "".join(c if c.isalnum() or c in "-_ " else "_" for c in name).strip() or "resume"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{safe_name}.pdf"'}
    )


# ============================================================================
# Stored resumes
# ============================================================================

@router.get("", response_model=List[ResumeResponse])
async def list_my_resumes(
    resume_type: Optional[ResumeType] = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """List resumes, newest first. Filter with ``?type=source`` or ``?type=tailored``."""
    return await list_resumes(db, current_user.id, resume_type)


@router.get("/{resume_id}", response_model=ResumeResponse)
async def get_my_resume(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    return await _get_resume_or_404(db, current_user.id, resume_id)


@router.delete("/{resume_id}")
async def delete_my_resume(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    """Delete a resume. The stored file is removed on a best-effort basis."""
    resume = await _get_resume_or_404(db, current_user.id, resume_id)
    file_url = resume.file_url

    await db.delete(resume)
    await db.commit()
    sessions.close(current_user.id, resume_id)

    if file_url:
        try:
            await delete_from_supabase(file_url)
        except StorageUploadError as e:
            logger.warning(f"Could not delete stored file for resume {resume_id}: {e}")

    return {"message": "Resume deleted"}


@router.get("/{resume_id}/file-url")
async def get_resume_file_url(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Short-lived download link for the original uploaded file."""
    resume = await _get_resume_or_404(db, current_user.id, resume_id)
    if not resume.file_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No file stored for this resume"
        )
    expires_in = get_settings().signed_url_expires_seconds
    url = await create_signed_url(resume.file_url, expires_in=expires_in)
    return {"url": url, "expires_in": expires_in}


@router.post("/tailored", response_model=SaveTailoredResponse, status_code=status.HTTP_201_CREATED)
async def save_tailored(
    request: SaveTailoredRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Save a resume tailored to a job, creating the saved job if needed."""
    resume = await save_tailored_resume(
        db, current_user.id,
        name=request.name,
        content=request.content,
        target_job=request.target_job.model_dump(),
        file_url=request.file_url,
        match_score=request.match_score,
        original_resume=request.original_resume,
    )
    await db.commit()
    return SaveTailoredResponse(resume_id=resume.id, job_id=resume.target_job_id)


@router.put("/{resume_id}/content", response_model=ResumeResponse)
async def update_content(
    resume_id: int,
    update: ResumeContentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Replace the stored document. The body must be a valid block document."""
    resume = await _get_resume_or_404(db, current_user.id, resume_id)
    document = _parse_document(update.content)
    await update_resume_content(db, resume, document, name=update.name)
    await db.commit()
    return await _get_resume_or_404(db, current_user.id, resume_id)


# ============================================================================
# Export
# ============================================================================

@router.post("/render")
async def render_document(
    document: Dict[str, Any],
    format: str = Query(default="pdf", pattern="^(pdf|txt)$"),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Render an unsaved document (e.g. straight from the tailoring flow)."""
    resume_document = _parse_document(document)
    if format == "txt":
        return Response(content=render_text(resume_document), media_type="text/plain")
    pdf_bytes = await asyncio.to_thread(render_pdf, resume_document)
    return _pdf_response(pdf_bytes, "resume")


@router.get("/{resume_id}/export")
async def export_resume(
    resume_id: int,
    format: str = Query(default="pdf", pattern="^(pdf|txt)$"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    resume = await _get_resume_or_404(db, current_user.id, resume_id)
    document = document_from_content(resume.content, resume.name)
    if format == "txt":
        return Response(content=render_text(document), media_type="text/plain")
    pdf_bytes = await asyncio.to_thread(render_pdf, document)
    return _pdf_response(pdf_bytes, resume.name)


# ============================================================================
# Editor
# ============================================================================

class EditorState(BaseModel):
    resume_id: int
    save_state: str
    preview_pending: bool
    preview_generation: Optional[int] = None
    document: Dict[str, Any]


class BlockDataUpdate(BaseModel):
    data: Dict[str, Any]


class EntryCreate(BaseModel):
    entry: Dict[str, Any]
    index: Optional[int] = None


class EntryMove(BaseModel):
    from_index: int
    to_index: int


class BlockOrder(BaseModel):
    block_ids: List[str]


def _editor_state(resume_id: int, editor: ResumeEditor) -> EditorState:
    return EditorState(
        resume_id=resume_id,
        save_state=editor.save_state.value,
        preview_pending=editor.preview_pending,
        preview_generation=editor.preview.generation if editor.preview else None,
        document=editor.document.model_dump(by_alias=True, exclude_none=True),
    )


def _open_editor(
    sessions: EditorSessionRegistry, user_id: str, resume_id: int
) -> ResumeEditor:
    editor = sessions.get(user_id, resume_id)
    if editor is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Editor is not open for this resume"
        )
    return editor


@router.post("/{resume_id}/editor", response_model=EditorState)
async def open_editor(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    """Open (or resume) an editing session on a stored resume."""
    resume = await _get_resume_or_404(db, current_user.id, resume_id)
    editor = sessions.open(current_user.id, resume_id, document_from_content(resume.content, resume.name))
    return _editor_state(resume_id, editor)


@router.post("/{resume_id}/editor/blocks/{block_id}/toggle", response_model=EditorState)
async def toggle_block(
    resume_id: int,
    block_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.toggle_visibility(block_id)
    return _editor_state(resume_id, editor)


@router.put("/{resume_id}/editor/blocks/{block_id}", response_model=EditorState)
async def update_block(
    resume_id: int,
    block_id: str,
    update: BlockDataUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.update_block_data(block_id, update.data)
    return _editor_state(resume_id, editor)


@router.post("/{resume_id}/editor/blocks/{block_id}/entries", response_model=EditorState)
async def add_block_entry(
    resume_id: int,
    block_id: str,
    request: EntryCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.add_entry(block_id, request.entry, index=request.index)
    return _editor_state(resume_id, editor)


@router.delete("/{resume_id}/editor/blocks/{block_id}/entries/{entry_id}", response_model=EditorState)
async def remove_block_entry(
    resume_id: int,
    block_id: str,
    entry_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.remove_entry(block_id, entry_id)
    return _editor_state(resume_id, editor)


@router.post("/{resume_id}/editor/blocks/{block_id}/entries/move", response_model=EditorState)
async def move_block_entry(
    resume_id: int,
    block_id: str,
    move: EntryMove,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.move_entry(block_id, move.from_index, move.to_index)
    return _editor_state(resume_id, editor)


@router.put("/{resume_id}/editor/order", response_model=EditorState)
async def reorder_blocks(
    resume_id: int,
    order: BlockOrder,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    editor.reorder_blocks(order.block_ids)
    return _editor_state(resume_id, editor)


@router.get("/{resume_id}/editor/preview")
async def get_preview(
    resume_id: int,
    wait: bool = False,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    """Latest rendered preview. ``?wait=true`` waits for a pending render."""
    editor = _open_editor(sessions, current_user.id, resume_id)
    preview = await editor.flush_preview() if wait else editor.preview
    if preview is None or preview.released:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No preview rendered yet"
        )
    return _pdf_response(preview.content, f"preview-{preview.generation}")


@router.post("/{resume_id}/editor/save", response_model=EditorState)
async def save_editor(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    editor = _open_editor(sessions, current_user.id, resume_id)
    resume = await _get_resume_or_404(db, current_user.id, resume_id)

    editor.mark_saving()
    try:
        await update_resume_content(db, resume, editor.document)
        await db.commit()
    except Exception:
        editor.save_state = SaveState.UNSAVED
        raise
    editor.mark_saved()
    return _editor_state(resume_id, editor)


@router.delete("/{resume_id}/editor")
async def close_editor(
    resume_id: int,
    current_user: AuthenticatedUser = Depends(get_current_user),
    sessions: EditorSessionRegistry = Depends(get_editor_sessions)
):
    """Close the session; unsaved edits are discarded."""
    sessions.close(current_user.id, resume_id)
    return {"message": "Editor closed"}
