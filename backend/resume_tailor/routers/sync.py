"""
Profile Sync Router - merge a parsed resume into the career-history tables
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import ProfileSyncError
from ..schemas.resume import SyncProfileRequest, SyncProfileResponse
from ..services.auth import AuthenticatedUser, get_current_user
from ..services.profile_sync import ProfileSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resume", tags=["Profile Sync"])


@router.post("/sync-profile", response_model=SyncProfileResponse)
async def sync_profile(
    request: SyncProfileRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Add experience, education, skills and projects from a parsed resume.

    Rows already on the profile are skipped; contact fields only fill gaps.
    The whole sync commits or nothing does.
    """
    try:
        result = await ProfileSyncService(db).sync(current_user.id, request.parsed_resume)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Profile sync failed for user {current_user.id}: {e}")
        raise ProfileSyncError("Failed to sync profile", cause=e)

    return SyncProfileResponse(
        message=result.message,
        result=result.model_dump(exclude={"message"}),
    )
