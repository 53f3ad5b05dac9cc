"""
Resume Records Service - stored resumes, saved jobs and tailoring history.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import async_session_maker
from ..models import UserResume, SavedJob, TailoringHistory, ResumeType
from ..schemas.blocks import ResumeDocument

logger = logging.getLogger(__name__)


async def list_resumes(db: AsyncSession, user_id: str, resume_type: Optional[ResumeType] = None) -> List[UserResume]:
    """Newest first, with the target job loaded."""
    query = (
        select(UserResume)
        .options(selectinload(UserResume.target_job))
        .where(UserResume.user_id == user_id)
        .order_by(UserResume.created_at.desc(), UserResume.id.desc())
    )
    if resume_type:
        query = query.where(UserResume.resume_type == resume_type)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_resume(db: AsyncSession, user_id: str, resume_id: int) -> Optional[UserResume]:
    result = await db.execute(
        select(UserResume)
        .options(selectinload(UserResume.target_job))
        .where(UserResume.id == resume_id, UserResume.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def count_resumes(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(select(func.count(UserResume.id)).where(UserResume.user_id == user_id))
    return result.scalar_one()


async def create_resume(
    db: AsyncSession,
    user_id: str,
    name: str,
    resume_type: ResumeType,
    content: Optional[str],
    file_url: Optional[str] = None,
    is_primary: bool = False,
    match_score: Optional[int] = None,
    target_job_id: Optional[int] = None,
    source_resume_id: Optional[int] = None,
) -> UserResume:
    resume = UserResume(
        user_id=user_id,
        name=name,
        resume_type=resume_type,
        content=content,
        file_url=file_url,
        is_primary=is_primary,
        match_score=match_score,
        target_job_id=target_job_id,
        source_resume_id=source_resume_id,
    )
    db.add(resume)
    await db.flush()
    return resume


async def update_resume_content(db: AsyncSession, resume: UserResume, document: ResumeDocument, name: Optional[str] = None) -> UserResume:
    resume.content = document.to_content()
    if name:
        resume.name = name
    await db.flush()
    return resume


async def find_or_create_saved_job(db: AsyncSession, user_id: str, title: str, company: str,
                                   description: str = "", url: Optional[str] = None) -> SavedJob:
    """Jobs are matched on exact title + company."""
    result = await db.execute(
        select(SavedJob).where(
            SavedJob.user_id == user_id,
            SavedJob.title == title,
            SavedJob.company == company,
        )
    )
    job = result.scalars().first()
    if job:
        return job

    job = SavedJob(
        user_id=user_id,
        title=title,
        company=company,
        description=description,
        url=url,
        status="saved",
    )
    db.add(job)
    await db.flush()
    return job


async def save_tailored_resume(
    db: AsyncSession,
    user_id: str,
    name: str,
    content: Dict[str, Any],
    target_job: Dict[str, Any],
    file_url: Optional[str] = None,
    match_score: Optional[int] = None,
    original_resume: Optional[Dict[str, Any]] = None,
) -> UserResume:
    """
    Store a tailored resume linked to its target job.

    The history row only feeds the recent-activity list, so failing to write
    it is logged and does not fail the save.
    """
    job = await find_or_create_saved_job(
        db, user_id,
        title=target_job["title"],
        company=target_job["company"],
        description=target_job.get("description") or "",
        url=target_job.get("url"),
    )

    resume = await create_resume(
        db, user_id,
        name=name,
        resume_type=ResumeType.TAILORED,
        content=json.dumps(content),
        file_url=file_url,
        match_score=match_score,
        target_job_id=job.id,
        is_primary=False,
    )

    try:
        async with db.begin_nested():
            db.add(TailoringHistory(
                user_id=user_id,
                resume_id=resume.id,
                job_id=job.id,
                job_title=job.title,
                company_name=job.company,
                job_description=job.description,
                original_resume=json.dumps(original_resume or {}),
                tailored_resume=json.dumps(content),
                match_score=match_score,
            ))
    except Exception as e:
        logger.warning(f"Could not record tailoring history for resume {resume.id}: {e}")

    logger.info(f"✅ Saved tailored resume {resume.id} for {job.title} at {job.company}")
    return resume


class SqlResumeRecordStore:
    """Import pipeline collaborator: records the imported source resume."""

    def __init__(self, session_maker=async_session_maker):
        self._session_maker = session_maker

    async def create_source_resume(self, user_id: str, name: str, content: str,
                                   file_url: Optional[str], is_primary: bool) -> UserResume:
        async with self._session_maker() as session:
            resume = await create_resume(
                session, user_id,
                name=name,
                resume_type=ResumeType.SOURCE,
                content=content,
                file_url=file_url,
                is_primary=is_primary,
            )
            await session.commit()
            return resume
