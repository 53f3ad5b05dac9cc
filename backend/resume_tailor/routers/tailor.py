"""
Tailoring Router - parse a job posting, then tailor the profile to it.

``POST /api/tailor/stream`` reports progress as server-sent events; plain
``POST /api/tailor`` returns the same result in one response.
"""
import json

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import NoProfileDataError
from ..schemas.tailoring import JobParseRequest, ParsedJob, TailorRequest, TailorResponse
from ..services.auth import AuthenticatedUser, get_current_user
from ..services.resume_parser import generate_json
from ..services.tailoring import JsonGenerator, TailoringService, load_profile_data, parse_job_description

router = APIRouter(prefix="/api", tags=["Tailoring"])


def get_json_generator() -> JsonGenerator:
    return generate_json


async def _profile_or_400(db: AsyncSession, user_id: str):
    profile = await load_profile_data(db, user_id)
    if not profile["experience"] and not profile["projects"]:
        raise NoProfileDataError()
    return profile


@router.post("/job/parse", response_model=ParsedJob)
async def parse_job(
    request: JobParseRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    generate: JsonGenerator = Depends(get_json_generator),
):
    """Extract title, company, requirements and keywords from a job posting (min 50 characters)."""
    return await parse_job_description(request.text, request.title, request.company, generate=generate)


@router.post("/tailor", response_model=TailorResponse)
async def tailor_resume(
    request: TailorRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    generate: JsonGenerator = Depends(get_json_generator),
):
    profile = await _profile_or_400(db, current_user.id)
    return await TailoringService(generate).tailor(profile, request.job_description)


@router.post("/tailor/stream")
async def tailor_resume_stream(
    request: TailorRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    generate: JsonGenerator = Depends(get_json_generator),
):
    """
    Tailor with progress events: ``phase``, ``thought``, then ``complete``
    (with the result) or ``error``. The profile is loaded before streaming
    starts, so a missing profile is still a plain 400.
    """
    profile = await _profile_or_400(db, current_user.id)
    service = TailoringService(generate)

    async def event_stream():
        async for event in service.stream(profile, request.job_description):
            yield f"data: {json.dumps(event)}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
