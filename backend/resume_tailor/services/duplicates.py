"""
Duplicate detection against the user's existing profile.

Matching is exact after lower-casing: experience on company|position,
education on institution|degree, skills on name, projects on name or url.
"""
import asyncio
import logging

from .profile_store import ProfileStore
from .resume_import import ExtractedData

logger = logging.getLogger(__name__)


def _key(*parts) -> str:
    return "|".join((p or "").lower() for p in parts)


def _mark(candidate, is_duplicate: bool):
    return candidate.model_copy(update={
        "is_duplicate": is_duplicate,
        "accepted": False if is_duplicate else candidate.accepted,
    })


async def mark_duplicates(data: ExtractedData, store: ProfileStore, user_id: str) -> ExtractedData:
    """
    Flag candidates that already exist in the profile.

    Duplicates come back with ``is_duplicate=True`` and ``accepted=False``.
    If any of the reads fails, or the rows cannot be keyed, the input is
    returned unchanged so the import can still be reviewed.
    """
    try:
        existing_exp, existing_edu, existing_skills, existing_proj = await asyncio.gather(
            store.get_experience(user_id),
            store.get_education(user_id),
            store.get_skills(user_id),
            store.get_projects(user_id),
        )

        exp_keys = {_key(e.company, e.position) for e in existing_exp or []}
        edu_keys = {_key(e.institution, e.degree) for e in existing_edu or []}
        skill_keys = {_key(s.name) for s in existing_skills or []}
        proj_names = {_key(p.name) for p in existing_proj or []}
        proj_urls = {_key(p.url) for p in existing_proj or [] if p.url}
    except Exception as e:
        logger.warning(f"Duplicate check skipped for user {user_id}: {e}")
        return data

    marked = data.model_copy(update={
        "experience": [_mark(e, _key(e.company, e.position) in exp_keys) for e in data.experience],
        "education": [_mark(e, _key(e.institution, e.degree) in edu_keys) for e in data.education],
        "skills": [_mark(s, _key(s.name) in skill_keys) for s in data.skills],
        "projects": [
            _mark(p, _key(p.name) in proj_names or bool(p.url and _key(p.url) in proj_urls))
            for p in data.projects
        ],
    })

    logger.info(
        "Duplicates for user %s: experience=%d education=%d skills=%d projects=%d",
        user_id,
        sum(1 for e in marked.experience if e.is_duplicate),
        sum(1 for e in marked.education if e.is_duplicate),
        sum(1 for s in marked.skills if s.is_duplicate),
        sum(1 for p in marked.projects if p.is_duplicate),
    )
    return marked
