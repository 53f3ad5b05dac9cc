"""
Profile Sync Service - write confirmed resume data into the user's profile.

Each section is checked against what the profile already holds (same
case-insensitive keys as the review screen) so a repeated sync never creates
duplicates. The caller owns the transaction.
"""
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import async_session_maker
from ..exceptions import ProfileSyncError
from ..models import (
    UserProfile, WorkExperience, Education, Skill, UserProject,
    SkillCategory, ProficiencyLevel, EmploymentType,
)

logger = logging.getLogger(__name__)

ONGOING_PATTERN = re.compile(r"present|current|now", re.IGNORECASE)
EDUCATION_ONGOING_PATTERN = re.compile(r"present|current|expected", re.IGNORECASE)

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y/%m/%d", "%m/%d/%Y", "%m/%Y", "%B %d, %Y", "%b %d, %Y")
_MONTH_YEAR = re.compile(r"([A-Za-z]+)\.?\s+(\d{4})")
_YEAR = re.compile(r"(\d{4})")


# ============================================================================
# Result schema
# ============================================================================

class ProfileFieldsResult(BaseModel):
    updated: bool = False
    fields: List[str] = Field(default_factory=list)


class SectionResult(BaseModel):
    added: int = 0
    skipped: int = 0


class SyncResult(BaseModel):
    profile: ProfileFieldsResult = Field(default_factory=ProfileFieldsResult)
    experience: SectionResult = Field(default_factory=SectionResult)
    education: SectionResult = Field(default_factory=SectionResult)
    skills: SectionResult = Field(default_factory=SectionResult)
    projects: SectionResult = Field(default_factory=SectionResult)
    message: str = ""

    @property
    def total_skipped(self) -> int:
        return self.experience.skipped + self.education.skipped + self.skills.skipped + self.projects.skipped


# ============================================================================
# Parsing helpers
# ============================================================================

def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Lenient resume date parsing.

    "Present"/"Current"/"Now" → None (ongoing). Handles ISO dates, "Month
    YYYY" and a bare year (→ January 1st). Anything else → None.
    """
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if ONGOING_PATTERN.search(value):
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    match = _MONTH_YEAR.search(value)
    if match:
        month, year = match.groups()
        for candidate, fmt in ((month, "%B %Y"), (month[:3], "%b %Y")):
            try:
                return datetime.strptime(f"{candidate} {year}", fmt).date()
            except ValueError:
                continue

    match = _YEAR.search(value)
    if match:
        return date(int(match.group(1)), 1, 1)
    return None


def map_category(category_name: Optional[str]) -> SkillCategory:
    """Map a free-form skill group title to a stored skill category."""
    lower = (category_name or "").lower()
    if "language" in lower and "programming" not in lower:
        return SkillCategory.LANGUAGE
    if "framework" in lower or "library" in lower:
        return SkillCategory.FRAMEWORK
    if "tool" in lower or "devops" in lower or "platform" in lower:
        return SkillCategory.TOOL
    if "soft" in lower or "interpersonal" in lower:
        return SkillCategory.SOFT
    return SkillCategory.TECHNICAL


def normalize_url(url: str) -> str:
    return url if url.startswith("http") else f"https://{url}"


def _list(value) -> List[Any]:
    return value if isinstance(value, list) else []


def _records(value) -> List[Dict[str, Any]]:
    return [v for v in _list(value) if isinstance(v, dict)]


def _get(item: Dict[str, Any], *keys):
    for key in keys:
        if item.get(key):
            return item[key]
    return None


def build_message(result: SyncResult) -> str:
    parts = []
    if result.profile.updated:
        parts.append(f"Updated profile ({', '.join(result.profile.fields)})")
    if result.experience.added:
        parts.append(f"{result.experience.added} experience{'s' if result.experience.added > 1 else ''}")
    if result.education.added:
        parts.append(f"{result.education.added} education")
    if result.skills.added:
        parts.append(f"{result.skills.added} skills")
    if result.projects.added:
        parts.append(f"{result.projects.added} project{'s' if result.projects.added > 1 else ''}")

    message = f"Added: {', '.join(parts)}" if parts else "No new data to add"
    if result.total_skipped:
        message += f" ({result.total_skipped} duplicates skipped)"
    return message


# ============================================================================
# Sync service
# ============================================================================

class ProfileSyncService:
    """Runs one sync inside the caller's session. The caller commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _existing(self, model, user_id: str) -> list:
        result = await self.db.execute(select(model).where(model.user_id == user_id))
        return list(result.scalars().all())

    async def sync(self, user_id: str, parsed_resume: Dict[str, Any]) -> SyncResult:
        if not isinstance(parsed_resume, dict):
            parsed_resume = {}

        logger.info(
            f"Syncing profile for user {user_id}: "
            f"experience={len(_list(parsed_resume.get('experience')))} "
            f"education={len(_list(parsed_resume.get('education')))} "
            f"projects={len(_list(parsed_resume.get('projects')))}"
        )

        result = SyncResult(
            profile=await self.sync_contact_info(user_id, _get(parsed_resume, "contactInfo", "contact_info")),
            experience=await self.sync_experience(user_id, parsed_resume.get("experience")),
            education=await self.sync_education(user_id, parsed_resume.get("education")),
            skills=await self.sync_skills(user_id, parsed_resume.get("skills")),
            projects=await self.sync_projects(user_id, parsed_resume.get("projects")),
        )
        result.message = build_message(result)
        logger.info(f"Profile sync for user {user_id}: {result.message}")
        return result

    async def sync_contact_info(self, user_id: str, contact_info: Optional[Dict[str, Any]]) -> ProfileFieldsResult:
        if not isinstance(contact_info, dict):
            return ProfileFieldsResult()

        updates: Dict[str, str] = {}
        fields: List[str] = []
        plain = (("name", "full_name"), ("phone", "phone"), ("location", "location"))
        links = (("linkedin", "linkedin_url"), ("github", "github_url"), ("website", "website_url"))

        for key, column in plain:
            if contact_info.get(key):
                updates[column] = str(contact_info[key])
                fields.append(key)
        for key, column in links:
            if contact_info.get(key):
                updates[column] = normalize_url(str(contact_info[key]))
                fields.append(key)

        if not updates:
            return ProfileFieldsResult()

        profile = await self.db.get(UserProfile, user_id)
        if profile is None:
            profile = UserProfile(id=user_id)
            self.db.add(profile)
        for column, value in updates.items():
            setattr(profile, column, value)
        await self.db.flush()
        return ProfileFieldsResult(updated=True, fields=fields)

    async def sync_experience(self, user_id: str, experience) -> SectionResult:
        items = _records(experience)
        if not items:
            return SectionResult()

        seen = {
            f"{e.company.lower()}|{e.position.lower()}"
            for e in await self._existing(WorkExperience, user_id)
        }
        result = SectionResult()

        for exp in items:
            company = str(exp.get("company") or "")
            position = str(_get(exp, "position", "title") or "Unknown Position")
            key = f"{company.lower()}|{position.lower()}"
            if key in seen:
                result.skipped += 1
                continue

            raw_end = _get(exp, "endDate", "end_date")
            end_date = parse_date(raw_end)
            row = WorkExperience(
                user_id=user_id,
                company=company,
                position=position,
                location=exp.get("location") or None,
                employment_type=EmploymentType.FULL_TIME,
                description=exp.get("description") or None,
                achievements=[str(b) for b in _list(exp.get("bullets"))],
                skills=[],
                start_date=parse_date(_get(exp, "startDate", "start_date")) or date.today(),
                end_date=end_date,
                is_current=bool(end_date is None and raw_end and ONGOING_PATTERN.search(str(raw_end))),
            )
            self.db.add(row)
            result.added += 1
            seen.add(key)

        await self.db.flush()
        return result

    async def sync_education(self, user_id: str, education) -> SectionResult:
        items = _records(education)
        if not items:
            return SectionResult()

        seen = {
            f"{e.institution.lower()}|{e.degree.lower()}"
            for e in await self._existing(Education, user_id)
        }
        result = SectionResult()

        for edu in items:
            institution = str(edu.get("institution") or "")
            degree = str(edu.get("degree") or "")
            key = f"{institution.lower()}|{degree.lower()}"
            if key in seen:
                result.skipped += 1
                continue

            raw_end = _get(edu, "endDate", "end_date")
            end_date = parse_date(raw_end)
            row = Education(
                user_id=user_id,
                institution=institution,
                degree=degree,
                field_of_study=_get(edu, "field", "field_of_study") or None,
                location=edu.get("location") or None,
                gpa=str(edu["gpa"]) if edu.get("gpa") else None,
                description=None,
                achievements=[str(h) for h in _list(edu.get("highlights"))],
                start_date=parse_date(_get(edu, "startDate", "start_date")) or date.today(),
                end_date=end_date,
                is_current=bool(end_date is None and raw_end and EDUCATION_ONGOING_PATTERN.search(str(raw_end))),
            )
            self.db.add(row)
            result.added += 1
            seen.add(key)

        await self.db.flush()
        return result

    async def sync_skills(self, user_id: str, skills) -> SectionResult:
        if not skills:
            return SectionResult()

        to_add = []
        if isinstance(skills, list):
            to_add = [(s, SkillCategory.OTHER) for s in skills if isinstance(s, str)]
        elif isinstance(skills, dict):
            for category in _records(skills.get("categories")):
                mapped = map_category(category.get("name"))
                to_add.extend((s, mapped) for s in _list(category.get("skills")) if isinstance(s, str))

        seen = {s.name.lower() for s in await self._existing(Skill, user_id)}
        result = SectionResult()

        for name, category in to_add:
            if name.lower() in seen:
                result.skipped += 1
                continue
            row = Skill(
                user_id=user_id,
                name=name,
                category=category,
                proficiency=ProficiencyLevel.INTERMEDIATE,
                years_of_experience=None,
            )
            self.db.add(row)
            result.added += 1
            seen.add(name.lower())

        await self.db.flush()
        return result

    async def sync_projects(self, user_id: str, projects) -> SectionResult:
        items = _records(projects)
        if not items:
            return SectionResult()

        existing = await self._existing(UserProject, user_id)
        names = {p.name.lower() for p in existing}
        urls = {p.url.lower() for p in existing if p.url}
        result = SectionResult()

        for proj in items:
            name = str(proj.get("name") or "")
            url = proj.get("url") or None
            if name.lower() in names or (url and url.lower() in urls):
                result.skipped += 1
                continue

            row = UserProject(
                user_id=user_id,
                name=name,
                description=proj.get("description") or None,
                bullets=[str(b) for b in _list(proj.get("bullets"))],
                skills=[str(t) for t in _list(proj.get("technologies"))],
                start_date=parse_date(_get(proj, "startDate", "start_date")),
                end_date=parse_date(_get(proj, "endDate", "end_date")),
                url=url,
                is_featured=False,
            )
            self.db.add(row)
            result.added += 1
            names.add(name.lower())
            if url:
                urls.add(url.lower())

        await self.db.flush()
        return result


class SqlProfileSyncer:
    """Pipeline collaborator: one committed sync per call."""

    def __init__(self, session_maker=async_session_maker):
        self._session_maker = session_maker

    async def sync(self, user_id: str, parsed_resume: Dict[str, Any]) -> SyncResult:
        async with self._session_maker() as session:
            try:
                result = await ProfileSyncService(session).sync(user_id, parsed_resume)
                await session.commit()
            except Exception as e:
                await session.rollback()
                raise ProfileSyncError("Failed to sync profile", cause=e)
        return result
