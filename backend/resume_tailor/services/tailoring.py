"""
Resume Tailoring Service - job description parsing and profile → tailored
resume generation with Gemini.

The model only rewrites and reorders what is already on the profile; the
contact details always come straight from the profile.
"""
import json
import logging
from datetime import date, datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    ResumeTailorError, DocumentParseError, JobDescriptionTooShortError,
    NoProfileDataError, TailoringError,
)
from ..models import UserProfile, WorkExperience, Education, Skill, UserProject, SkillCategory
from ..schemas.blocks import DocumentMetadata
from ..schemas.tailoring import JobDescription, ParsedJob, TailoringSummary, TailorResponse
from .resume_import import document_from_content
from .resume_parser import generate_json

logger = logging.getLogger(__name__)

JsonGenerator = Callable[..., Awaitable[Dict[str, Any]]]

MIN_JOB_TEXT_LENGTH = 50

CATEGORY_LABELS = {
    SkillCategory.TECHNICAL: "Technical Skills",
    SkillCategory.FRAMEWORK: "Frameworks",
    SkillCategory.TOOL: "Tools",
    SkillCategory.LANGUAGE: "Languages",
    SkillCategory.SOFT: "Soft Skills",
    SkillCategory.OTHER: "Other",
}


JOB_PARSE_PROMPT = """Parse this job description and extract the key information.

JOB DESCRIPTION:
---
{text}
---

Return ONLY a JSON object with these keys:
{{
  "title": "Job title",
  "company": "Company name",
  "location": "City, remote, hybrid, ...",
  "employmentType": "Full-time, part-time, contract, ...",
  "salaryRange": "Salary range if mentioned, otherwise omit",
  "description": "Brief summary of the role (2-3 sentences)",
  "responsibilities": ["..."],
  "requirements": ["Required qualifications"],
  "niceToHaves": ["Preferred qualifications"],
  "technicalSkills": ["Languages, frameworks, tools"],
  "experienceLevel": "Years of experience or seniority",
  "keywords": ["Important keywords for a resume"]
}}
"""


TAILOR_PROMPT = """Tailor this resume for ATS optimization. Reorder and rephrase to match job keywords.

## RULES
- NEVER fabricate info. Only use the candidate's data below.
- Use STAR format: Action verb + what you did + quantified result
- Action verbs: Built, Led, Optimized, Delivered, Scaled, Launched, Designed, Implemented
- Quantify where the data supports it: users, %, time saved, scale
- Experience: 3-4 bullets each | Projects: 2-3 bullets each
- Match keywords from the job posting in your bullets

## JOB POSTING
{title} at {company}
{full_text}
{keywords}

## CANDIDATE DATA
{summary}
Experience: {experience}
Education: {education}
Projects: {projects}
Skills: {skills}

Return ONLY a JSON object with these keys:
{{
  "professionalSummary": "2-3 sentence summary tailored to the job",
  "experience": [{{"company": "", "position": "", "location": "", "startDate": "", "endDate": "omit if current", "bullets": [""]}}],
  "education": [{{"institution": "", "degree": "", "field": "", "location": "", "endDate": "", "gpa": "", "highlights": [""]}}],
  "projects": [{{"name": "", "description": "", "technologies": [""], "url": "", "bullets": [""]}}],
  "technicalSkills": ["..."],
  "frameworksAndTools": ["..."],
  "keyImprovements": ["Key improvements made to the resume"],
  "keywordsAdded": ["Keywords from the job posting that were incorporated"],
  "matchScore": 0
}}
"""


# ============================================================================
# Job descriptions
# ============================================================================

def _strings(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


async def parse_job_description(
    text: str,
    title: Optional[str] = None,
    company: Optional[str] = None,
    generate: JsonGenerator = generate_json,
) -> ParsedJob:
    """Pull title, company, requirements and keywords out of a pasted job posting.

    A title or company supplied by the user wins over what the model found.
    """
    if not text or len(text.strip()) < MIN_JOB_TEXT_LENGTH:
        raise JobDescriptionTooShortError(len((text or "").strip()), MIN_JOB_TEXT_LENGTH)

    raw = await generate(JOB_PARSE_PROMPT.format(text=text), error_message="Failed to parse job description")

    job = ParsedJob(
        title=title or str(raw.get("title") or ""),
        company=company or str(raw.get("company") or ""),
        location=raw.get("location") or None,
        employment_type=raw.get("employmentType") or None,
        salary_range=raw.get("salaryRange") or None,
        description=str(raw.get("description") or ""),
        responsibilities=_strings(raw.get("responsibilities")),
        requirements=_strings(raw.get("requirements")),
        nice_to_haves=_strings(raw.get("niceToHaves")),
        technical_skills=_strings(raw.get("technicalSkills")),
        experience_level=raw.get("experienceLevel") or None,
        keywords=_strings(raw.get("keywords")),
        text=text,
    )
    if not job.title or not job.company:
        raise DocumentParseError(
            "Failed to extract required job information",
            details={"title": job.title, "company": job.company}
        )
    logger.info(f"Parsed job description: {job.title} at {job.company}")
    return job


# ============================================================================
# Profile → candidate data
# ============================================================================

def _month(value: Optional[date]) -> Optional[str]:
    return value.strftime("%b %Y") if value else None


def _lines(text: Optional[str]) -> List[str]:
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


async def load_profile_data(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    """
    The user's profile in parsed-resume shape (``contactInfo``, ``experience``,
    ``education``, ``projects``, ``skills``), newest entries first.
    """
    profile = await db.get(UserProfile, user_id)
    experience = (await db.execute(
        select(WorkExperience).where(WorkExperience.user_id == user_id)
        .order_by(WorkExperience.start_date.desc())
    )).scalars().all()
    education = (await db.execute(
        select(Education).where(Education.user_id == user_id)
        .order_by(Education.end_date.desc())
    )).scalars().all()
    projects = (await db.execute(
        select(UserProject).where(UserProject.user_id == user_id)
        .order_by(UserProject.created_at.desc())
    )).scalars().all()
    skills = (await db.execute(
        select(Skill).where(Skill.user_id == user_id).order_by(Skill.id)
    )).scalars().all()

    groups: Dict[str, List[str]] = {}
    for skill in skills:
        label = CATEGORY_LABELS.get(skill.category, "Other")
        groups.setdefault(label, []).append(skill.name)

    return {
        "contactInfo": {
            "name": profile.full_name if profile else None,
            "email": profile.email if profile else None,
            "phone": profile.phone if profile else None,
            "location": profile.location if profile else None,
            "linkedin": profile.linkedin_url if profile else None,
            "github": profile.github_url if profile else None,
            "website": profile.website_url if profile else None,
        },
        "professionalSummary": profile.professional_summary if profile else None,
        "experience": [
            {
                "company": e.company,
                "position": e.position,
                "location": e.location,
                "startDate": _month(e.start_date),
                "endDate": None if e.is_current else _month(e.end_date),
                "bullets": list(e.achievements or []) or _lines(e.description),
            }
            for e in experience
        ],
        "education": [
            {
                "institution": e.institution,
                "degree": e.degree,
                "field": e.field_of_study,
                "location": e.location,
                "startDate": _month(e.start_date),
                "endDate": _month(e.end_date),
                "gpa": e.gpa,
                "highlights": list(e.achievements or []),
            }
            for e in education
        ],
        "projects": [
            {
                "name": p.name,
                "description": p.description,
                "technologies": list(p.skills or []),
                "url": p.url,
                "bullets": list(p.bullets or []) or _lines(p.description),
            }
            for p in projects
        ],
        "skills": {
            "format": "categorized",
            "categories": [{"name": name, "skills": names} for name, names in groups.items()],
        },
    }


# ============================================================================
# Tailoring
# ============================================================================

def _json_list(value) -> List[Dict[str, Any]]:
    """A list of objects, also accepted as a JSON-encoded string."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unparseable section from tailoring reply: {value[:200]}")
            return []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _match_score(value) -> int:
    try:
        return max(0, min(100, int(value)))
    except (TypeError, ValueError):
        return 0


class TailoringService:
    """Builds a tailored ``ResumeDocument`` from profile data and a job."""

    def __init__(self, generate: JsonGenerator = generate_json):
        self.generate = generate

    def _prompt(self, profile: Dict[str, Any], job: JobDescription) -> str:
        summary = profile.get("professionalSummary")
        return TAILOR_PROMPT.format(
            title=job.title,
            company=job.company,
            full_text=job.full_text,
            keywords=f"Keywords: {', '.join(job.keywords)}" if job.keywords else "",
            summary=f"Current Summary: {summary}" if summary else "",
            experience=json.dumps(profile.get("experience", [])),
            education=json.dumps(profile.get("education", [])),
            projects=json.dumps(profile.get("projects", [])),
            skills=json.dumps(profile.get("skills", {})),
        )

    def build_response(self, profile: Dict[str, Any], job: JobDescription, reply: Dict[str, Any]) -> TailorResponse:
        categories = [
            {"name": name, "skills": _strings(reply.get(key))}
            for name, key in (("Technical Skills", "technicalSkills"), ("Frameworks & Tools", "frameworksAndTools"))
            if _strings(reply.get(key))
        ]
        parsed = {
            "contactInfo": profile.get("contactInfo") or {},
            "professionalSummary": reply.get("professionalSummary") or profile.get("professionalSummary"),
            "experience": _json_list(reply.get("experience", reply.get("experienceJson"))),
            "education": _json_list(reply.get("education", reply.get("educationJson"))),
            "projects": _json_list(reply.get("projects", reply.get("projectsJson"))),
            "skills": {"categories": categories} if categories else profile.get("skills"),
        }

        document = document_from_content(parsed)
        document.metadata = DocumentMetadata(
            target_job=job.title,
            target_company=job.company,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        improvements = _strings(reply.get("keyImprovements"))
        return TailorResponse(
            content=document.model_dump(by_alias=True, exclude_none=True),
            match_score=_match_score(reply.get("matchScore")),
            summary=TailoringSummary(
                total_changes=len(improvements),
                key_improvements=improvements,
                keywords_added=_strings(reply.get("keywordsAdded")),
            ),
            original_resume=profile,
        )

    async def tailor(self, profile: Dict[str, Any], job: JobDescription) -> TailorResponse:
        if not profile.get("experience") and not profile.get("projects"):
            raise NoProfileDataError()

        try:
            reply = await self.generate(self._prompt(profile, job), error_message="Failed to generate resume", temperature=0.4)
        except DocumentParseError as e:
            raise TailoringError("Failed to generate resume", cause=e)

        result = self.build_response(profile, job, reply)
        logger.info(f"✅ Tailored resume for {job.title} at {job.company} (match {result.match_score})")
        return result

    async def stream(self, profile: Dict[str, Any], job: JobDescription) -> AsyncIterator[Dict[str, Any]]:
        """Progress events for a tailoring run, ending in ``complete`` or ``error``."""
        yield {"type": "phase", "phase": "analyzing-resume", "progress": 5}
        yield {
            "type": "thought",
            "thought": (
                f"Found {len(profile.get('experience', []))} jobs, {len(profile.get('projects', []))} projects, "
                f"{len(profile.get('education', []))} education entries"
            ),
            "phase": "analyzing-resume",
            "progress": 20,
        }
        yield {"type": "phase", "phase": "tailoring", "progress": 30}
        yield {
            "type": "thought",
            "thought": f"Tailoring your resume for {job.company}...",
            "phase": "tailoring",
            "progress": 35,
        }

        try:
            result = await self.tailor(profile, job)
        except ResumeTailorError as e:
            logger.warning(f"Tailoring stream failed: {e}")
            yield {"type": "error", "message": e.message}
            return
        except Exception:
            logger.exception("Tailoring stream failed")
            yield {"type": "error", "message": "An error occurred"}
            return

        yield {"type": "phase", "phase": "complete", "progress": 100}
        yield {"type": "complete", "result": result.model_dump(by_alias=True)}
