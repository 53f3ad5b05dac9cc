"""
Resume Import - normalize parser output into reviewable candidates.

The structured parser may return anything (missing sections, wrong types,
camelCase or snake_case keys). ``transform_parsed_data`` never raises; bad
input just degrades to empty lists.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from ..schemas.blocks import (
    DocumentModel, ResumeDocument, HeaderData, SkillsData, SkillCategory,
    ExperienceEntry, EducationEntry, ProjectEntry, generate_id,
    create_header_block, create_summary_block, create_experience_block,
    create_education_block, create_skills_block, create_projects_block,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Candidate models
# ============================================================================

class ExtractedContactInfo(DocumentModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class Candidate(DocumentModel):
    """Common review fields. ``is_duplicate`` stays None until dedupe runs."""
    id: str
    accepted: bool = True
    is_duplicate: Optional[bool] = None


class ExtractedExperience(Candidate):
    company: str = ""
    position: str = ""
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    bullets: Optional[List[str]] = None


class ExtractedEducation(Candidate):
    institution: str = ""
    degree: str = ""
    field: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[str] = None
    highlights: Optional[List[str]] = None


class ExtractedSkill(Candidate):
    name: str
    category: Optional[str] = None


class ExtractedProject(Candidate):
    name: str = ""
    description: Optional[str] = None
    technologies: Optional[List[str]] = None
    url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    bullets: Optional[List[str]] = None


class ExtractedData(DocumentModel):
    contact_info: ExtractedContactInfo = Field(default_factory=ExtractedContactInfo)
    experience: List[ExtractedExperience] = Field(default_factory=list)
    education: List[ExtractedEducation] = Field(default_factory=list)
    skills: List[ExtractedSkill] = Field(default_factory=list)
    projects: List[ExtractedProject] = Field(default_factory=list)
    raw_parsed: Dict[str, Any] = Field(default_factory=dict)
    file_name: str = ""
    file_url: Optional[str] = None


# ============================================================================
# Coercion helpers
# ============================================================================

def _pick(item: Dict[str, Any], *keys):
    """First present, truthy value among ``keys``."""
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return None


def _text(value) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, bool):
        return "true"
    return value if isinstance(value, str) else str(value)


def _text_list(value) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [_text(v) or "" for v in value if v is not None]


def _records(parsed: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = parsed.get(key)
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, dict) else {} for item in value]


# ============================================================================
# Transform
# ============================================================================

def _contact_info(parsed: Dict[str, Any]) -> ExtractedContactInfo:
    raw = _pick(parsed, "contactInfo", "contact_info")
    if not isinstance(raw, dict):
        return ExtractedContactInfo()
    return ExtractedContactInfo(**{
        key: _text(raw.get(key))
        for key in ExtractedContactInfo.model_fields
    })


def _experience(parsed: Dict[str, Any]) -> List[ExtractedExperience]:
    return [
        ExtractedExperience(
            id=f"exp-{i}",
            company=_text(exp.get("company")) or "",
            position=_text(_pick(exp, "position", "title")) or "",
            location=_text(exp.get("location")),
            start_date=_text(_pick(exp, "startDate", "start_date")),
            end_date=_text(_pick(exp, "endDate", "end_date")),
            bullets=_text_list(exp.get("bullets")),
        )
        for i, exp in enumerate(_records(parsed, "experience"))
    ]


def _education(parsed: Dict[str, Any]) -> List[ExtractedEducation]:
    return [
        ExtractedEducation(
            id=f"edu-{i}",
            institution=_text(edu.get("institution")) or "",
            degree=_text(edu.get("degree")) or "",
            field=_text(_pick(edu, "field", "field_of_study", "fieldOfStudy")),
            location=_text(edu.get("location")),
            start_date=_text(_pick(edu, "startDate", "start_date")),
            end_date=_text(_pick(edu, "endDate", "end_date")),
            gpa=_text(edu.get("gpa")),
            highlights=_text_list(edu.get("highlights")),
        )
        for i, edu in enumerate(_records(parsed, "education"))
    ]


def _skills(parsed: Dict[str, Any]) -> List[ExtractedSkill]:
    raw = parsed.get("skills")
    skills: List[ExtractedSkill] = []

    if isinstance(raw, list):
        # ids follow the source index, so skipped non-strings leave gaps
        for i, name in enumerate(raw):
            if isinstance(name, str):
                skills.append(ExtractedSkill(id=f"skill-{i}", name=name))

    elif isinstance(raw, dict) and isinstance(raw.get("categories"), list):
        idx = 0
        for category in raw["categories"]:
            if not isinstance(category, dict):
                continue
            names = category.get("skills")
            for name in names if isinstance(names, list) else []:
                if not isinstance(name, str):
                    continue
                skills.append(ExtractedSkill(
                    id=f"skill-{idx}",
                    name=name,
                    category=_text(category.get("name")),
                ))
                idx += 1

    return skills


def _projects(parsed: Dict[str, Any]) -> List[ExtractedProject]:
    return [
        ExtractedProject(
            id=f"proj-{i}",
            name=_text(proj.get("name")) or "",
            description=_text(proj.get("description")),
            technologies=_text_list(proj.get("technologies")),
            url=_text(proj.get("url")),
            start_date=_text(_pick(proj, "startDate", "start_date")),
            end_date=_text(_pick(proj, "endDate", "end_date")),
            bullets=_text_list(proj.get("bullets")),
        )
        for i, proj in enumerate(_records(parsed, "projects"))
    ]


def transform_parsed_data(parsed: Any, file_name: str, file_url: Optional[str]) -> ExtractedData:
    """Turn raw parser output into candidates, all accepted and not yet deduped."""
    if not isinstance(parsed, dict):
        logger.warning(f"Parsed resume is {type(parsed).__name__}, not an object; treating as empty")
        parsed = {}

    data = ExtractedData(
        contact_info=_contact_info(parsed),
        experience=_experience(parsed),
        education=_education(parsed),
        skills=_skills(parsed),
        projects=_projects(parsed),
        raw_parsed=parsed,
        file_name=file_name,
        file_url=file_url,
    )
    logger.info(
        f"Extracted {len(data.experience)} experience, {len(data.education)} education, "
        f"{len(data.skills)} skills, {len(data.projects)} projects from {file_name}"
    )
    return data


# ============================================================================
# Parsed resume → editable document
# ============================================================================

def group_skills_by_category(skills: List[ExtractedSkill]) -> List[Dict[str, Any]]:
    """Group skill names under their category, "Other" when missing, first-seen order."""
    groups: Dict[str, List[str]] = {}
    for skill in skills:
        groups.setdefault(skill.category or "Other", []).append(skill.name)
    return [{"name": name, "skills": names} for name, names in groups.items()]


def build_document(data: ExtractedData, summary: Optional[str] = None) -> ResumeDocument:
    """Lay extracted data out as a block document with the default section order."""
    contact = data.contact_info
    blocks = [create_header_block(HeaderData(
        name=contact.name or "",
        email=contact.email,
        phone=contact.phone,
        location=contact.location,
        linkedin=contact.linkedin,
        github=contact.github,
        website=contact.website,
    ))]
    if summary:
        blocks.append(create_summary_block(summary))

    blocks.append(create_experience_block([
        ExperienceEntry(
            id=generate_id(),
            company=e.company,
            position=e.position,
            location=e.location,
            start_date=e.start_date or "",
            end_date=e.end_date,
            bullets=e.bullets or [],
        )
        for e in data.experience
    ]))
    blocks.append(create_education_block([
        EducationEntry(
            id=generate_id(),
            institution=e.institution,
            degree=e.degree,
            field=e.field,
            location=e.location,
            start_date=e.start_date,
            end_date=e.end_date,
            gpa=e.gpa,
            highlights=e.highlights,
        )
        for e in data.education
    ]))

    if any(s.category for s in data.skills):
        skills_block = create_skills_block([], format="categorized")
        skills_block.data = SkillsData(
            format="categorized",
            categories=[SkillCategory(**group) for group in group_skills_by_category(data.skills)],
        )
        blocks.append(skills_block)
    else:
        blocks.append(create_skills_block([s.name for s in data.skills]))

    blocks.append(create_projects_block([
        ProjectEntry(
            id=generate_id(),
            name=p.name,
            description=p.description,
            technologies=p.technologies,
            url=p.url,
            start_date=p.start_date,
            end_date=p.end_date,
            bullets=p.bullets or [],
        )
        for p in data.projects
    ]))
    return ResumeDocument(blocks=blocks)


def document_from_content(content: Union[str, Dict[str, Any], None], file_name: str = "") -> ResumeDocument:
    """
    Stored resume content → document. Tailored and edited resumes already
    hold a block document; imported ones hold the raw parser output.
    """
    if isinstance(content, str):
        content = json.loads(content) if content.strip() else {}
    if isinstance(content, dict) and isinstance(content.get("blocks"), list):
        return ResumeDocument.from_content(content)

    parsed = content if isinstance(content, dict) else {}
    summary = _text(_pick(parsed, "summary", "professionalSummary", "professional_summary"))
    return build_document(transform_parsed_data(parsed, file_name, None), summary=summary)
