"""
Job description and tailoring schemas (camelCase on the wire)
"""
from typing import Any, Dict, List, Optional
from pydantic import Field

from .blocks import DocumentModel


class JobParseRequest(DocumentModel):
    text: str
    title: Optional[str] = None
    company: Optional[str] = None


class ParsedJob(DocumentModel):
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    description: str = ""
    responsibilities: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    nice_to_haves: List[str] = Field(default_factory=list)
    technical_skills: List[str] = Field(default_factory=list)
    experience_level: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    text: str = ""


class JobDescription(DocumentModel):
    """The job a resume is tailored for"""
    title: str
    company: str
    full_text: str
    requirements: List[str] = Field(default_factory=list)
    responsibilities: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None


class TailorRequest(DocumentModel):
    job_description: JobDescription


class TailoringSummary(DocumentModel):
    total_changes: int = 0
    key_improvements: List[str] = Field(default_factory=list)
    keywords_added: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class TailorResponse(DocumentModel):
    """Tailored document ready for the editor or ``POST /api/resumes/tailored``"""
    content: Dict[str, Any]
    match_score: int = 0
    summary: TailoringSummary = Field(default_factory=TailoringSummary)
    original_resume: Dict[str, Any] = Field(default_factory=dict)
