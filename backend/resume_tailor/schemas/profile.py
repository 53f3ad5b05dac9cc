"""
Profile schemas for the career-history CRUD endpoints
"""
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime

from ..models.profile import EmploymentType, SkillCategory, ProficiencyLevel


# ============================================================================
# Profile Response Schemas
# ============================================================================

class WorkExperienceResponse(BaseModel):
    id: int
    company: str
    position: str
    location: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    start_date: date
    end_date: Optional[date] = None
    is_current: bool = False

    class Config:
        from_attributes = True


class EducationResponse(BaseModel):
    id: int
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    location: Optional[str] = None
    gpa: Optional[str] = None
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False

    class Config:
        from_attributes = True


class SkillResponse(BaseModel):
    id: int
    name: str
    category: Optional[SkillCategory] = None
    proficiency: Optional[ProficiencyLevel] = None
    years_of_experience: Optional[float] = None

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    bullets: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    url: Optional[str] = None
    is_featured: bool = False

    class Config:
        from_attributes = True


class AwardResponse(BaseModel):
    id: int
    title: str
    issuer: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    date_received: Optional[date] = None
    expiry_date: Optional[date] = None
    url: Optional[str] = None
    credential_id: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    """Full profile response"""
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    professional_summary: Optional[str] = None
    avatar_url: Optional[str] = None
    has_completed_onboarding: bool = False

    work_experience: List[WorkExperienceResponse] = Field(default_factory=list)
    education: List[EducationResponse] = Field(default_factory=list)
    skills: List[SkillResponse] = Field(default_factory=list)
    projects: List[ProjectResponse] = Field(default_factory=list)
    awards: List[AwardResponse] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Profile Update Schemas
# ============================================================================

class WorkExperienceCreate(BaseModel):
    company: str
    position: str
    location: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    start_date: date
    end_date: Optional[date] = None
    is_current: bool = False


class WorkExperienceUpdate(BaseModel):
    company: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    description: Optional[str] = None
    achievements: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None


class EducationCreate(BaseModel):
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    location: Optional[str] = None
    gpa: Optional[str] = None
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False


class EducationUpdate(BaseModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    location: Optional[str] = None
    gpa: Optional[str] = None
    description: Optional[str] = None
    achievements: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None


class SkillAdd(BaseModel):
    name: str
    category: Optional[str] = "technical"
    proficiency: Optional[str] = None
    years_of_experience: Optional[float] = None


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    bullets: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    url: Optional[str] = None
    is_featured: bool = False


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    bullets: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    url: Optional[str] = None
    is_featured: Optional[bool] = None


class AwardCreate(BaseModel):
    title: str
    issuer: Optional[str] = None
    type: Optional[str] = "award"
    description: Optional[str] = None
    date_received: Optional[date] = None
    expiry_date: Optional[date] = None
    url: Optional[str] = None
    credential_id: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Update profile fields"""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    professional_summary: Optional[str] = None
    avatar_url: Optional[str] = None
    has_completed_onboarding: Optional[bool] = None
