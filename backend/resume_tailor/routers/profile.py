"""
Profile Router - profile fields and career-history CRUD operations
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..models import UserProfile, WorkExperience, Education, Skill, UserProject, Award
from ..models import SkillCategory, ProficiencyLevel
from ..services.auth import AuthenticatedUser, IdentityProvider, get_current_user, get_identity_provider
from ..services.profile_sync import map_category
from ..schemas.profile import (
    ProfileResponse, ProfileUpdate,
    EducationCreate, EducationUpdate,
    WorkExperienceCreate, WorkExperienceUpdate,
    ProjectCreate, ProjectUpdate,
    AwardCreate, SkillAdd, SkillResponse,
)

router = APIRouter(prefix="/api/profile", tags=["Profile"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_profile_with_relations(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    """Get profile with all related data loaded."""
    result = await db.execute(
        select(UserProfile)
        .options(
            selectinload(UserProfile.work_experience),
            selectinload(UserProfile.education),
            selectinload(UserProfile.skills),
            selectinload(UserProfile.projects),
            selectinload(UserProfile.awards),
        )
        .where(UserProfile.id == user_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile


def _find_entry(entries, entry_id: int, label: str):
    for entry in entries:
        if entry.id == entry_id:
            return entry
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{label} not found"
    )


def _skill_category(value: Optional[str]) -> SkillCategory:
    try:
        return SkillCategory((value or "").lower())
    except ValueError:
        return map_category(value)


def _proficiency(value: Optional[str]) -> Optional[ProficiencyLevel]:
    try:
        return ProficiencyLevel(value.lower()) if value else None
    except ValueError:
        return None


# ============================================================================
# Profile Endpoints
# ============================================================================

@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Get current user's full profile."""
    return await get_profile_with_relations(db, current_user.id)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    provider: IdentityProvider = Depends(get_identity_provider)
):
    """Update profile fields. Onboarding, once completed, stays completed."""
    await provider.update_profile(db, current_user, profile_data.model_dump(exclude_unset=True))
    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.get("/skills", response_model=List[SkillResponse])
async def list_my_skills(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    result = await db.execute(
        select(Skill)
        .where(Skill.user_id == current_user.id)
        .order_by(Skill.category, Skill.name)
    )
    return result.scalars().all()


# ============================================================================
# Work Experience CRUD
# ============================================================================

@router.post("/me/experience", response_model=ProfileResponse)
async def add_experience(
    exp_data: WorkExperienceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Add a new work experience entry."""
    profile = await get_profile_with_relations(db, current_user.id)
    profile.work_experience.append(WorkExperience(**exp_data.model_dump()))

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.put("/me/experience/{experience_id}", response_model=ProfileResponse)
async def update_experience(
    experience_id: int,
    exp_data: WorkExperienceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    experience = _find_entry(profile.work_experience, experience_id, "Work experience")

    # Update fields that were provided
    for field, value in exp_data.model_dump(exclude_unset=True).items():
        setattr(experience, field, value)

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.delete("/me/experience/{experience_id}")
async def delete_experience(
    experience_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.work_experience.remove(_find_entry(profile.work_experience, experience_id, "Work experience"))
    await db.commit()
    return {"message": "Work experience deleted"}


# ============================================================================
# Education CRUD
# ============================================================================

@router.post("/me/education", response_model=ProfileResponse)
async def add_education(
    edu_data: EducationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Add a new education entry."""
    profile = await get_profile_with_relations(db, current_user.id)
    profile.education.append(Education(**edu_data.model_dump()))

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.put("/me/education/{education_id}", response_model=ProfileResponse)
async def update_education(
    education_id: int,
    edu_data: EducationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    education = _find_entry(profile.education, education_id, "Education entry")

    for field, value in edu_data.model_dump(exclude_unset=True).items():
        setattr(education, field, value)

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.delete("/me/education/{education_id}")
async def delete_education(
    education_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.education.remove(_find_entry(profile.education, education_id, "Education entry"))
    await db.commit()
    return {"message": "Education entry deleted"}


# ============================================================================
# Projects CRUD
# ============================================================================

@router.post("/me/projects", response_model=ProfileResponse)
async def add_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.projects.append(UserProject(**project_data.model_dump()))

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.put("/me/projects/{project_id}", response_model=ProfileResponse)
async def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    project = _find_entry(profile.projects, project_id, "Project")

    for field, value in project_data.model_dump(exclude_unset=True).items():
        setattr(project, field, value)

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.delete("/me/projects/{project_id}")
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.projects.remove(_find_entry(profile.projects, project_id, "Project"))
    await db.commit()
    return {"message": "Project deleted"}


# ============================================================================
# Skills
# ============================================================================

@router.post("/me/skills", response_model=ProfileResponse)
async def add_skill(
    skill_data: SkillAdd,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """Add a skill. Adding one the profile already has (any case) is a no-op."""
    profile = await get_profile_with_relations(db, current_user.id)
    name = skill_data.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Skill name is required"
        )

    if not any(s.name.lower() == name.lower() for s in profile.skills):
        profile.skills.append(Skill(
            name=name,
            category=_skill_category(skill_data.category),
            proficiency=_proficiency(skill_data.proficiency),
            years_of_experience=skill_data.years_of_experience,
        ))
        await db.commit()

    return await get_profile_with_relations(db, current_user.id)


@router.delete("/me/skills/{skill_id}")
async def remove_skill(
    skill_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.skills.remove(_find_entry(profile.skills, skill_id, "Skill"))
    await db.commit()
    return {"message": "Skill removed"}


# ============================================================================
# Awards
# ============================================================================

@router.post("/me/awards", response_model=ProfileResponse)
async def add_award(
    award_data: AwardCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.awards.append(Award(**award_data.model_dump()))

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.put("/me/awards/{award_id}", response_model=ProfileResponse)
async def update_award(
    award_id: int,
    award_data: AwardCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    award = _find_entry(profile.awards, award_id, "Award")

    for field, value in award_data.model_dump(exclude_unset=True).items():
        setattr(award, field, value)

    await db.commit()
    return await get_profile_with_relations(db, current_user.id)


@router.delete("/me/awards/{award_id}")
async def delete_award(
    award_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    profile = await get_profile_with_relations(db, current_user.id)
    profile.awards.remove(_find_entry(profile.awards, award_id, "Award"))
    await db.commit()
    return {"message": "Award deleted"}
