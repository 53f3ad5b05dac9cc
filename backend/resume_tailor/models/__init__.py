from .user import UserProfile
from .profile import (
    WorkExperience, Education, Skill, UserProject, Award,
    SkillCategory, ProficiencyLevel, EmploymentType
)
from .resume import SavedJob, UserResume, TailoringHistory, ResumeType

__all__ = [
    "UserProfile",
    # Profile models
    "WorkExperience", "Education", "Skill", "UserProject", "Award",
    "SkillCategory", "ProficiencyLevel", "EmploymentType",
    # Resumes
    "SavedJob", "UserResume", "TailoringHistory", "ResumeType"
]
