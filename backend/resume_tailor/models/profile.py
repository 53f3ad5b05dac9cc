"""
Profile models: the career history a resume import syncs into
"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Date, Float,
    ForeignKey, Enum as SQLEnum, JSON
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
import enum


class SkillCategory(str, enum.Enum):
    TECHNICAL = "technical"
    SOFT = "soft"
    LANGUAGE = "language"
    TOOL = "tool"
    FRAMEWORK = "framework"
    OTHER = "other"


class ProficiencyLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    FREELANCE = "freelance"


class WorkExperience(Base):
    """Work experience entries"""
    __tablename__ = "work_experience"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    company = Column(String(300), nullable=False)
    position = Column(String(200), nullable=False)
    location = Column(String(200), nullable=True)
    employment_type = Column(SQLEnum(EmploymentType), nullable=True)
    description = Column(Text, nullable=True)
    achievements = Column(JSON, default=list)  # bullet strings
    skills = Column(JSON, default=list)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # null while current
    is_current = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("UserProfile", back_populates="work_experience")


class Education(Base):
    """Education entries"""
    __tablename__ = "education"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    institution = Column(String(300), nullable=False)
    degree = Column(String(200), nullable=False)
    field_of_study = Column(String(200), nullable=True)
    location = Column(String(200), nullable=True)
    gpa = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    achievements = Column(JSON, default=list)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("UserProfile", back_populates="education")


class Skill(Base):
    """A single named skill on the user's profile"""
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    category = Column(SQLEnum(SkillCategory), default=SkillCategory.TECHNICAL)
    proficiency = Column(SQLEnum(ProficiencyLevel), nullable=True)
    years_of_experience = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserProfile", back_populates="skills")


class UserProject(Base):
    """Project entries"""
    __tablename__ = "user_projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    bullets = Column(JSON, default=list)
    skills = Column(JSON, default=list)  # technologies used
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    url = Column(String(500), nullable=True)
    is_featured = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("UserProfile", back_populates="projects")


class Award(Base):
    """Awards, honors and certifications"""
    __tablename__ = "awards"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    title = Column(String(300), nullable=False)
    issuer = Column(String(200), nullable=True)
    type = Column(String(50), default="award")  # award, certification, honor, ...
    description = Column(Text, nullable=True)
    date_received = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    url = Column(String(500), nullable=True)
    credential_id = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserProfile", back_populates="awards")
