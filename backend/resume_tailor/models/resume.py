"""
Saved jobs, stored resumes and tailoring history
"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean,
    ForeignKey, CheckConstraint, Enum as SQLEnum, JSON
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
import enum


class ResumeType(str, enum.Enum):
    SOURCE = "source"      # Imported from an uploaded file
    TAILORED = "tailored"  # Generated for a specific job


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    title = Column(String(300), nullable=False)
    company = Column(String(300), nullable=False)
    location = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    url = Column(String(1000), nullable=True)
    status = Column(String(50), default="saved")  # saved, applied, interviewing, ...

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserProfile", back_populates="saved_jobs")
    resumes = relationship("UserResume", back_populates="target_job")


class UserResume(Base):
    """A stored resume; ``content`` holds the document JSON"""
    __tablename__ = "user_resumes"
    __table_args__ = (
        CheckConstraint("match_score IS NULL OR (match_score >= 0 AND match_score <= 100)", name="ck_match_score_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(300), nullable=False)
    resume_type = Column(SQLEnum(ResumeType), default=ResumeType.SOURCE, nullable=False)
    source_resume_id = Column(Integer, ForeignKey('user_resumes.id', ondelete='SET NULL'), nullable=True)
    target_job_id = Column(Integer, ForeignKey('saved_jobs.id', ondelete='SET NULL'), nullable=True)
    content = Column(Text, nullable=True)
    file_url = Column(String(1000), nullable=True)
    is_primary = Column(Boolean, default=False)
    match_score = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("UserProfile", back_populates="resumes")
    target_job = relationship("SavedJob", back_populates="resumes")


class TailoringHistory(Base):
    __tablename__ = "tailoring_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False, index=True)
    resume_id = Column(Integer, ForeignKey('user_resumes.id', ondelete='CASCADE'), nullable=True)
    job_id = Column(Integer, ForeignKey('saved_jobs.id', ondelete='SET NULL'), nullable=True)

    job_title = Column(String(300), nullable=True)
    company_name = Column(String(300), nullable=True)
    job_description = Column(Text, nullable=True)
    original_resume = Column(Text, nullable=True)
    tailored_resume = Column(Text, nullable=True)
    match_score = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
