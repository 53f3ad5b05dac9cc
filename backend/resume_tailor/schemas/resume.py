"""
Stored resume schemas
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..models.resume import ResumeType


class SavedJobResponse(BaseModel):
    id: int
    title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True


class ResumeResponse(BaseModel):
    id: int
    name: str
    resume_type: ResumeType
    source_resume_id: Optional[int] = None
    target_job_id: Optional[int] = None
    content: Optional[str] = None
    file_url: Optional[str] = None
    is_primary: bool = False
    match_score: Optional[int] = None
    target_job: Optional[SavedJobResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TargetJob(BaseModel):
    title: str
    company: str
    url: Optional[str] = None
    description: str = ""


class SaveTailoredRequest(BaseModel):
    name: str
    content: Dict[str, Any]
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    match_score: Optional[int] = Field(default=None, alias="matchScore", ge=0, le=100)
    target_job: TargetJob = Field(alias="targetJob")
    original_resume: Optional[Dict[str, Any]] = Field(default=None, alias="originalResume")

    class Config:
        populate_by_name = True


class SaveTailoredResponse(BaseModel):
    success: bool = True
    resume_id: int
    job_id: Optional[int] = None
    message: str = "Resume saved successfully"


class ResumeContentUpdate(BaseModel):
    """Replace the stored document of an edited resume"""
    content: Dict[str, Any]
    name: Optional[str] = None


class SyncProfileRequest(BaseModel):
    parsed_resume: Dict[str, Any] = Field(alias="parsedResume")

    class Config:
        populate_by_name = True


class SyncProfileResponse(BaseModel):
    success: bool = True
    message: str
    result: Dict[str, Any]
