"""
Resume import session schemas
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel

from ..services.resume_import import ExtractedData
from ..services.review import CandidateKind, ReviewCounts


class ImportSnapshot(BaseModel):
    """Everything a client needs to draw the import screen"""
    phase: str
    message: str = ""
    file_name: Optional[str] = None
    extracted: Optional[ExtractedData] = None
    counts: Optional[Dict[str, ReviewCounts]] = None
    can_confirm: bool = False
    sync_result: Optional[Dict[str, Any]] = None


class ToggleRequest(BaseModel):
    kind: CandidateKind
    id: str


class BulkSelectRequest(BaseModel):
    kind: CandidateKind
