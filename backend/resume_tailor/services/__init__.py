from .resume_import import (
    ExtractedData,
    transform_parsed_data,
    build_document,
    document_from_content,
)
from .review import (
    CandidateKind,
    EmptyState,
    ImportReview,
)
from .duplicates import mark_duplicates
from .profile_sync import (
    ProfileSyncService,
    SyncResult,
    parse_date,
)
from .resume_editor import (
    ResumeEditor,
    EditorSessionRegistry,
    SaveState,
)
from .resume_renderer import (
    render_pdf,
    render_text,
)
from .tailoring import (
    TailoringService,
    parse_job_description,
    load_profile_data,
)

__all__ = [
    # Import
    "ExtractedData",
    "transform_parsed_data",
    "build_document",
    "document_from_content",
    # Review
    "CandidateKind",
    "EmptyState",
    "ImportReview",
    "mark_duplicates",
    # Sync
    "ProfileSyncService",
    "SyncResult",
    "parse_date",
    # Editor
    "ResumeEditor",
    "EditorSessionRegistry",
    "SaveState",
    "render_pdf",
    "render_text",
    # Tailoring
    "TailoringService",
    "parse_job_description",
    "load_profile_data",
]
