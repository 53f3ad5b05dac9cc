"""
Exceptions raised by the import pipeline, review state and resume editor.

Every error carries a human-readable ``message``, optional ``details`` for the
API response, the ``cause`` that triggered it and the HTTP ``status_code``
that the handler in ``main.py`` answers with.
"""
from typing import Any, Dict, Optional


class ResumeTailorError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# Upload validation (rejected before the pipeline changes phase)
class ValidationFailedError(ResumeTailorError):
    status_code = 400


class FileTooLargeError(ValidationFailedError):
    status_code = 413

    def __init__(self, size_bytes: int, max_mb: int):
        size_mb = size_bytes / (1024 * 1024)
        super().__init__(
            f"File is too large ({size_mb:.1f}MB). Maximum size is {max_mb}MB.",
            details={"size_bytes": size_bytes, "max_mb": max_mb}
        )


class UnsupportedFileError(ValidationFailedError):

    def __init__(self, content_type: Optional[str]):
        super().__init__(
            "Unsupported file type. Please upload a PDF or TXT file.",
            details={"content_type": content_type}
        )


class JobDescriptionTooShortError(ValidationFailedError):

    def __init__(self, length: int, min_length: int):
        super().__init__(
            f"Job description text is required (minimum {min_length} characters)",
            details={"length": length, "min_length": min_length}
        )


# Import session state
class ImportStateError(ResumeTailorError):
    status_code = 409


class ImportInProgressError(ImportStateError):

    def __init__(self, phase: str):
        super().__init__(
            "An import is already in progress",
            details={"phase": phase}
        )


class NoActiveImportError(ImportStateError):
    status_code = 404

    def __init__(self):
        super().__init__("No resume import is awaiting review")


class NothingToConfirmError(ImportStateError):
    status_code = 400

    def __init__(self):
        super().__init__("Select at least one new item to add to your profile")


class CandidateNotFoundError(ResumeTailorError):
    status_code = 404

    def __init__(self, kind: str, candidate_id: str):
        super().__init__(
            f"No {kind} item with id '{candidate_id}'",
            details={"kind": kind, "id": candidate_id}
        )


# Editor
class BlockNotFoundError(ResumeTailorError):
    status_code = 404

    def __init__(self, block_id: str):
        super().__init__(
            f"Block '{block_id}' not found",
            details={"block_id": block_id}
        )


class BlockDataError(ResumeTailorError):
    status_code = 422


# External collaborators
class DocumentParseError(ResumeTailorError):
    status_code = 422


class StorageUploadError(ResumeTailorError):
    status_code = 502


class ProfileSyncError(ResumeTailorError):
    status_code = 502


# Tailoring
class NoProfileDataError(ResumeTailorError):
    status_code = 400

    def __init__(self):
        super().__init__("No profile data found. Please add experience or projects to your profile.")


class TailoringError(ResumeTailorError):
    status_code = 502


class AuthenticationError(ResumeTailorError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)
