"""
Resume Import Pipeline - upload → review → sync, one session per user.

Phases:
    idle → extracting → parsing → uploading → review → syncing → saving → done → idle
                 ↘ error → idle            review ← error ↙ (sync/save failure)

Extraction and parsing failures end the import. Storage upload and duplicate
checks are best-effort and never block review. Terminal phases revert on
their own after a short delay; any new transition cancels a pending revert.
"""
import asyncio
import enum
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..exceptions import (
    ResumeTailorError, FileTooLargeError, UnsupportedFileError, ImportInProgressError,
    NoActiveImportError, NothingToConfirmError,
)
from ..schemas.imports import ImportSnapshot
from ..utils.timers import DelayedCall
from .duplicates import mark_duplicates
from .profile_store import ProfileStore
from .profile_sync import SyncResult
from .resume_import import transform_parsed_data
from .review import CandidateKind, ImportReview

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 10

SUPPORTED_TYPES = {
    "application/pdf": ".pdf",
    "text/plain": ".txt",
}


class ImportPhase(str, enum.Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    PARSING = "parsing"
    UPLOADING = "uploading"
    REVIEW = "review"
    SYNCING = "syncing"
    SAVING = "saving"
    DONE = "done"
    ERROR = "error"


BUSY_PHASES = {
    ImportPhase.EXTRACTING, ImportPhase.PARSING, ImportPhase.UPLOADING,
    ImportPhase.SYNCING, ImportPhase.SAVING,
}


@dataclass
class ImportDocument:
    file_name: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf" or self.file_name.lower().endswith(".pdf")


# ============================================================================
# Collaborators
# ============================================================================

class DocumentParser(Protocol):
    async def extract_text(self, document: ImportDocument) -> str: ...
    async def parse_structured(self, text: str) -> Dict[str, Any]: ...


class FileStorage(Protocol):
    async def upload_resume(self, user_id: str, document: ImportDocument) -> str: ...


class ProfileSyncer(Protocol):
    async def sync(self, user_id: str, parsed_resume: Dict[str, Any]) -> SyncResult: ...


class ResumeRecordStore(Protocol):
    async def create_source_resume(
        self, user_id: str, name: str, content: str,
        file_url: Optional[str], is_primary: bool
    ) -> Any: ...


PhaseListener = Callable[[ImportPhase, str], Any]


def strip_extension(file_name: str) -> str:
    return re.sub(r"\.[^/.]+$", "", file_name)


# ============================================================================
# Pipeline
# ============================================================================

class ImportPipeline:
    """Import state for one user. Not shared between users."""

    def __init__(
        self,
        user_id: str,
        parser: DocumentParser,
        storage: FileStorage,
        profile_store: ProfileStore,
        syncer: ProfileSyncer,
        records: ResumeRecordStore,
        max_file_size_mb: int = MAX_FILE_SIZE_MB,
        done_reset_seconds: float = 4.0,
        error_reset_seconds: float = 4.0,
        sync_error_reset_seconds: float = 3.0,
    ):
        self.user_id = user_id
        self.parser = parser
        self.storage = storage
        self.profile_store = profile_store
        self.syncer = syncer
        self.records = records
        self.max_file_size_mb = max_file_size_mb
        self.done_reset_seconds = done_reset_seconds
        self.error_reset_seconds = error_reset_seconds
        self.sync_error_reset_seconds = sync_error_reset_seconds

        self.phase = ImportPhase.IDLE
        self.message = ""
        self.review: Optional[ImportReview] = None
        self.sync_result: Optional[SyncResult] = None
        self._listeners: List[PhaseListener] = []
        self._reset: Optional[DelayedCall] = None
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def add_listener(self, listener: PhaseListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PhaseListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> ImportSnapshot:
        review = self.review
        return ImportSnapshot(
            phase=self.phase.value,
            message=self.message,
            file_name=review.data.file_name if review else None,
            extracted=review.data if review else None,
            counts=review.all_counts() if review else None,
            can_confirm=bool(review and self.phase == ImportPhase.REVIEW and review.can_confirm),
            sync_result=self.sync_result.model_dump() if self.sync_result else None,
        )

    def _transition(self, phase: ImportPhase, message: str = "") -> None:
        if self._reset:
            self._reset.cancel()
            self._reset = None
        previous = self.phase
        self.phase = phase
        self.message = message
        logger.debug(f"Import [{self.user_id}] {previous.value} → {phase.value} {message}".rstrip())
        for listener in list(self._listeners):
            try:
                listener(phase, message)
            except Exception as e:
                logger.error(f"Import phase listener failed: {e}")

    def _revert_later(self, delay: float, phase: ImportPhase) -> None:
        def revert():
            self._reset = None
            if phase == ImportPhase.IDLE:
                self.review = None
            self._transition(phase)

        self._reset = DelayedCall(delay, revert, name=f"import-reset-{self.user_id}")

    def _fail(self, error: Exception, revert_to: ImportPhase, delay: float, fallback: str) -> None:
        # Only our own errors carry text meant for the user
        message = error.message if isinstance(error, ResumeTailorError) else fallback
        self._transition(ImportPhase.ERROR, message)
        self._revert_later(delay, revert_to)

    # ------------------------------------------------------------------
    # Upload → review
    # ------------------------------------------------------------------

    def validate(self, document: ImportDocument) -> None:
        """Reject a file before anything else happens. The phase is left as is."""
        if self.phase not in (ImportPhase.IDLE, ImportPhase.ERROR):
            raise ImportInProgressError(self.phase.value)

        if document.size > self.max_file_size_mb * 1024 * 1024:
            error = FileTooLargeError(document.size, self.max_file_size_mb)
            self.message = error.message
            logger.info(f"Rejected {document.file_name} for user {self.user_id}: {error.message}")
            raise error

        extension = "." + document.file_name.rsplit(".", 1)[-1].lower() if "." in document.file_name else ""
        if document.content_type not in SUPPORTED_TYPES and extension not in SUPPORTED_TYPES.values():
            raise UnsupportedFileError(document.content_type)

    def submit(self, document: ImportDocument) -> asyncio.Task:
        """Validate and enter ``extracting`` now; the rest runs as a task."""
        self.validate(document)
        self.review = None
        self.sync_result = None
        self._transition(ImportPhase.EXTRACTING, "Reading your resume...")
        self._task = asyncio.get_running_loop().create_task(
            self._run_import(document), name=f"resume-import-{self.user_id}"
        )
        return self._task

    async def start(self, document: ImportDocument) -> ImportSnapshot:
        await self.submit(document)
        return self.snapshot()

    async def _run_import(self, document: ImportDocument) -> None:
        try:
            await self._extract_and_review(document)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Resume import failed for user {self.user_id}: {e}")
            self._fail(e, ImportPhase.IDLE, self.error_reset_seconds, "Failed to process resume")

    async def _extract_and_review(self, document: ImportDocument) -> None:
        text = await self.parser.extract_text(document)
        self._transition(ImportPhase.PARSING, "Analyzing resume structure...")
        parsed = await self.parser.parse_structured(text)

        self._transition(ImportPhase.UPLOADING, "Saving your file...")
        file_url = None
        try:
            file_url = await self.storage.upload_resume(self.user_id, document)
        except Exception as e:
            logger.warning(f"Resume file upload failed for user {self.user_id}, continuing without it: {e}")

        data = transform_parsed_data(parsed, document.file_name, file_url)
        self.message = "Checking for existing items..."
        data = await mark_duplicates(data, self.profile_store, self.user_id)

        self.review = ImportReview(data)
        self._transition(ImportPhase.REVIEW)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def _active_review(self) -> ImportReview:
        if self.phase in BUSY_PHASES:
            raise ImportInProgressError(self.phase.value)
        if self.phase != ImportPhase.REVIEW or self.review is None:
            raise NoActiveImportError()
        return self.review

    def toggle(self, kind: CandidateKind, candidate_id: str) -> bool:
        return self._active_review().toggle(kind, candidate_id)

    def accept_all(self, kind: CandidateKind) -> None:
        self._active_review().accept_all(kind)

    def deny_all(self, kind: CandidateKind) -> None:
        self._active_review().deny_all(kind)

    # ------------------------------------------------------------------
    # Confirm → sync → save
    # ------------------------------------------------------------------

    async def confirm(self) -> ImportSnapshot:
        """
        Push the selected items to the profile and record the source resume.

        Failures do not raise: the session moves to ``error`` and returns to
        review after a delay with the selections intact.
        """
        review = self._active_review()
        if not review.can_confirm:
            raise NothingToConfirmError()

        data = review.data
        self._transition(ImportPhase.SYNCING, "Adding selected items to your profile...")
        try:
            result = await self.syncer.sync(self.user_id, review.build_sync_payload())

            self._transition(ImportPhase.SAVING, "Saving resume record...")
            existing = await self.profile_store.count_resumes(self.user_id)
            await self.records.create_source_resume(
                user_id=self.user_id,
                name=strip_extension(data.file_name),
                content=json.dumps(data.raw_parsed),
                file_url=data.file_url,
                is_primary=existing == 0,
            )
        except Exception as e:
            logger.exception(f"Profile sync failed for user {self.user_id}: {e}")
            self._fail(e, ImportPhase.REVIEW, self.sync_error_reset_seconds, "Failed to sync")
            return self.snapshot()

        self.sync_result = result
        self.review = None
        self._transition(ImportPhase.DONE, f"Profile updated! {result.message}")
        logger.info(f"✅ Resume import complete for user {self.user_id}: {result.message}")
        self._revert_later(self.done_reset_seconds, ImportPhase.IDLE)
        return self.snapshot()

    def cancel(self) -> None:
        """Discard the extracted data and go back to idle."""
        if self.phase in BUSY_PHASES:
            raise ImportInProgressError(self.phase.value)
        self.review = None
        self.sync_result = None
        self._transition(ImportPhase.IDLE)

    async def close(self) -> None:
        if self._reset:
            self._reset.cancel()
            self._reset = None
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._listeners.clear()


class ImportSessionRegistry:
    """One ImportPipeline per user, created on first use."""

    def __init__(self, factory: Callable[[str], ImportPipeline]):
        self._factory = factory
        self._sessions: Dict[str, ImportPipeline] = {}

    def get(self, user_id: str) -> ImportPipeline:
        pipeline = self._sessions.get(user_id)
        if pipeline is None:
            pipeline = self._factory(user_id)
            self._sessions[user_id] = pipeline
        return pipeline

    def peek(self, user_id: str) -> Optional[ImportPipeline]:
        return self._sessions.get(user_id)

    async def discard(self, user_id: str) -> None:
        pipeline = self._sessions.pop(user_id, None)
        if pipeline:
            await pipeline.close()

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.discard(user_id)
