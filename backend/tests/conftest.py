"""Shared fixtures: fake pipeline collaborators and a throwaway SQLite database."""
import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from resume_tailor import models  # noqa: F401
from resume_tailor.database import Base
from resume_tailor.exceptions import DocumentParseError, StorageUploadError
from resume_tailor.services.import_pipeline import ImportDocument, ImportPipeline
from resume_tailor.services.profile_sync import SyncResult


SAMPLE_PARSED = {
    "contactInfo": {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "linkedin": "linkedin.com/in/ada",
    },
    "summary": "Analyst and engineer.",
    "experience": [
        {
            "company": "Analytical Engines Ltd",
            "position": "Engineer",
            "startDate": "Jan 2020",
            "endDate": "Present",
            "bullets": ["Wrote the first program", "Reviewed the engine design"],
        },
        {
            "company": "Babbage & Co",
            "title": "Research Assistant",
            "startDate": "2018",
            "endDate": "2019",
        },
    ],
    "education": [
        {"institution": "University of London", "degree": "BSc", "field": "Mathematics"},
    ],
    "skills": {
        "categories": [
            {"name": "Programming Languages", "skills": ["Python", "SQL"]},
            {"name": "Tools", "skills": ["Git"]},
        ]
    },
    "projects": [
        {"name": "Note G", "url": "https://example.com/note-g", "technologies": ["Punch cards"]},
    ],
}


class FakeParser:

    def __init__(self, parsed: Any = None, text: str = "resume text",
                 extract_error: Optional[Exception] = None, parse_error: Optional[Exception] = None):
        self.parsed = SAMPLE_PARSED if parsed is None else parsed
        self.text = text
        self.extract_error = extract_error
        self.parse_error = parse_error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[str] = []

    async def extract_text(self, document: ImportDocument) -> str:
        self.calls.append("extract")
        if self.gate:
            await self.gate.wait()
        if self.extract_error:
            raise self.extract_error
        return self.text

    async def parse_structured(self, text: str) -> Dict[str, Any]:
        self.calls.append("parse")
        if self.parse_error:
            raise self.parse_error
        return self.parsed


class FakeStorage:

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads: List[str] = []

    async def upload_resume(self, user_id: str, document: ImportDocument) -> str:
        if self.fail:
            raise StorageUploadError("bucket unavailable")
        path = f"resumes/{user_id}/{document.file_name}"
        self.uploads.append(path)
        return path


class FakeProfileStore:

    def __init__(self, experience=(), education=(), skills=(), projects=(),
                 resume_count: int = 0, fail: bool = False):
        self.experience = list(experience)
        self.education = list(education)
        self.skills = list(skills)
        self.projects = list(projects)
        self.resume_count = resume_count
        self.fail = fail

    async def _read(self, rows):
        if self.fail:
            raise ConnectionError("database unavailable")
        return rows

    async def get_experience(self, user_id):
        return await self._read(self.experience)

    async def get_education(self, user_id):
        return await self._read(self.education)

    async def get_skills(self, user_id):
        return await self._read(self.skills)

    async def get_projects(self, user_id):
        return await self._read(self.projects)

    async def count_resumes(self, user_id):
        return self.resume_count


class FakeSyncer:

    def __init__(self, fail: bool = False, message: str = "Added: 2 experiences"):
        self.fail = fail
        self.message = message
        self.payloads: List[Dict[str, Any]] = []

    async def sync(self, user_id: str, parsed_resume: Dict[str, Any]) -> SyncResult:
        self.payloads.append(parsed_resume)
        if self.fail:
            raise ConnectionError("sync endpoint unreachable")
        return SyncResult(message=self.message)


class FakeRecords:

    def __init__(self):
        self.created: List[Dict[str, Any]] = []

    async def create_source_resume(self, user_id, name, content, file_url, is_primary):
        record = dict(user_id=user_id, name=name, content=content, file_url=file_url, is_primary=is_primary)
        self.created.append(record)
        return SimpleNamespace(id=len(self.created), **record)


def existing(**fields) -> SimpleNamespace:
    """A stand-in for a stored profile row."""
    return SimpleNamespace(**fields)


class FakeGenerator:
    """Stands in for Gemini: records prompts and returns a canned reply."""

    def __init__(self, reply: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.reply = reply or {}
        self.error = error
        self.prompts: List[str] = []

    async def __call__(self, prompt: str, **options) -> Dict[str, Any]:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def parser():
    return FakeParser()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def profile_store():
    return FakeProfileStore()


@pytest.fixture
def syncer():
    return FakeSyncer()


@pytest.fixture
def records():
    return FakeRecords()


@pytest_asyncio.fixture
async def make_pipeline(parser, storage, profile_store, syncer, records):
    """Pipeline with fakes and short reset delays; keyword overrides replace any collaborator."""
    created: List[ImportPipeline] = []

    def factory(**overrides) -> ImportPipeline:
        kwargs = dict(
            user_id="user-1",
            parser=parser,
            storage=storage,
            profile_store=profile_store,
            syncer=syncer,
            records=records,
            done_reset_seconds=0.05,
            error_reset_seconds=0.05,
            sync_error_reset_seconds=0.05,
        )
        kwargs.update(overrides)
        pipeline = ImportPipeline(**kwargs)
        created.append(pipeline)
        return pipeline

    yield factory
    for pipeline in created:
        await pipeline.close()


def pdf_document(size: int = 1024, name: str = "Ada Resume.pdf") -> ImportDocument:
    return ImportDocument(file_name=name, content=b"%" * size, content_type="application/pdf")


def parse_failure() -> DocumentParseError:
    return DocumentParseError("Could not extract any text from the document")


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session
