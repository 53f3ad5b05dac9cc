"""HTTP-level tests: routers, dependencies and the error handler wired through the app."""
import json

import httpx
import pytest
import pytest_asyncio

from resume_tailor.database import get_db
from resume_tailor.main import app
from resume_tailor.models import ResumeType, UserResume
from resume_tailor.routers.imports import get_import_sessions
from resume_tailor.routers.resumes import get_editor_sessions
from resume_tailor.routers.tailor import get_json_generator
from resume_tailor.services.auth import AuthenticatedUser, get_current_user
from resume_tailor.services.import_pipeline import ImportPipeline, ImportSessionRegistry
from resume_tailor.services.resume_editor import EditorSessionRegistry

from conftest import (
    SAMPLE_PARSED, FakeGenerator, FakeParser, FakeProfileStore, FakeRecords, FakeStorage, FakeSyncer,
)


TAILORED_DOCUMENT = {
    "blocks": [
        {"id": "head", "type": "header", "order": 0, "data": {"name": "Ada Lovelace"}},
        {"id": "sum", "type": "summary", "order": 1, "data": {"text": "Engineer for hire."}},
    ],
    "metadata": {"targetJob": "Engineer", "targetCompany": "Acme"},
}


@pytest_asyncio.fixture
async def client(session_maker):
    records = FakeRecords()
    imports = ImportSessionRegistry(lambda user_id: ImportPipeline(
        user_id=user_id,
        parser=FakeParser(),
        storage=FakeStorage(),
        profile_store=FakeProfileStore(),
        syncer=FakeSyncer(),
        records=records,
        done_reset_seconds=0.05,
        error_reset_seconds=0.05,
        sync_error_reset_seconds=0.05,
    ))
    editors = EditorSessionRegistry(preview_delay=0.01)
    generate = FakeGenerator()

    async def override_db():
        async with session_maker() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="user-1", email="ada@example.com")
    app.dependency_overrides[get_import_sessions] = lambda: imports
    app.dependency_overrides[get_editor_sessions] = lambda: editors
    app.dependency_overrides[get_json_generator] = lambda: generate

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        client.imports = imports
        client.records = records
        client.generate = generate
        yield client

    await imports.close_all()
    editors.close_all()
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_import_upload_review_confirm(client):
    response = await client.post(
        "/api/resume/import",
        files={"file": ("Ada Resume.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )
    assert response.status_code == 202
    assert response.json()["phase"] == "extracting"
    assert response.headers["cache-control"].startswith("no-cache")

    await client.imports.peek("user-1")._task

    status = (await client.get("/api/resume/import/status")).json()
    assert status["phase"] == "review"
    assert status["counts"]["skills"]["total"] == 3

    response = await client.post("/api/resume/import/deny-all", json={"kind": "skills"})
    assert response.json()["counts"]["skills"]["accepted"] == 0

    response = await client.post("/api/resume/import/toggle", json={"kind": "skills", "id": "skill-0"})
    assert response.json()["counts"]["skills"]["accepted"] == 1

    response = await client.post("/api/resume/import/confirm")
    assert response.json()["phase"] == "done"
    assert client.records.created[0]["name"] == "Ada Resume"


@pytest.mark.asyncio
async def test_oversized_upload_maps_to_413(client):
    response = await client.post(
        "/api/resume/import",
        files={"file": ("big.pdf", b"0" * (11 * 1024 * 1024), "application/pdf")},
    )
    assert response.status_code == 413
    body = response.json()
    assert "10MB" in body["error"]
    assert body["details"]["max_mb"] == 10

    status = (await client.get("/api/resume/import/status")).json()
    assert status["phase"] == "idle"


@pytest.mark.asyncio
async def test_review_endpoints_without_an_import(client):
    response = await client.post("/api/resume/import/toggle", json={"kind": "skills", "id": "skill-0"})
    assert response.status_code == 404
    assert response.json()["error"] == "No resume import is awaiting review"


@pytest.mark.asyncio
async def test_sync_profile_endpoint(client):
    response = await client.post("/api/resume/sync-profile", json={"parsedResume": SAMPLE_PARSED})
    body = response.json()

    assert body["success"] is True
    assert body["result"]["experience"]["added"] == 2
    assert body["message"].startswith("Added:")


@pytest.mark.asyncio
async def test_save_tailored_then_edit(client):
    response = await client.post("/api/resumes/tailored", json={
        "name": "Ada for Acme",
        "content": TAILORED_DOCUMENT,
        "matchScore": 87,
        "targetJob": {"title": "Engineer", "company": "Acme"},
    })
    assert response.status_code == 201
    resume_id = response.json()["resume_id"]

    listed = (await client.get("/api/resumes", params={"type": "tailored"})).json()
    assert [r["id"] for r in listed] == [resume_id]
    assert listed[0]["target_job"]["company"] == "Acme"

    state = (await client.post(f"/api/resumes/{resume_id}/editor")).json()
    assert state["save_state"] == "saved"

    state = (await client.post(f"/api/resumes/{resume_id}/editor/blocks/sum/toggle")).json()
    assert state["save_state"] == "unsaved"

    preview = await client.get(f"/api/resumes/{resume_id}/editor/preview", params={"wait": "true"})
    assert preview.headers["content-type"] == "application/pdf"

    state = (await client.post(f"/api/resumes/{resume_id}/editor/save")).json()
    assert state["save_state"] == "saved"

    stored = (await client.get(f"/api/resumes/{resume_id}")).json()
    blocks = {b["id"]: b for b in json.loads(stored["content"])["blocks"]}
    assert blocks["sum"]["enabled"] is False


@pytest.mark.asyncio
async def test_invalid_block_data_is_422(client):
    response = await client.post("/api/resumes/tailored", json={
        "name": "Ada for Acme",
        "content": TAILORED_DOCUMENT,
        "targetJob": {"title": "Engineer", "company": "Acme"},
    })
    resume_id = response.json()["resume_id"]
    await client.post(f"/api/resumes/{resume_id}/editor")

    response = await client.put(f"/api/resumes/{resume_id}/editor/blocks/head", json={"data": {"email": "x"}})
    assert response.status_code == 422
    assert response.json()["details"]["block_id"] == "head"


@pytest.mark.asyncio
async def test_export_source_resume_as_text(client, session_maker):
    async with session_maker() as session:
        resume = UserResume(
            user_id="user-1",
            name="Ada Resume",
            resume_type=ResumeType.SOURCE,
            content=json.dumps(SAMPLE_PARSED),
            is_primary=True,
        )
        session.add(resume)
        await session.commit()
        resume_id = resume.id

    response = await client.get(f"/api/resumes/{resume_id}/export", params={"format": "txt"})
    assert response.status_code == 200
    assert response.text.startswith("Ada Lovelace")
    assert "Engineer | Analytical Engines Ltd" in response.text


@pytest.mark.asyncio
async def test_missing_resume_is_404(client):
    response = await client.get("/api/resumes/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Resume not found"


# ============================================================================
# Tailoring
# ============================================================================

JOB_DESCRIPTION = {
    "title": "Senior Engineer",
    "company": "Acme",
    "fullText": "We are hiring a Senior Engineer to build analytical engines. " * 2,
    "keywords": ["Python"],
}


@pytest.mark.asyncio
async def test_short_job_posting_is_400(client):
    response = await client.post("/api/job/parse", json={"text": "Engineer wanted"})

    assert response.status_code == 400
    assert response.json()["details"]["min_length"] == 50
    assert client.generate.prompts == []


@pytest.mark.asyncio
async def test_parse_job_posting(client):
    client.generate.reply = {"title": "Senior Engineer", "company": "Acme", "keywords": ["Python"]}

    response = await client.post("/api/job/parse", json={"text": JOB_DESCRIPTION["fullText"]})

    assert response.status_code == 200
    assert response.json()["keywords"] == ["Python"]


@pytest.mark.asyncio
async def test_tailor_without_profile_is_400(client):
    response = await client.post("/api/tailor", json={"jobDescription": JOB_DESCRIPTION})

    assert response.status_code == 400
    assert response.json()["error"].startswith("No profile data found")


@pytest.mark.asyncio
async def test_tailor_stream(client):
    await client.post("/api/resume/sync-profile", json={"parsedResume": SAMPLE_PARSED})
    client.generate.reply = {
        "professionalSummary": "Engineer who ships analytical engines.",
        "experience": [{"company": "Analytical Engines Ltd", "position": "Engineer", "bullets": ["Built it"]}],
        "matchScore": 80,
    }

    response = await client.post("/api/tailor/stream", json={"jobDescription": JOB_DESCRIPTION})

    assert response.headers["content-type"].startswith("text/event-stream")
    events = [json.loads(line[len("data: "):]) for line in response.text.split("\n\n") if line]
    assert events[-1]["type"] == "complete"
    assert events[-1]["result"]["matchScore"] == 80
