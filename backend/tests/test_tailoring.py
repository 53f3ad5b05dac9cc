import pytest

from resume_tailor.exceptions import (
    DocumentParseError, JobDescriptionTooShortError, NoProfileDataError, TailoringError,
)
from resume_tailor.schemas.blocks import ResumeDocument
from resume_tailor.schemas.tailoring import JobDescription
from resume_tailor.services.profile_sync import ProfileSyncService
from resume_tailor.services.tailoring import TailoringService, load_profile_data, parse_job_description

from conftest import SAMPLE_PARSED, FakeGenerator


POSTING = "We are hiring a Senior Engineer to build analytical engines. " * 3

JOB = JobDescription(title="Senior Engineer", company="Acme", full_text=POSTING, keywords=["Python", "Engines"])

REPLY = {
    "professionalSummary": "Engineer who ships analytical engines.",
    "experience": [
        {"company": "Analytical Engines Ltd", "position": "Engineer", "startDate": "Jan 2020",
         "bullets": ["Built the first program, used by 3 teams"]},
    ],
    "educationJson": '[{"institution": "University of London", "degree": "BSc"}]',
    "projectsJson": "not json",
    "technicalSkills": ["Python"],
    "frameworksAndTools": [],
    "keyImprovements": ["Led with engine work", "Quantified impact"],
    "keywordsAdded": ["Python"],
    "matchScore": 140,
}


@pytest.fixture
def profile():
    return {
        "contactInfo": {"name": "Ada Lovelace", "email": "ada@example.com"},
        "professionalSummary": "Analyst.",
        "experience": [{"company": "Analytical Engines Ltd", "position": "Engineer", "bullets": ["Wrote code"]}],
        "education": [],
        "projects": [],
        "skills": {"format": "categorized", "categories": [{"name": "Tools", "skills": ["Git"]}]},
    }


# ============================================================================
# Job descriptions
# ============================================================================

@pytest.mark.asyncio
async def test_parse_job_description():
    generate = FakeGenerator({
        "title": "Engineer", "company": "Acme", "employmentType": "Full-time",
        "requirements": ["Python", None], "keywords": ["engines"],
    })

    job = await parse_job_description(POSTING, company="Acme Corp", generate=generate)

    assert (job.title, job.company) == ("Engineer", "Acme Corp")
    assert job.employment_type == "Full-time"
    assert job.requirements == ["Python"]
    assert job.text == POSTING
    assert POSTING in generate.prompts[0]


@pytest.mark.asyncio
async def test_short_job_description_is_rejected_before_generation():
    generate = FakeGenerator()

    with pytest.raises(JobDescriptionTooShortError):
        await parse_job_description("Engineer wanted", generate=generate)
    assert generate.prompts == []


@pytest.mark.asyncio
async def test_job_without_company_fails():
    with pytest.raises(DocumentParseError):
        await parse_job_description(POSTING, generate=FakeGenerator({"title": "Engineer"}))


# ============================================================================
# Profile data
# ============================================================================

@pytest.mark.asyncio
async def test_load_profile_data(db):
    await ProfileSyncService(db).sync("user-1", SAMPLE_PARSED)
    await db.commit()

    profile = await load_profile_data(db, "user-1")

    assert profile["contactInfo"]["name"] == "Ada Lovelace"
    current, earlier = profile["experience"]
    assert current["company"] == "Analytical Engines Ltd"
    assert (current["startDate"], current["endDate"]) == ("Jan 2020", None)
    assert current["bullets"] == ["Wrote the first program", "Reviewed the engine design"]
    assert earlier["endDate"] == "Jan 2019"
    assert profile["projects"][0]["technologies"] == ["Punch cards"]
    assert profile["skills"]["categories"] == [
        {"name": "Technical Skills", "skills": ["Python", "SQL"]},
        {"name": "Tools", "skills": ["Git"]},
    ]


@pytest.mark.asyncio
async def test_empty_profile(db):
    profile = await load_profile_data(db, "nobody")

    assert profile["experience"] == [] and profile["projects"] == []
    assert profile["contactInfo"]["name"] is None


# ============================================================================
# Tailoring
# ============================================================================

@pytest.mark.asyncio
async def test_tailor_builds_a_document(profile):
    generate = FakeGenerator(REPLY)
    result = await TailoringService(generate).tailor(profile, JOB)

    document = ResumeDocument.from_content(result.content)
    blocks = {block.type: block for block in document.ordered_blocks()}

    assert blocks["header"].data.name == "Ada Lovelace"
    assert blocks["summary"].data.text == "Engineer who ships analytical engines."
    assert blocks["experience"].data.entries[0].bullets == ["Built the first program, used by 3 teams"]
    assert blocks["education"].data.entries[0].institution == "University of London"
    assert blocks["projects"].data.entries == []
    assert [c.name for c in blocks["skills"].data.categories] == ["Technical Skills"]
    assert document.metadata.target_company == "Acme"

    assert result.match_score == 100
    assert result.summary.total_changes == 2
    assert result.original_resume == profile
    assert "Keywords: Python, Engines" in generate.prompts[0]


@pytest.mark.asyncio
async def test_contact_details_come_from_the_profile(profile):
    reply = {**REPLY, "name": "Someone Else", "email": "other@example.com"}
    result = await TailoringService(FakeGenerator(reply)).tailor(profile, JOB)

    header = ResumeDocument.from_content(result.content).ordered_blocks()[0]
    assert header.data.email == "ada@example.com"


@pytest.mark.asyncio
async def test_profile_skills_kept_when_reply_has_none(profile):
    reply = {**REPLY, "technicalSkills": []}
    result = await TailoringService(FakeGenerator(reply)).tailor(profile, JOB)

    skills = ResumeDocument.from_content(result.content).ordered_blocks()
    assert [c.name for b in skills if b.type == "skills" for c in b.data.categories] == ["Tools"]


@pytest.mark.asyncio
async def test_tailor_needs_experience_or_projects(profile):
    profile["experience"] = []
    generate = FakeGenerator(REPLY)

    with pytest.raises(NoProfileDataError):
        await TailoringService(generate).tailor(profile, JOB)
    assert generate.prompts == []


@pytest.mark.asyncio
async def test_generation_failure(profile):
    generate = FakeGenerator(error=DocumentParseError("Failed to generate resume"))

    with pytest.raises(TailoringError):
        await TailoringService(generate).tailor(profile, JOB)


@pytest.mark.asyncio
async def test_stream_events(profile):
    events = [e async for e in TailoringService(FakeGenerator(REPLY)).stream(profile, JOB)]

    assert [e["type"] for e in events] == ["phase", "thought", "phase", "thought", "phase", "complete"]
    assert events[1]["thought"] == "Found 1 jobs, 0 projects, 0 education entries"
    assert events[-1]["result"]["matchScore"] == 100


@pytest.mark.asyncio
async def test_stream_hides_internal_errors(profile):
    generate = FakeGenerator(error=RuntimeError("socket closed"))
    events = [e async for e in TailoringService(generate).stream(profile, JOB)]

    assert events[-1] == {"type": "error", "message": "An error occurred"}
