import pytest

from resume_tailor.services.duplicates import mark_duplicates
from resume_tailor.services.resume_import import transform_parsed_data

from conftest import SAMPLE_PARSED, FakeProfileStore, existing


@pytest.fixture
def data():
    return transform_parsed_data(SAMPLE_PARSED, "r.pdf", None)


@pytest.mark.asyncio
async def test_matches_are_case_insensitive_and_deselected(data):
    store = FakeProfileStore(
        experience=[existing(company="analytical engines ltd", position="ENGINEER")],
        education=[existing(institution="University of London", degree="bsc")],
        skills=[existing(name="python")],
    )
    marked = await mark_duplicates(data, store, "user-1")

    assert [(e.is_duplicate, e.accepted) for e in marked.experience] == [(True, False), (False, True)]
    assert marked.education[0].is_duplicate is True
    assert [s.is_duplicate for s in marked.skills] == [True, False, False]
    assert marked.projects[0].is_duplicate is False


@pytest.mark.asyncio
async def test_projects_match_on_name_or_url(data):
    by_url = FakeProfileStore(projects=[existing(name="Renamed", url="HTTPS://example.com/note-g")])
    by_name = FakeProfileStore(projects=[existing(name="note g", url=None)])

    assert (await mark_duplicates(data, by_url, "u")).projects[0].is_duplicate
    assert (await mark_duplicates(data, by_name, "u")).projects[0].is_duplicate


@pytest.mark.asyncio
async def test_input_is_not_mutated(data):
    store = FakeProfileStore(skills=[existing(name="Python")])
    await mark_duplicates(data, store, "user-1")

    assert data.skills[0].is_duplicate is None
    assert data.skills[0].accepted is True


@pytest.mark.asyncio
async def test_store_failure_returns_data_unchanged(data):
    marked = await mark_duplicates(data, FakeProfileStore(fail=True), "user-1")

    assert marked is data
    assert all(e.is_duplicate is None for e in marked.experience)


@pytest.mark.asyncio
async def test_rows_without_expected_fields_return_data_unchanged(data):
    store = FakeProfileStore(experience=[{"company": "Analytical Engines Ltd", "position": "Engineer"}])
    marked = await mark_duplicates(data, store, "user-1")

    assert marked is data
