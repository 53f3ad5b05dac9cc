import pytest

from resume_tailor.exceptions import CandidateNotFoundError
from resume_tailor.services.review import CandidateKind, EmptyState, ImportReview
from resume_tailor.services.resume_import import transform_parsed_data

from conftest import SAMPLE_PARSED


@pytest.fixture
def review():
    data = transform_parsed_data(SAMPLE_PARSED, "r.pdf", None)
    data.experience[0].is_duplicate = True
    data.experience[0].accepted = False
    for item in data.education + data.skills + data.projects + data.experience[1:]:
        item.is_duplicate = False
    return ImportReview(data)


def test_toggle_flips_new_items(review):
    assert review.toggle(CandidateKind.SKILLS, "skill-1") is True
    assert review.data.skills[1].accepted is False
    review.toggle(CandidateKind.SKILLS, "skill-1")
    assert review.data.skills[1].accepted is True


def test_duplicates_cannot_be_selected(review):
    assert review.toggle(CandidateKind.EXPERIENCE, "exp-0") is False
    assert review.data.experience[0].accepted is False

    review.accept_all(CandidateKind.EXPERIENCE)
    assert [e.accepted for e in review.data.experience] == [False, True]


def test_deny_all_then_accept_all(review):
    review.deny_all(CandidateKind.SKILLS)
    assert review.counts(CandidateKind.SKILLS).accepted == 0

    review.accept_all(CandidateKind.SKILLS)
    assert review.counts(CandidateKind.SKILLS).accepted == 3


def test_unknown_candidate(review):
    with pytest.raises(CandidateNotFoundError):
        review.toggle(CandidateKind.PROJECTS, "proj-9")


def test_counts_and_empty_states(review):
    exp = review.counts(CandidateKind.EXPERIENCE)
    assert (exp.total, exp.new, exp.accepted, exp.duplicates) == (2, 1, 1, 1)
    assert exp.empty_state == EmptyState.HAS_NEW

    review.data.projects[0].is_duplicate = True
    assert review.empty_state(CandidateKind.PROJECTS) == EmptyState.ALL_DUPLICATES

    review.data.education.clear()
    assert review.empty_state(CandidateKind.EDUCATION) == EmptyState.NO_DATA
    assert set(review.all_counts()) == {"experience", "education", "skills", "projects"}


def test_can_confirm_needs_a_new_selection(review):
    assert review.can_confirm
    for kind in CandidateKind:
        review.deny_all(kind)
    assert not review.can_confirm


def test_sync_payload_strips_review_fields_and_groups_skills(review):
    review.toggle(CandidateKind.SKILLS, "skill-2")
    payload = review.build_sync_payload()

    assert payload["contactInfo"]["name"] == "Ada Lovelace"
    assert [e["company"] for e in payload["experience"]] == ["Babbage & Co"]
    assert "id" not in payload["experience"][0]
    assert "accepted" not in payload["experience"][0]
    assert "isDuplicate" not in payload["experience"][0]
    assert payload["education"][0]["field"] == "Mathematics"
    assert payload["skills"] == {
        "format": "categorized",
        "categories": [{"name": "Programming Languages", "skills": ["Python", "SQL"]}],
    }


def test_sync_payload_omits_skills_when_none_selected(review):
    review.deny_all(CandidateKind.SKILLS)
    assert "skills" not in review.build_sync_payload()
