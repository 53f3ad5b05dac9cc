import json

import pytest

from resume_tailor.schemas.blocks import BlockType
from resume_tailor.services.resume_import import (
    ExtractedSkill, build_document, document_from_content,
    group_skills_by_category, transform_parsed_data,
)

from conftest import SAMPLE_PARSED


def test_transform_assigns_ids_and_defaults():
    data = transform_parsed_data(SAMPLE_PARSED, "Ada Resume.pdf", "resumes/u/a.pdf")

    assert [e.id for e in data.experience] == ["exp-0", "exp-1"]
    assert [e.id for e in data.education] == ["edu-0"]
    assert [p.id for p in data.projects] == ["proj-0"]
    assert all(e.accepted and e.is_duplicate is None for e in data.experience)
    assert data.file_name == "Ada Resume.pdf"
    assert data.file_url == "resumes/u/a.pdf"
    assert data.raw_parsed == SAMPLE_PARSED


def test_transform_falls_back_to_title_for_position():
    data = transform_parsed_data(SAMPLE_PARSED, "r.pdf", None)
    assert data.experience[1].position == "Research Assistant"


def test_categorized_skills_get_running_ids():
    data = transform_parsed_data(SAMPLE_PARSED, "r.pdf", None)

    assert [(s.id, s.name, s.category) for s in data.skills] == [
        ("skill-0", "Python", "Programming Languages"),
        ("skill-1", "SQL", "Programming Languages"),
        ("skill-2", "Git", "Tools"),
    ]


def test_flat_skill_list_keeps_source_index():
    data = transform_parsed_data({"skills": ["Python", 42, "Go"]}, "r.pdf", None)

    assert [(s.id, s.name) for s in data.skills] == [("skill-0", "Python"), ("skill-2", "Go")]
    assert all(s.category is None for s in data.skills)


@pytest.mark.parametrize("parsed", [None, [], "not json", {"experience": "oops", "skills": 3}])
def test_malformed_input_degrades_to_empty(parsed):
    data = transform_parsed_data(parsed, "r.pdf", None)

    assert data.experience == []
    assert data.education == []
    assert data.skills == []
    assert data.projects == []


def test_non_dict_records_become_blank_candidates():
    data = transform_parsed_data({"experience": ["junk"]}, "r.pdf", None)
    assert data.experience[0].company == ""
    assert data.experience[0].position == ""


def test_group_skills_by_category_defaults_to_other():
    skills = [
        ExtractedSkill(id="skill-0", name="Python", category="Languages"),
        ExtractedSkill(id="skill-1", name="Teamwork"),
        ExtractedSkill(id="skill-2", name="Go", category="Languages"),
    ]
    assert group_skills_by_category(skills) == [
        {"name": "Languages", "skills": ["Python", "Go"]},
        {"name": "Other", "skills": ["Teamwork"]},
    ]


def test_build_document_lays_out_default_sections():
    data = transform_parsed_data(SAMPLE_PARSED, "r.pdf", None)
    doc = build_document(data, summary="Analyst and engineer.")

    types = [b.type for b in doc.ordered_blocks()]
    assert types == [
        BlockType.HEADER.value, BlockType.SUMMARY.value, BlockType.EXPERIENCE.value,
        BlockType.EDUCATION.value, BlockType.SKILLS.value, BlockType.PROJECTS.value,
    ]
    skills = doc.blocks[4].data
    assert skills.format == "categorized"
    assert [c.name for c in skills.categories] == ["Programming Languages", "Tools"]


def test_document_from_content_accepts_raw_parse_and_block_documents():
    from_raw = document_from_content(json.dumps(SAMPLE_PARSED), "Ada Resume")
    assert from_raw.blocks[0].data.name == "Ada Lovelace"

    roundtrip = document_from_content(from_raw.to_content())
    assert [b.id for b in roundtrip.blocks] == [b.id for b in from_raw.blocks]


def test_document_from_empty_content():
    doc = document_from_content("", "blank")
    assert doc.blocks[0].data.name == ""
