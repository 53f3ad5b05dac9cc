import json

import pytest
from pydantic import ValidationError

from resume_tailor.exceptions import BlockNotFoundError
from resume_tailor.schemas.blocks import (
    BlockType, ExperienceData, HeaderData, ResumeDocument, SkillsData,
    block_type_of, create_header_block, create_skills_block, create_summary_block,
    data_model_for, generate_id, get_bullet_text, is_bullet_enabled, is_entry_enabled,
)


STORED = {
    "blocks": [
        {"id": "h1", "type": "header", "enabled": True, "order": 0,
         "data": {"name": "Ada Lovelace", "email": "ada@example.com"}},
        {"id": "x1", "type": "experience", "enabled": True, "order": 2,
         "data": {"entries": [{
             "id": "e1", "company": "Engines Ltd", "position": "Engineer",
             "startDate": "2020", "endDate": None,
             "bullets": ["Plain bullet", {"text": "Hidden", "enabled": False}],
         }]}},
        {"id": "s1", "type": "summary", "enabled": False, "order": 1,
         "data": {"text": "Hidden summary"}},
    ],
    "metadata": {"targetJob": "Engineer", "targetCompany": "Acme"},
}


def test_document_parses_camel_case_and_discriminates_blocks():
    doc = ResumeDocument.from_content(json.dumps(STORED))

    assert [block_type_of(b) for b in doc.blocks] == [
        BlockType.HEADER, BlockType.EXPERIENCE, BlockType.SUMMARY
    ]
    entry = doc.get_block("x1").data.entries[0]
    assert entry.start_date == "2020"
    assert entry.end_date is None
    assert doc.metadata.target_company == "Acme"


def test_ordered_and_visible_blocks():
    doc = ResumeDocument.from_content(STORED)

    assert [b.id for b in doc.ordered_blocks()] == ["h1", "s1", "x1"]
    assert [b.id for b in doc.visible_blocks()] == ["h1", "x1"]


def test_to_content_writes_camel_case_keys():
    doc = ResumeDocument.from_content(STORED)
    stored = json.loads(doc.to_content())

    entry = stored["blocks"][1]["data"]["entries"][0]
    assert "startDate" in entry
    assert "start_date" not in entry
    assert stored["metadata"]["targetJob"] == "Engineer"


def test_unknown_block_raises():
    doc = ResumeDocument.from_content(STORED)
    with pytest.raises(BlockNotFoundError):
        doc.get_block("missing")


def test_duplicate_block_ids_rejected():
    content = {"blocks": [STORED["blocks"][0], dict(STORED["blocks"][0])]}
    with pytest.raises(ValidationError):
        ResumeDocument.from_content(content)


def test_unknown_block_type_rejected():
    content = {"blocks": [{"id": "z", "type": "hobbies", "data": {}}]}
    with pytest.raises(ValidationError):
        ResumeDocument.from_content(content)


def test_bullets_and_entries_default_to_enabled():
    doc = ResumeDocument.from_content(STORED)
    plain, hidden = doc.get_block("x1").data.entries[0].bullets

    assert is_bullet_enabled(plain)
    assert not is_bullet_enabled(hidden)
    assert get_bullet_text(hidden) == "Hidden"
    assert is_entry_enabled(doc.get_block("x1").data.entries[0])


def test_data_model_for_matches_block_type():
    doc = ResumeDocument.from_content(STORED)
    assert data_model_for(doc.get_block("x1")) is ExperienceData
    assert data_model_for(create_skills_block(["Python"])) is SkillsData


def test_factories_use_default_section_order():
    header = create_header_block(HeaderData(name="Ada"))
    summary = create_summary_block("Hello")
    skills = create_skills_block(["Python"])

    assert (header.order, summary.order, skills.order) == (0, 1, 4)
    assert skills.data.format == "inline"
    assert len({header.id, summary.id, skills.id}) == 3


def test_generate_id_is_short_base36():
    value = generate_id()
    assert len(value) == 7
    assert value.isalnum() and value == value.lower()
