import asyncio

import pytest
import pytest_asyncio

from resume_tailor.exceptions import BlockDataError, BlockNotFoundError
from resume_tailor.schemas.blocks import ResumeDocument
from resume_tailor.services.resume_editor import EditorSessionRegistry, ResumeEditor, SaveState


DOCUMENT = {
    "blocks": [
        {"id": "head", "type": "header", "order": 0, "data": {"name": "Ada Lovelace"}},
        {"id": "work", "type": "experience", "order": 1, "data": {"entries": [
            {"id": "e1", "company": "Engines Ltd", "position": "Engineer", "startDate": "2020"},
            {"id": "e2", "company": "Babbage & Co", "position": "Assistant", "startDate": "2018"},
        ]}},
        {"id": "skills", "type": "skills", "order": 2, "data": {"format": "inline", "skills": ["Python"]}},
    ]
}


class CountingRenderer:

    def __init__(self):
        self.rendered = []

    async def __call__(self, document: ResumeDocument) -> bytes:
        self.rendered.append(document)
        return f"pdf-{len(self.rendered)}".encode()


@pytest.fixture
def renderer():
    return CountingRenderer()


@pytest_asyncio.fixture
async def editor(renderer):
    editor = ResumeEditor(ResumeDocument.from_content(DOCUMENT), renderer=renderer, preview_delay=0.02)
    yield editor
    editor.close()


@pytest.mark.asyncio
async def test_mutations_mark_unsaved(editor):
    assert editor.save_state == SaveState.SAVED
    assert editor.toggle_visibility("skills") is False
    assert editor.save_state == SaveState.UNSAVED


@pytest.mark.asyncio
async def test_editor_works_on_a_copy():
    original = ResumeDocument.from_content(DOCUMENT)
    editor = ResumeEditor(original, renderer=CountingRenderer(), preview_delay=0.02)
    editor.toggle_visibility("head")

    assert original.get_block("head").enabled is True
    editor.close()


@pytest.mark.asyncio
async def test_preview_is_debounced(editor, renderer):
    editor.toggle_visibility("skills")
    editor.toggle_visibility("skills")
    editor.move_entry("work", 0, 1)

    preview = await editor.flush_preview()

    assert len(renderer.rendered) == 1
    assert preview.generation == 1
    assert [e.id for e in renderer.rendered[0].get_block("work").data.entries] == ["e2", "e1"]


@pytest.mark.asyncio
async def test_new_preview_releases_the_previous_one(editor):
    editor.toggle_visibility("skills")
    first = await editor.flush_preview()

    editor.toggle_visibility("skills")
    second = await editor.flush_preview()

    assert first.released
    assert second.content == b"pdf-2"
    editor.close()
    assert second.released


@pytest.mark.asyncio
async def test_update_block_data_validates_against_block_type(editor):
    editor.update_block_data("head", {"name": "Augusta Ada King", "email": "ada@example.com"})
    assert editor.document.get_block("head").data.email == "ada@example.com"

    with pytest.raises(BlockDataError) as exc_info:
        editor.update_block_data("head", {"entries": []})
    assert exc_info.value.details["block_id"] == "head"


@pytest.mark.asyncio
async def test_unknown_block(editor):
    with pytest.raises(BlockNotFoundError):
        editor.toggle_visibility("nope")


@pytest.mark.asyncio
async def test_entries_add_remove_move(editor):
    added = editor.add_entry("work", {"company": "Acme", "position": "Lead", "startDate": "2023"}, index=0)
    entries = editor.document.get_block("work").data.entries
    assert entries[0].id == added.id
    assert added.id not in ("e1", "e2")

    editor.remove_entry("work", "e1")
    editor.move_entry("work", 1, 0)
    assert [e.id for e in editor.document.get_block("work").data.entries] == ["e2", added.id]

    with pytest.raises(BlockDataError):
        editor.remove_entry("work", "e1")
    with pytest.raises(BlockDataError):
        editor.move_entry("work", 0, 5)
    with pytest.raises(BlockDataError):
        editor.add_entry("head", {"company": "x"})


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [3, 5, -1])
async def test_add_entry_rejects_out_of_range_index(editor, index):
    with pytest.raises(BlockDataError) as exc_info:
        editor.add_entry("work", {"company": "Acme", "position": "Lead"}, index=index)

    assert exc_info.value.details["size"] == 2
    assert [e.id for e in editor.document.get_block("work").data.entries] == ["e1", "e2"]
    assert editor.save_state == SaveState.SAVED


@pytest.mark.asyncio
async def test_add_entry_at_the_end(editor):
    added = editor.add_entry("work", {"company": "Acme", "position": "Lead"}, index=2)

    assert editor.document.get_block("work").data.entries[-1].id == added.id
    assert added.company == "Acme"


@pytest.mark.asyncio
async def test_reorder_blocks(editor):
    editor.reorder_blocks(["skills", "head", "work"])
    assert [b.id for b in editor.document.ordered_blocks()] == ["skills", "head", "work"]

    with pytest.raises(BlockDataError):
        editor.reorder_blocks(["skills", "head"])
    with pytest.raises(BlockDataError):
        editor.reorder_blocks(["skills", "head", "head"])


@pytest.mark.asyncio
async def test_save_cycle(editor):
    editor.toggle_visibility("skills")
    content = editor.mark_saving()
    assert editor.save_state == SaveState.SAVING

    assert editor.mark_saved() == content
    assert editor.save_state == SaveState.SAVED
    assert ResumeDocument.from_content(content).get_block("skills").enabled is False


@pytest.mark.asyncio
async def test_registry_reuses_open_editors(renderer):
    registry = EditorSessionRegistry(preview_delay=0.02, renderer=renderer)
    document = ResumeDocument.from_content(DOCUMENT)

    editor = registry.open("user-1", 1, document)
    assert registry.open("user-1", 1, document) is editor
    assert registry.get("user-2", 1) is None

    editor.toggle_visibility("skills")
    registry.close_all()
    await asyncio.sleep(0.05)
    assert registry.get("user-1", 1) is None
    assert renderer.rendered == []
