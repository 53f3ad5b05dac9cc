"""
Resume Editor Service - in-place structural editing of a ResumeDocument.

Every mutation marks the document unsaved and restarts a debounced preview
render. Only the latest scheduled render runs, and the preview it replaces
is released.
"""
import asyncio
import enum
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import BlockDataError
from ..schemas.blocks import ResumeDocument, data_model_for, generate_id
from ..utils.timers import DelayedCall
from .resume_renderer import render_pdf

logger = logging.getLogger(__name__)

Renderer = Callable[[ResumeDocument], Union[bytes, Awaitable[bytes]]]


class SaveState(str, enum.Enum):
    SAVED = "saved"
    UNSAVED = "unsaved"
    SAVING = "saving"


class PreviewArtifact:
    """A rendered preview; ``release()`` drops the bytes once superseded."""

    def __init__(self, content: bytes, generation: int):
        self.content: Optional[bytes] = content
        self.generation = generation

    @property
    def released(self) -> bool:
        return self.content is None

    def release(self) -> None:
        self.content = None


async def _render_pdf_in_thread(document: ResumeDocument) -> bytes:
    return await asyncio.to_thread(render_pdf, document)


class ResumeEditor:

    def __init__(
        self,
        document: ResumeDocument,
        renderer: Optional[Renderer] = None,
        preview_delay: float = 0.5,
        on_preview: Optional[Callable[[PreviewArtifact], Any]] = None
    ):
        self.document = document.model_copy(deep=True)
        self.save_state = SaveState.SAVED
        self.preview: Optional[PreviewArtifact] = None
        self._renderer = renderer or _render_pdf_in_thread
        self._preview_delay = preview_delay
        self._on_preview = on_preview
        self._pending: Optional[DelayedCall] = None
        self._generation = 0

    # ========================================================================
    # Block mutations
    # ========================================================================

    def toggle_visibility(self, block_id: str) -> bool:
        block = self.document.get_block(block_id)
        block.enabled = not block.enabled
        self._changed()
        return block.enabled

    def update_block_data(self, block_id: str, data: Union[Dict[str, Any], BaseModel]):
        """Replace a block's payload wholesale; it must fit the block's own type."""
        block = self.document.get_block(block_id)
        model = data_model_for(block)
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        try:
            block.data = model.model_validate(data)
        except ValidationError as e:
            raise BlockDataError(
                f"Invalid data for {block.type} block",
                details={"block_id": block_id, "errors": e.errors(include_url=False, include_context=False)},
                cause=e
            )
        self._changed()
        return block

    def reorder_blocks(self, block_ids: List[str]) -> None:
        """Set render order from a full list of block ids."""
        current = {b.id for b in self.document.blocks}
        if set(block_ids) != current or len(block_ids) != len(current):
            raise BlockDataError(
                "Reorder must list every block exactly once",
                details={"expected": sorted(current), "received": block_ids}
            )
        for order, block_id in enumerate(block_ids):
            self.document.get_block(block_id).order = order
        self._changed()

    # ========================================================================
    # Entry mutations (experience, education, projects, ...)
    # ========================================================================

    def _entries_of(self, block_id: str):
        block = self.document.get_block(block_id)
        entries = getattr(block.data, "entries", None)
        if entries is None:
            raise BlockDataError(
                f"{block.type} blocks have no entries",
                details={"block_id": block_id}
            )
        return block, entries

    def add_entry(self, block_id: str, entry: Union[Dict[str, Any], BaseModel], index: Optional[int] = None):
        block, entries = self._entries_of(block_id)
        position = len(entries) if index is None else index
        if not 0 <= position <= len(entries):
            raise BlockDataError(
                f"Entry index {index} out of range",
                details={"block_id": block_id, "index": index, "size": len(entries)}
            )
        if isinstance(entry, BaseModel):
            entry = entry.model_dump(by_alias=True)
        entry = {**entry, "id": generate_id()}

        payload = block.data.model_dump(by_alias=True)
        payload["entries"].insert(position, entry)
        block = self.update_block_data(block_id, payload)
        return block.data.entries[position]

    def remove_entry(self, block_id: str, entry_id: str) -> None:
        block, entries = self._entries_of(block_id)
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            raise BlockDataError(
                f"Entry '{entry_id}' not found",
                details={"block_id": block_id, "entry_id": entry_id}
            )
        block.data.entries = remaining
        self._changed()

    def move_entry(self, block_id: str, from_index: int, to_index: int) -> None:
        block, entries = self._entries_of(block_id)
        if not (0 <= from_index < len(entries) and 0 <= to_index < len(entries)):
            raise BlockDataError(
                "Entry index out of range",
                details={"block_id": block_id, "from": from_index, "to": to_index}
            )
        entry = entries.pop(from_index)
        entries.insert(to_index, entry)
        self._changed()

    # ========================================================================
    # Save state and preview
    # ========================================================================

    def _changed(self) -> None:
        self.save_state = SaveState.UNSAVED
        if self._pending:
            self._pending.cancel()
        self._pending = DelayedCall(self._preview_delay, self._regenerate, name="resume-preview")

    async def _regenerate(self) -> None:
        self._generation += 1
        generation = self._generation
        snapshot = self.document.model_copy(deep=True)

        result = self._renderer(snapshot)
        if inspect.isawaitable(result):
            result = await result

        if self.preview:
            self.preview.release()
        self.preview = PreviewArtifact(result, generation)
        logger.debug(f"Preview generation {generation} ready ({len(result)} bytes)")
        if self._on_preview:
            self._on_preview(self.preview)

    async def flush_preview(self) -> Optional[PreviewArtifact]:
        """Wait for the pending preview render, if any."""
        if self._pending:
            await self._pending.wait()
        return self.preview

    @property
    def preview_pending(self) -> bool:
        return bool(self._pending and self._pending.pending)

    def mark_saving(self) -> str:
        """Serialize the document for storage and flag the save as in flight."""
        self.save_state = SaveState.SAVING
        return self.document.to_content()

    def mark_saved(self) -> str:
        self.save_state = SaveState.SAVED
        return self.document.to_content()

    def close(self) -> None:
        if self._pending:
            self._pending.cancel()
            self._pending = None
        if self.preview:
            self.preview.release()
            self.preview = None


class EditorSessionRegistry:
    """Open editors keyed by (user id, resume id)."""

    def __init__(self, preview_delay: float = 0.5, renderer: Optional[Renderer] = None):
        self.preview_delay = preview_delay
        self.renderer = renderer
        self._editors: Dict[Tuple[str, int], ResumeEditor] = {}

    def open(self, user_id: str, resume_id: int, document: ResumeDocument) -> ResumeEditor:
        """Reuse an open editor, or start one from the stored document."""
        key = (user_id, resume_id)
        editor = self._editors.get(key)
        if editor is None:
            editor = ResumeEditor(document, renderer=self.renderer, preview_delay=self.preview_delay)
            self._editors[key] = editor
        return editor

    def get(self, user_id: str, resume_id: int) -> Optional[ResumeEditor]:
        return self._editors.get((user_id, resume_id))

    def close(self, user_id: str, resume_id: int) -> None:
        editor = self._editors.pop((user_id, resume_id), None)
        if editor:
            editor.close()

    def close_all(self) -> None:
        for key in list(self._editors):
            self.close(*key)
