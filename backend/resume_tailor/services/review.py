"""
Review state for an import: which candidates the user keeps.

Duplicates are locked out. They cannot be toggled on and ``accept_all``
skips them, so nothing already in the profile is ever re-submitted.
"""
import enum
from typing import Any, Dict, List

from pydantic import BaseModel

from ..exceptions import CandidateNotFoundError
from .resume_import import ExtractedData, group_skills_by_category


class CandidateKind(str, enum.Enum):
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    PROJECTS = "projects"


class EmptyState(str, enum.Enum):
    NO_DATA = "no_data"
    ALL_DUPLICATES = "all_duplicates"
    HAS_NEW = "has_new"


class ReviewCounts(BaseModel):
    total: int
    new: int
    accepted: int
    duplicates: int
    empty_state: EmptyState


# Candidate fields that never leave the review screen
_REVIEW_ONLY_FIELDS = {"id", "accepted", "is_duplicate"}


class ImportReview:

    def __init__(self, data: ExtractedData):
        self.data = data

    def items(self, kind: CandidateKind) -> list:
        return getattr(self.data, CandidateKind(kind).value)

    def _find(self, kind: CandidateKind, candidate_id: str):
        for item in self.items(kind):
            if item.id == candidate_id:
                return item
        raise CandidateNotFoundError(CandidateKind(kind).value, candidate_id)

    def toggle(self, kind: CandidateKind, candidate_id: str) -> bool:
        """Flip one candidate. Returns False (and changes nothing) for duplicates."""
        item = self._find(kind, candidate_id)
        if item.is_duplicate:
            return False
        item.accepted = not item.accepted
        return True

    def accept_all(self, kind: CandidateKind) -> None:
        for item in self.items(kind):
            item.accepted = not item.is_duplicate

    def deny_all(self, kind: CandidateKind) -> None:
        for item in self.items(kind):
            item.accepted = False

    def counts(self, kind: CandidateKind) -> ReviewCounts:
        items = self.items(kind)
        duplicates = sum(1 for i in items if i.is_duplicate)
        return ReviewCounts(
            total=len(items),
            new=len(items) - duplicates,
            accepted=sum(1 for i in items if i.accepted and not i.is_duplicate),
            duplicates=duplicates,
            empty_state=self.empty_state(kind),
        )

    def empty_state(self, kind: CandidateKind) -> EmptyState:
        items = self.items(kind)
        if not items:
            return EmptyState.NO_DATA
        if all(i.is_duplicate for i in items):
            return EmptyState.ALL_DUPLICATES
        return EmptyState.HAS_NEW

    def all_counts(self) -> Dict[str, ReviewCounts]:
        return {kind.value: self.counts(kind) for kind in CandidateKind}

    def selected(self, kind: CandidateKind) -> list:
        return [i for i in self.items(kind) if i.accepted and not i.is_duplicate]

    @property
    def can_confirm(self) -> bool:
        return any(self.selected(kind) for kind in CandidateKind)

    def build_sync_payload(self) -> Dict[str, Any]:
        """
        The ``parsedResume`` body for the profile sync: selected items only,
        with review-only fields stripped and skills grouped by category.
        """
        def strip(items) -> List[Dict[str, Any]]:
            return [
                i.model_dump(by_alias=True, exclude=_REVIEW_ONLY_FIELDS, exclude_none=True)
                for i in items
            ]

        payload: Dict[str, Any] = {
            "contactInfo": self.data.contact_info.model_dump(by_alias=True, exclude_none=True),
            "experience": strip(self.selected(CandidateKind.EXPERIENCE)),
            "education": strip(self.selected(CandidateKind.EDUCATION)),
            "projects": strip(self.selected(CandidateKind.PROJECTS)),
        }
        skills = self.selected(CandidateKind.SKILLS)
        if skills:
            payload["skills"] = {
                "format": "categorized",
                "categories": group_skills_by_category(skills),
            }
        return payload

