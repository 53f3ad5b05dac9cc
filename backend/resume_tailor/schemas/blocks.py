"""
Resume document block model.

A resume is a list of independent blocks (header, summary, experience, ...)
that can each be toggled on/off and reordered. ``ResumeBlock`` is a
discriminated union on ``type``; stored JSON uses camelCase keys.
"""
import enum
import json
import random
import string
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from ..exceptions import BlockNotFoundError


class BlockType(str, enum.Enum):
    HEADER = "header"
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    AWARDS = "awards"
    PUBLICATIONS = "publications"
    LANGUAGES = "languages"
    CUSTOM = "custom"


class DocumentModel(BaseModel):
    """Base for everything stored inside a resume document."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============================================================================
# Bullets and skills: plain string or {text, enabled}
# ============================================================================

class BulletPoint(DocumentModel):
    text: str
    enabled: Optional[bool] = None  # default true if undefined


class SkillItem(DocumentModel):
    text: str
    enabled: Optional[bool] = None  # default true if undefined


BulletInput = Union[str, BulletPoint]
SkillInput = Union[str, SkillItem]


def get_bullet_text(bullet: BulletInput) -> str:
    return bullet if isinstance(bullet, str) else bullet.text


def is_bullet_enabled(bullet: BulletInput) -> bool:
    return True if isinstance(bullet, str) else bullet.enabled is not False


def create_bullet(text: str, enabled: bool = True) -> BulletPoint:
    return BulletPoint(text=text, enabled=enabled)


def get_skill_text(skill: SkillInput) -> str:
    return skill if isinstance(skill, str) else skill.text


def is_skill_enabled(skill: SkillInput) -> bool:
    return True if isinstance(skill, str) else skill.enabled is not False


def create_skill(text: str, enabled: bool = True) -> SkillItem:
    return SkillItem(text=text, enabled=enabled)


def is_entry_enabled(entry: Any) -> bool:
    """Entries and skill categories are visible unless explicitly disabled."""
    return getattr(entry, "enabled", None) is not False


# ============================================================================
# Entries
# ============================================================================

class ExperienceEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    company: str
    position: str
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None  # None means "Present"
    bullets: List[BulletInput] = Field(default_factory=list)


class EducationEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    institution: str
    degree: str
    field: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[str] = None
    highlights: Optional[List[BulletInput]] = None


class SkillCategory(DocumentModel):
    name: str
    enabled: Optional[bool] = None
    skills: List[SkillInput] = Field(default_factory=list)


class ProjectEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    name: str
    description: Optional[str] = None
    technologies: Optional[List[str]] = None
    url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    bullets: List[BulletInput] = Field(default_factory=list)


class CertificationEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    name: str
    issuer: str
    date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_id: Optional[str] = None


class AwardEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    name: str
    issuer: str
    date: Optional[str] = None
    description: Optional[str] = None


class PublicationEntry(DocumentModel):
    id: str
    enabled: Optional[bool] = None
    title: str
    venue: Optional[str] = None  # Journal, conference, etc.
    date: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None


class LanguageEntry(DocumentModel):
    id: Optional[str] = None
    enabled: Optional[bool] = None
    language: str
    proficiency: Optional[Literal["Native", "Fluent", "Professional", "Conversational", "Basic"]] = None


# ============================================================================
# Block payloads
# ============================================================================

class HeaderData(DocumentModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class SummaryData(DocumentModel):
    text: str


class ExperienceData(DocumentModel):
    title: Optional[str] = None  # Section title override
    entries: List[ExperienceEntry] = Field(default_factory=list)


class EducationData(DocumentModel):
    title: Optional[str] = None
    entries: List[EducationEntry] = Field(default_factory=list)


class SkillsData(DocumentModel):
    title: Optional[str] = None
    format: Literal["list", "categorized", "inline"] = "inline"
    skills: Optional[List[SkillInput]] = None  # For 'list' or 'inline' format
    categories: Optional[List[SkillCategory]] = None  # For 'categorized' format


class ProjectsData(DocumentModel):
    title: Optional[str] = None
    entries: List[ProjectEntry] = Field(default_factory=list)


class CertificationsData(DocumentModel):
    title: Optional[str] = None
    entries: List[CertificationEntry] = Field(default_factory=list)


class AwardsData(DocumentModel):
    title: Optional[str] = None
    entries: List[AwardEntry] = Field(default_factory=list)


class PublicationsData(DocumentModel):
    title: Optional[str] = None
    entries: List[PublicationEntry] = Field(default_factory=list)


class LanguagesData(DocumentModel):
    title: Optional[str] = None
    entries: List[LanguageEntry] = Field(default_factory=list)


class CustomData(DocumentModel):
    title: str
    content: str  # Plain text content


# ============================================================================
# Blocks
# ============================================================================

class BaseBlock(DocumentModel):
    id: str
    enabled: bool = True
    order: int = 0


class HeaderBlock(BaseBlock):
    type: Literal["header"] = "header"
    data: HeaderData


class SummaryBlock(BaseBlock):
    type: Literal["summary"] = "summary"
    data: SummaryData


class ExperienceBlock(BaseBlock):
    type: Literal["experience"] = "experience"
    data: ExperienceData


class EducationBlock(BaseBlock):
    type: Literal["education"] = "education"
    data: EducationData


class SkillsBlock(BaseBlock):
    type: Literal["skills"] = "skills"
    data: SkillsData


class ProjectsBlock(BaseBlock):
    type: Literal["projects"] = "projects"
    data: ProjectsData


class CertificationsBlock(BaseBlock):
    type: Literal["certifications"] = "certifications"
    data: CertificationsData


class AwardsBlock(BaseBlock):
    type: Literal["awards"] = "awards"
    data: AwardsData


class PublicationsBlock(BaseBlock):
    type: Literal["publications"] = "publications"
    data: PublicationsData


class LanguagesBlock(BaseBlock):
    type: Literal["languages"] = "languages"
    data: LanguagesData


class CustomBlock(BaseBlock):
    type: Literal["custom"] = "custom"
    data: CustomData


ResumeBlock = Annotated[
    Union[
        HeaderBlock,
        SummaryBlock,
        ExperienceBlock,
        EducationBlock,
        SkillsBlock,
        ProjectsBlock,
        CertificationsBlock,
        AwardsBlock,
        PublicationsBlock,
        LanguagesBlock,
        CustomBlock,
    ],
    Field(discriminator="type"),
]

resume_block_adapter = TypeAdapter(ResumeBlock)


def block_type_of(block: BaseBlock) -> BlockType:
    return BlockType(block.type)


def data_model_for(block: BaseBlock) -> type:
    """Payload model class of a block (e.g. ExperienceData for an experience block)."""
    return type(block).model_fields["data"].annotation


class DocumentMetadata(DocumentModel):
    template_id: Optional[str] = None
    target_job: Optional[str] = None
    target_company: Optional[str] = None
    created_at: Optional[str] = None


class ResumeDocument(DocumentModel):
    """The full resume document: blocks plus optional metadata."""

    blocks: List[ResumeBlock] = Field(default_factory=list)
    metadata: Optional[DocumentMetadata] = None

    @field_validator("blocks")
    @classmethod
    def _unique_block_ids(cls, blocks):
        seen = set()
        for block in blocks:
            if block.id in seen:
                raise ValueError(f"Duplicate block id: {block.id}")
            seen.add(block.id)
        return blocks

    def get_block(self, block_id: str):
        for block in self.blocks:
            if block.id == block_id:
                return block
        raise BlockNotFoundError(block_id)

    def ordered_blocks(self) -> list:
        """Blocks by ``order`` ascending; ties keep document order."""
        return sorted(self.blocks, key=lambda b: b.order)

    def visible_blocks(self) -> list:
        """Ordered blocks that belong in rendered/exported output."""
        return [b for b in self.ordered_blocks() if b.enabled]

    @classmethod
    def from_content(cls, content: Union[str, Dict[str, Any]]) -> "ResumeDocument":
        """Rebuild a document from the stored ``content`` JSON."""
        if isinstance(content, str):
            content = json.loads(content)
        return cls.model_validate(content)

    def to_content(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ============================================================================
# Factories
# ============================================================================

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Short random base-36 id. Collisions are unlikely, not impossible."""
    return "".join(random.choices(_ID_ALPHABET, k=7))


def create_header_block(data: HeaderData) -> HeaderBlock:
    return HeaderBlock(id=generate_id(), enabled=True, order=0, data=data)


def create_summary_block(text: str) -> SummaryBlock:
    return SummaryBlock(id=generate_id(), enabled=True, order=1, data=SummaryData(text=text))


def create_experience_block(entries: List[ExperienceEntry]) -> ExperienceBlock:
    return ExperienceBlock(id=generate_id(), enabled=True, order=2, data=ExperienceData(entries=entries))


def create_education_block(entries: List[EducationEntry]) -> EducationBlock:
    return EducationBlock(id=generate_id(), enabled=True, order=3, data=EducationData(entries=entries))


def create_skills_block(skills: List[str], format: str = "inline") -> SkillsBlock:
    return SkillsBlock(id=generate_id(), enabled=True, order=4, data=SkillsData(format=format, skills=skills))


def create_projects_block(entries: List[ProjectEntry]) -> ProjectsBlock:
    return ProjectsBlock(id=generate_id(), enabled=True, order=5, data=ProjectsData(entries=entries))
