"""
Resume document rendering (plain text and PDF).

Each block type has one layout function that turns the block into styled
lines; disabled blocks, entries, bullets and skills never reach the output.
The PDF export uses ReportLab's platypus flowables.
"""
import io
import logging
from typing import Callable, Dict, List, Tuple
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from ..schemas.blocks import (
    BlockType, ResumeDocument, block_type_of,
    get_bullet_text, is_bullet_enabled, get_skill_text, is_skill_enabled, is_entry_enabled,
)

logger = logging.getLogger(__name__)

# (style, text) pairs; style is one of the keys in PDF_STYLES
Line = Tuple[str, str]

DEFAULT_TITLES = {
    BlockType.EXPERIENCE: "Experience",
    BlockType.EDUCATION: "Education",
    BlockType.SKILLS: "Skills",
    BlockType.PROJECTS: "Projects",
    BlockType.CERTIFICATIONS: "Certifications",
    BlockType.AWARDS: "Awards & Honors",
    BlockType.PUBLICATIONS: "Publications",
    BlockType.LANGUAGES: "Languages",
}


def _date_range(start, end) -> str:
    if not start and not end:
        return ""
    return f"{start or ''} - {end or 'Present'}".strip(" -")


def _join(*parts) -> str:
    return " | ".join(p for p in parts if p)


def _bullets(bullets) -> List[Line]:
    return [("bullet", get_bullet_text(b)) for b in bullets or [] if is_bullet_enabled(b)]


def _section(block) -> List[Line]:
    title = getattr(block.data, "title", None) or DEFAULT_TITLES[block_type_of(block)]
    return [("section", title)]


# ============================================================================
# Per-block layouts
# ============================================================================

def _layout_header(block) -> List[Line]:
    d = block.data
    contact = _join(d.email, d.phone, d.location, d.linkedin, d.github, d.website)
    lines = [("name", d.name)]
    if contact:
        lines.append(("contact", contact))
    return lines


def _layout_summary(block) -> List[Line]:
    return [("section", "Summary"), ("body", block.data.text)]


def _layout_experience(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if not is_entry_enabled(entry):
            continue
        lines.append(("entry", _join(entry.position, entry.company)))
        meta = _join(entry.location, _date_range(entry.start_date, entry.end_date))
        if meta:
            lines.append(("meta", meta))
        lines.extend(_bullets(entry.bullets))
    return lines


def _layout_education(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if not is_entry_enabled(entry):
            continue
        degree = f"{entry.degree} in {entry.field}" if entry.field else entry.degree
        lines.append(("entry", _join(degree, entry.institution)))
        gpa = f"GPA: {entry.gpa}" if entry.gpa else None
        meta = _join(entry.location, _date_range(entry.start_date, entry.end_date), gpa)
        if meta:
            lines.append(("meta", meta))
        lines.extend(_bullets(entry.highlights))
    return lines


def _layout_skills(block) -> List[Line]:
    d = block.data
    lines = _section(block)
    if d.format == "categorized" and d.categories:
        for category in d.categories:
            if not is_entry_enabled(category):
                continue
            names = [get_skill_text(s) for s in category.skills if is_skill_enabled(s)]
            if names:
                lines.append(("body", f"{category.name}: {', '.join(names)}"))
        return lines

    names = [get_skill_text(s) for s in d.skills or [] if is_skill_enabled(s)]
    if d.format == "list":
        lines.extend(("bullet", name) for name in names)
    elif names:
        lines.append(("body", ", ".join(names)))
    return lines


def _layout_projects(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if not is_entry_enabled(entry):
            continue
        lines.append(("entry", _join(entry.name, entry.url)))
        tech = ", ".join(entry.technologies or [])
        meta = _join(tech, _date_range(entry.start_date, entry.end_date))
        if meta:
            lines.append(("meta", meta))
        if entry.description:
            lines.append(("body", entry.description))
        lines.extend(_bullets(entry.bullets))
    return lines


def _layout_certifications(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if is_entry_enabled(entry):
            lines.append(("body", _join(entry.name, entry.issuer, entry.date, entry.credential_id)))
    return lines


def _layout_awards(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if not is_entry_enabled(entry):
            continue
        lines.append(("body", _join(entry.name, entry.issuer, entry.date)))
        if entry.description:
            lines.append(("meta", entry.description))
    return lines


def _layout_publications(block) -> List[Line]:
    lines = _section(block)
    for entry in block.data.entries:
        if is_entry_enabled(entry):
            lines.append(("body", _join(entry.title, entry.venue, entry.date, entry.url)))
    return lines


def _layout_languages(block) -> List[Line]:
    names = [
        f"{e.language} ({e.proficiency})" if e.proficiency else e.language
        for e in block.data.entries
        if is_entry_enabled(e)
    ]
    lines = _section(block)
    if names:
        lines.append(("body", ", ".join(names)))
    return lines


def _layout_custom(block) -> List[Line]:
    return [("section", block.data.title), ("body", block.data.content)]


BLOCK_LAYOUTS: Dict[BlockType, Callable] = {
    BlockType.HEADER: _layout_header,
    BlockType.SUMMARY: _layout_summary,
    BlockType.EXPERIENCE: _layout_experience,
    BlockType.EDUCATION: _layout_education,
    BlockType.SKILLS: _layout_skills,
    BlockType.PROJECTS: _layout_projects,
    BlockType.CERTIFICATIONS: _layout_certifications,
    BlockType.AWARDS: _layout_awards,
    BlockType.PUBLICATIONS: _layout_publications,
    BlockType.LANGUAGES: _layout_languages,
    BlockType.CUSTOM: _layout_custom,
}

_missing = set(BlockType) - set(BLOCK_LAYOUTS)
if _missing:
    raise RuntimeError(f"No layout for block types: {sorted(t.value for t in _missing)}")


def layout_document(document: ResumeDocument) -> List[Line]:
    lines: List[Line] = []
    for block in document.visible_blocks():
        lines.extend(BLOCK_LAYOUTS[block_type_of(block)](block))
    return lines


# ============================================================================
# Output formats
# ============================================================================

def render_text(document: ResumeDocument) -> str:
    """Plain-text export of the visible parts of the document."""
    out = []
    for style, text in layout_document(document):
        if style == "section":
            out.append("")
            out.append(text.upper())
        elif style == "bullet":
            out.append(f"- {text}")
        else:
            out.append(text)
    return "\n".join(out).strip()


PDF_STYLES = {
    "name": ParagraphStyle(name="Name", fontName="Helvetica-Bold", fontSize=18, leading=20, spaceAfter=4, alignment=TA_LEFT),
    "contact": ParagraphStyle(name="Contact", fontName="Helvetica", fontSize=9, leading=11, alignment=TA_LEFT),
    "section": ParagraphStyle(name="Section", fontName="Helvetica-Bold", fontSize=12, leading=14, spaceBefore=10, spaceAfter=4),
    "entry": ParagraphStyle(name="Entry", fontName="Helvetica-Bold", fontSize=10, leading=12, spaceBefore=4),
    "meta": ParagraphStyle(name="Meta", fontName="Helvetica-Oblique", fontSize=9, leading=11),
    "body": ParagraphStyle(name="Body", fontName="Helvetica", fontSize=10, leading=12),
    "bullet": ParagraphStyle(name="Bullet", fontName="Helvetica", fontSize=10, leading=12, leftIndent=15, firstLineIndent=-10),
}


def render_pdf(document: ResumeDocument) -> bytes:
    """Render the visible parts of the document to PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=LETTER,
        rightMargin=0.5 * inch, leftMargin=0.5 * inch,
        topMargin=0.5 * inch, bottomMargin=0.5 * inch,
    )

    story = []
    for style, text in layout_document(document):
        if not text:
            continue
        markup = f"• {escape(text)}" if style == "bullet" else escape(text)
        story.append(Paragraph(markup, PDF_STYLES[style]))
    if not story:
        story.append(Spacer(1, 1))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    logger.debug(f"Rendered resume PDF ({len(pdf_bytes)} bytes, {len(story)} paragraphs)")
    return pdf_bytes
