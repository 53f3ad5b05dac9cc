"""
Resume Parser Service using PyMuPDF for text extraction and Gemini for
structured data extraction.
"""
import asyncio
import json
import logging
from typing import Any, Dict

import fitz  # PyMuPDF
from google import genai

from ..config import get_settings
from ..exceptions import DocumentParseError

logger = logging.getLogger(__name__)

settings = get_settings()

# Lazy initialization of Gemini client
_genai_client = None


def get_genai_client():
    """Get the Gemini client, initializing lazily if needed."""
    global _genai_client
    if _genai_client is None:
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set - resume parsing disabled")
            return None
        _genai_client = genai.Client(api_key=settings.gemini_api_key)
    return _genai_client


RESUME_PARSER_PROMPT = """You are an expert resume parser. Extract structured data from the resume text below.

## RESUME TEXT
{resume_text}

## YOUR TASK
Parse the resume and return a JSON object with the following structure. Extract ALL information - do not skip any details.

{{
  "contactInfo": {{
    "name": "Full Name",
    "email": "email@example.com",
    "phone": "(123) 456-7890",
    "location": "City, State",
    "linkedin": "linkedin.com/in/username",
    "github": "github.com/username",
    "website": "example.com"
  }},
  "experience": [
    {{
      "company": "Company Name",
      "position": "Job Title",
      "location": "City, State",
      "startDate": "Month Year",
      "endDate": "Month Year, omitted if current",
      "bullets": ["One achievement per entry"]
    }}
  ],
  "education": [
    {{
      "institution": "University Name",
      "degree": "B.S.",
      "field": "Computer Science",
      "location": "City, State",
      "startDate": "Year",
      "endDate": "Year or Expected Year",
      "gpa": "3.8",
      "highlights": ["Dean's List"]
    }}
  ],
  "skills": {{
    "format": "categorized",
    "categories": [
      {{ "name": "Languages", "skills": ["Python", "JavaScript"] }},
      {{ "name": "Frameworks", "skills": ["React", "FastAPI"] }},
      {{ "name": "Tools", "skills": ["Git", "Docker"] }}
    ]
  }},
  "projects": [
    {{
      "name": "Project Name",
      "description": "Brief description",
      "technologies": ["React", "Node.js"],
      "url": "github.com/project",
      "startDate": "Month Year",
      "endDate": "Month Year",
      "bullets": ["What was built or achieved"]
    }}
  ]
}}

## RULES
1. Extract ALL experience entries, education entries and projects
2. Put each bullet point in its own array element
3. Categorize skills (Languages, Frameworks, Tools, ...)
4. If a field is not present, omit it (no nulls or empty strings)
5. Keep date formats consistent (e.g. "Jan 2024")
6. Return ONLY valid JSON, no markdown code blocks
"""


# ============================================================================
# Text extraction
# ============================================================================

def pdf_to_text(pdf_bytes: bytes) -> str:
    """Concatenate the text layer of every page."""
    pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        return "\n".join(page.get_text() for page in pdf_document).strip()
    finally:
        pdf_document.close()


def strip_code_fences(response_text: str) -> str:
    response_text = response_text.strip()
    if response_text.startswith("```json"):
        response_text = response_text[7:]
    if response_text.startswith("```"):
        response_text = response_text[3:]
    if response_text.endswith("```"):
        response_text = response_text[:-3]
    return response_text.strip()


class GeminiResumeParser:
    """Import pipeline parser: PDF/TXT → text → structured JSON."""

    async def extract_text(self, document) -> str:
        try:
            if document.is_pdf:
                text = await asyncio.to_thread(pdf_to_text, document.content)
            else:
                text = document.content.decode("utf-8", errors="replace").strip()
        except Exception as e:
            raise DocumentParseError("Could not read the uploaded file", cause=e)

        if not text:
            raise DocumentParseError(
                "No text found in the resume. Scanned PDFs are not supported.",
                details={"file_name": document.file_name}
            )
        logger.debug(f"Extracted {len(text)} characters from {document.file_name}")
        return text

    async def parse_structured(self, text: str) -> Dict[str, Any]:
        return await generate_json(
            RESUME_PARSER_PROMPT.format(resume_text=text),
            error_message="Failed to parse resume",
        )


# ============================================================================
# Structured generation
# ============================================================================

async def generate_json(
    prompt: str,
    error_message: str = "Failed to generate a response",
    temperature: float = 0.1,
    max_output_tokens: int = 16384,
) -> Dict[str, Any]:
    """
    Run a prompt through Gemini in JSON mode and return the decoded object.

    Raises:
        DocumentParseError with ``error_message`` when Gemini is not
        configured, the call fails, or the reply is not a JSON object
    """
    client = get_genai_client()
    if not client:
        raise DocumentParseError("Gemini API not configured. Please set GEMINI_API_KEY.")

    try:
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=settings.gemini_model,
            contents=[prompt],
            config=genai.types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
                response_mime_type="application/json",
            ),
        )
    except Exception as e:
        raise DocumentParseError(error_message, cause=e)

    response_text = strip_code_fences(response.text or "")
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}. Raw response: {response_text[:500]}...")
        raise DocumentParseError(error_message, cause=e)

    if not isinstance(parsed, dict):
        raise DocumentParseError(error_message, details={"type": type(parsed).__name__})
    return parsed
