"""Resume Tailor API - profile import, duplicate review and tailored resume documents."""

__version__ = "1.0.0"
