"""
Logging configuration for the API.

Every module logs through ``logging.getLogger(__name__)``; this sets up the
single stream handler and quiets the chatty HTTP/PDF libraries.
"""
import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the application.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "resume_tailor"):
        logging.getLogger(logger_name).setLevel(numeric_level)

    if level.upper() != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("google_genai").setLevel(logging.WARNING)
