# resumekit/validation/sanitize.py
"""
Input sanitization and validation utilities.

Stores call these before touching persistence so that bad input surfaces
as RemoteError(VALIDATION) rather than a Pydantic or database error.
"""

import logging
import re

from pydantic import ValidationError

from resumekit.models.content import ResumeData, ResumeMetadata
from resumekit.models.errors import ErrorCode, RemoteError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100


def _first_error(exc: ValidationError) -> str:
    """Render the first Pydantic error as 'field.path: message'."""
    err = exc.errors()[0]
    path = ".".join(str(part) for part in err.get("loc", ()))
    return f"{path}: {err['msg']}" if path else err["msg"]


def sanitize_title(title: str | None, default: str) -> str:
    """
    Sanitize a resume title.

    Strips whitespace and falls back to the default when empty.
    Truncates to MAX_TITLE_LENGTH if needed.

    Args:
        title: User-provided title (may be None)
        default: Title to use when none was given

    Returns:
        Cleaned title string
    """
    cleaned = (title or "").strip()
    if not cleaned:
        return default

    if len(cleaned) > MAX_TITLE_LENGTH:
        logger.warning(
            f"Title truncated from {len(cleaned)} to {MAX_TITLE_LENGTH} characters"
        )
        cleaned = cleaned[:MAX_TITLE_LENGTH]

    return cleaned


def sanitize_resume_id(resume_id: str) -> str:
    """
    Validate a resume ID.

    IDs must be alphanumeric with hyphens or underscores, 1-64 characters.

    Raises:
        RemoteError: If the ID format is invalid (reported as not found)
    """
    if not re.match(r"^[a-zA-Z0-9_-]{1,64}$", resume_id or ""):
        raise RemoteError("Resume not found", ErrorCode.NOT_FOUND)
    return resume_id


def sanitize_slug(slug: str) -> str | None:
    """Return the lowercased slug if it looks like a public slug, else None."""
    cleaned = (slug or "").strip().lower()
    if not re.match(r"^[a-z0-9]{4,32}$", cleaned):
        return None
    return cleaned


def validate_content(data: ResumeData | dict) -> ResumeData:
    """
    Validate resume content.

    Raises:
        RemoteError: With code VALIDATION if the content is invalid
    """
    try:
        if isinstance(data, ResumeData):
            return ResumeData.model_validate(data.model_dump())
        return ResumeData.model_validate(data)
    except ValidationError as e:
        raise RemoteError(_first_error(e), ErrorCode.VALIDATION) from e


def validate_metadata(metadata: ResumeMetadata | dict) -> ResumeMetadata:
    """
    Validate a partial metadata update.

    Raises:
        RemoteError: With code VALIDATION if any provided field is invalid
    """
    try:
        if isinstance(metadata, ResumeMetadata):
            return ResumeMetadata.model_validate(metadata.model_dump())
        return ResumeMetadata.model_validate(metadata)
    except ValidationError as e:
        raise RemoteError(_first_error(e), ErrorCode.VALIDATION) from e
