# resumekit/validation/__init__.py
"""Input validation and sanitization utilities."""

from .sanitize import (
    sanitize_resume_id,
    sanitize_slug,
    sanitize_title,
    validate_content,
    validate_metadata,
)

__all__ = [
    "sanitize_title",
    "sanitize_resume_id",
    "sanitize_slug",
    "validate_content",
    "validate_metadata",
]
