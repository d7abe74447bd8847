# resumekit/models/resume.py
"""
Resume records shared by stores and the sync layer.

ResumeListItem is the summary shown in lists. ResumeDocument is the full
record an editor works on. Both are plain dataclasses; only the content
and metadata inputs are validated with Pydantic.
"""

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from resumekit.models.content import ResumeData

DEFAULT_TITLE = "Untitled Resume"
DEFAULT_TEMPLATE_ID = "classic"
DEFAULT_ACCENT_COLOR = "#2563eb"

SLUG_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ResumeListItem:
    """
    Summary record for list display.

    Only id and title are interpreted by the sync layer; the remaining
    fields are carried through untouched.
    """

    id: str
    title: str
    template_id: str = DEFAULT_TEMPLATE_ID
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ResumeDocument:
    """Full resume as loaded by an editor."""

    id: str
    title: str
    template_id: str
    accent_color: str
    data: ResumeData = field(default_factory=ResumeData)
    updated_at: datetime | None = None
    is_public: bool = False
    public_slug: str | None = None


class PublicLinkInfo(BaseModel):
    """Public sharing state for one resume."""

    is_public: bool = Field(description="Whether the resume is publicly viewable")
    public_slug: str | None = Field(
        default=None, description="Slug of the public link (None while private)"
    )
    public_url: str | None = Field(
        default=None, description="Relative URL of the public page (None while private)"
    )


def generate_resume_id() -> str:
    """
    Generate a unique resume ID.

    Returns:
        32-character hex string (UUID4)
    """
    return uuid4().hex


def generate_public_slug(length: int = 8) -> str:
    """
    Generate a random public slug.

    Args:
        length: Number of characters (lowercase letters and digits)

    Returns:
        Random slug string
    """
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def public_link_info(
    is_public: bool, slug: str | None, path_prefix: str = "/r/"
) -> PublicLinkInfo:
    """Build PublicLinkInfo, hiding the slug and URL while the resume is private."""
    if is_public and slug:
        return PublicLinkInfo(
            is_public=True, public_slug=slug, public_url=f"{path_prefix}{slug}"
        )
    return PublicLinkInfo(is_public=is_public, public_slug=None, public_url=None)
