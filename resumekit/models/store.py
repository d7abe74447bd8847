# resumekit/models/store.py
"""
Resume store protocol definition.

Defines the abstract interface that both InMemoryResumeStore and
SQLiteResumeStore implement. A store instance acts for one signed-in user;
every failure is raised as RemoteError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from resumekit.models.resume import (
    DEFAULT_ACCENT_COLOR,
    DEFAULT_TEMPLATE_ID,
    DEFAULT_TITLE,
)

if TYPE_CHECKING:
    from datetime import datetime

    from resumekit.config.schema import ResumeKitConfig
    from resumekit.models.content import ResumeData, ResumeMetadata
    from resumekit.models.resume import PublicLinkInfo, ResumeDocument, ResumeListItem


class ResumeStore(ABC):
    """
    Abstract base class for remote resume storage.

    The store is the id authority: create() returns the canonical record.
    """

    @abstractmethod
    async def list_all(self) -> "list[ResumeListItem]":
        """
        List the caller's resumes.

        Returns:
            Summaries ordered by last update (newest first)

        Raises:
            RemoteError: If the caller is not signed in or the store fails
        """
        pass

    @abstractmethod
    async def create(self, title: str | None = None) -> "ResumeListItem":
        """
        Create a resume with default content.

        Args:
            title: Optional title (store default used when omitted)

        Returns:
            Canonical summary of the new resume

        Raises:
            RemoteError: If the resume limit is reached or the store fails
        """
        pass

    @abstractmethod
    async def delete(self, resume_id: str) -> None:
        """
        Delete a resume owned by the caller.

        Raises:
            RemoteError: If not found or not owned by the caller
        """
        pass

    @abstractmethod
    async def get(self, resume_id: str) -> "ResumeDocument":
        """
        Get a full resume owned by the caller.

        Raises:
            RemoteError: If not found or not owned by the caller
        """
        pass

    @abstractmethod
    async def update_content(self, resume_id: str, data: "ResumeData") -> "datetime":
        """
        Replace the content of a resume.

        Returns:
            New updated_at timestamp

        Raises:
            RemoteError: If validation fails, or not found / not owned
        """
        pass

    @abstractmethod
    async def update_metadata(self, resume_id: str, metadata: "ResumeMetadata") -> None:
        """
        Apply a partial metadata update (only provided fields change).

        Raises:
            RemoteError: If validation fails, or not found / not owned
        """
        pass

    @abstractmethod
    async def set_public(self, resume_id: str, is_public: bool) -> "PublicLinkInfo":
        """
        Enable or disable the public link of a resume.

        A slug is generated on first publish and kept when sharing is turned off.

        Raises:
            RemoteError: If not found / not owned, or no unique slug was found
        """
        pass

    @abstractmethod
    async def get_public_link(self, resume_id: str) -> "PublicLinkInfo":
        """Get the public link state of a resume owned by the caller."""
        pass

    @abstractmethod
    async def get_public(self, slug: str) -> "ResumeDocument | None":
        """
        Look up a public resume by slug (no sign-in required).

        Returns:
            The resume if the slug exists and is public, None otherwise
        """
        pass

    async def close(self) -> None:
        """Release store resources (no-op by default)."""



@dataclass(frozen=True)
class StorePolicy:
    """Limits and defaults shared by every store implementation."""

    max_resumes: int = 50
    default_title: str = DEFAULT_TITLE
    default_template_id: str = DEFAULT_TEMPLATE_ID
    default_accent_color: str = DEFAULT_ACCENT_COLOR
    slug_length: int = 8
    slug_attempts: int = 10
    path_prefix: str = "/r/"

    @classmethod
    def from_config(cls, config: "ResumeKitConfig") -> "StorePolicy":
        return cls(
            max_resumes=config.store.max_resumes,
            default_title=config.defaults.title,
            default_template_id=config.defaults.template_id,
            default_accent_color=config.defaults.accent_color,
            slug_length=config.sharing.slug_length,
            slug_attempts=config.sharing.slug_attempts,
            path_prefix=config.sharing.path_prefix,
        )
