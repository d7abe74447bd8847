# resumekit/models/memory_store.py
"""
In-memory resume storage.

Records live in a ResumeDatabase that several user-scoped stores can share,
so ownership checks behave the same way as with SQLite.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from resumekit.models.content import ResumeData, ResumeMetadata, default_resume_data
from resumekit.models.errors import ErrorCode, RemoteError, forbidden, not_found, unauthorized
from resumekit.models.resume import (
    PublicLinkInfo,
    ResumeDocument,
    ResumeListItem,
    generate_public_slug,
    generate_resume_id,
    public_link_info,
)
from resumekit.models.store import ResumeStore, StorePolicy
from resumekit.validation.sanitize import (
    sanitize_resume_id,
    sanitize_slug,
    sanitize_title,
    validate_content,
    validate_metadata,
)

logger = logging.getLogger(__name__)


@dataclass
class StoredResume:
    """Internal row kept by ResumeDatabase."""

    id: str
    user_id: str
    title: str
    template_id: str
    accent_color: str
    data: ResumeData
    created_at: datetime
    updated_at: datetime
    is_public: bool = False
    public_slug: str | None = None

    def to_item(self) -> ResumeListItem:
        return ResumeListItem(
            id=self.id,
            title=self.title,
            template_id=self.template_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_document(self) -> ResumeDocument:
        return ResumeDocument(
            id=self.id,
            title=self.title,
            template_id=self.template_id,
            accent_color=self.accent_color,
            data=self.data.model_copy(deep=True),
            updated_at=self.updated_at,
            is_public=self.is_public,
            public_slug=self.public_slug,
        )


@dataclass
class ResumeDatabase:
    """Shared backing dict for InMemoryResumeStore instances."""

    rows: dict[str, StoredResume] = field(default_factory=dict)


class InMemoryResumeStore(ResumeStore):
    """
    Simple in-memory resume storage.

    Single-process only. Every call yields to the event loop (optionally
    after a simulated latency) so callers see real suspension points.
    """

    def __init__(
        self,
        user_id: str | None,
        database: ResumeDatabase | None = None,
        policy: StorePolicy | None = None,
        latency: float = 0.0,
    ) -> None:
        """
        Initialize store.

        Args:
            user_id: Signed-in user (None = signed out, every call fails)
            database: Shared backing data (fresh one if omitted)
            policy: Limits and defaults
            latency: Seconds each call sleeps before running
        """
        self._user_id = user_id
        self._db = database if database is not None else ResumeDatabase()
        self._policy = policy or StorePolicy()
        self._latency = latency
        logger.info(f"Initialized InMemoryResumeStore for user={user_id}")

    @property
    def database(self) -> ResumeDatabase:
        return self._db

    async def _enter(self) -> str:
        """Simulate the round trip and return the authenticated user id."""
        await asyncio.sleep(self._latency)
        if not self._user_id:
            raise unauthorized()
        return self._user_id

    def _owned(self, resume_id: str, user_id: str) -> StoredResume:
        row = self._db.rows.get(sanitize_resume_id(resume_id))
        if row is None:
            raise not_found()
        if row.user_id != user_id:
            raise forbidden()
        return row

    async def list_all(self) -> list[ResumeListItem]:
        user_id = await self._enter()
        rows = [r for r in reversed(list(self._db.rows.values())) if r.user_id == user_id]
        # Stable sort keeps newer inserts first on equal timestamps
        rows.sort(key=lambda r: r.updated_at, reverse=True)
        return [r.to_item() for r in rows]

    async def create(self, title: str | None = None) -> ResumeListItem:
        user_id = await self._enter()

        count = sum(1 for r in self._db.rows.values() if r.user_id == user_id)
        if count >= self._policy.max_resumes:
            raise RemoteError(
                f"Maximum resume limit reached ({self._policy.max_resumes})",
                ErrorCode.VALIDATION,
            )

        now = datetime.now(timezone.utc)
        row = StoredResume(
            id=generate_resume_id(),
            user_id=user_id,
            title=sanitize_title(title, self._policy.default_title),
            template_id=self._policy.default_template_id,
            accent_color=self._policy.default_accent_color,
            data=default_resume_data(),
            created_at=now,
            updated_at=now,
        )
        self._db.rows[row.id] = row
        logger.info(f"Created resume {row.id} for user {user_id}")
        return row.to_item()

    async def delete(self, resume_id: str) -> None:
        user_id = await self._enter()
        row = self._owned(resume_id, user_id)
        del self._db.rows[row.id]
        logger.info(f"Deleted resume {row.id}")

    async def get(self, resume_id: str) -> ResumeDocument:
        user_id = await self._enter()
        return self._owned(resume_id, user_id).to_document()

    async def update_content(self, resume_id: str, data: ResumeData) -> datetime:
        user_id = await self._enter()
        row = self._owned(resume_id, user_id)
        validated = validate_content(data)

        row.data = validated
        row.updated_at = datetime.now(timezone.utc)
        logger.info(f"Updated content of resume {row.id}")
        return row.updated_at

    async def update_metadata(self, resume_id: str, metadata: ResumeMetadata) -> None:
        user_id = await self._enter()
        row = self._owned(resume_id, user_id)
        changes = validate_metadata(metadata).changes()

        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)
        logger.info(f"Updated metadata of resume {row.id}: {list(changes)}")

    async def set_public(self, resume_id: str, is_public: bool) -> PublicLinkInfo:
        user_id = await self._enter()
        row = self._owned(resume_id, user_id)

        slug = row.public_slug
        if is_public and not slug:
            taken = {r.public_slug for r in self._db.rows.values() if r.public_slug}
            for _ in range(self._policy.slug_attempts):
                candidate = generate_public_slug(self._policy.slug_length)
                if candidate not in taken:
                    slug = candidate
                    break
            else:
                raise RemoteError("Could not generate unique link", ErrorCode.SERVER)

        # The slug survives unpublishing so re-sharing keeps the same URL
        self._db.rows[row.id] = replace(row, is_public=is_public, public_slug=slug)
        return public_link_info(is_public, slug, self._policy.path_prefix)

    async def get_public_link(self, resume_id: str) -> PublicLinkInfo:
        user_id = await self._enter()
        row = self._owned(resume_id, user_id)
        return public_link_info(row.is_public, row.public_slug, self._policy.path_prefix)

    async def get_public(self, slug: str) -> ResumeDocument | None:
        await asyncio.sleep(self._latency)
        cleaned = sanitize_slug(slug)
        if cleaned is None:
            return None
        for row in self._db.rows.values():
            if row.public_slug == cleaned and row.is_public:
                return row.to_document()
        return None
