# resumekit/models/sqlite_store.py
"""
SQLite-backed resume persistence.

Provides async CRUD operations with WAL mode and IMMEDIATE transactions
for concurrent access safety.
"""

import json
import logging
from datetime import datetime, timezone

import aiosqlite

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
from resumekit.models.schema import init_db
from resumekit.models.store import ResumeStore, StorePolicy
from resumekit.validation.sanitize import (
    sanitize_resume_id,
    sanitize_slug,
    sanitize_title,
    validate_content,
    validate_metadata,
)

logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = "id, title, template_id, created_at, updated_at"


class SQLiteResumeStore(ResumeStore):
    """
    Async SQLite-backed resume storage.

    Features:
        - WAL mode for concurrent reads/writes
        - IMMEDIATE transactions for write safety
        - Ownership checks inside the write transaction
        - No persistent connections (avoids resource leaks)
    """

    def __init__(
        self, db_path: str, user_id: str | None, policy: StorePolicy | None = None
    ) -> None:
        """
        Initialize SQLite resume store.

        Args:
            db_path: Path to SQLite database file
            user_id: Signed-in user (None = signed out, every call fails)
            policy: Limits and defaults
        """
        self._db_path = db_path
        self._user_id = user_id
        self._policy = policy or StorePolicy()
        logger.info(f"Created SQLiteResumeStore with path: {db_path}")

    async def initialize(self) -> None:
        """Initialize database schema (runs migrations)."""
        await init_db(self._db_path)

    def _require_user(self) -> str:
        if not self._user_id:
            raise unauthorized()
        return self._user_id

    async def _verify_ownership(self, db: aiosqlite.Connection, resume_id: str, user_id: str) -> None:
        """
        Raise unless resume_id exists and belongs to user_id.

        Raises:
            RemoteError: NOT_FOUND or FORBIDDEN
        """
        cursor = await db.execute(
            "SELECT user_id FROM resumes WHERE id = ?", (sanitize_resume_id(resume_id),)
        )
        row = await cursor.fetchone()
        if not row:
            raise not_found()
        if row[0] != user_id:
            raise forbidden()

    async def list_all(self) -> list[ResumeListItem]:
        """
        List the caller's resumes.

        Returns:
            Summaries ordered by updated_at (newest first)
        """
        user_id = self._require_user()
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SUMMARY_COLUMNS} FROM resumes WHERE user_id = ? "
                "ORDER BY updated_at DESC, rowid DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    async def create(self, title: str | None = None) -> ResumeListItem:
        """
        Create a resume with default content and metadata.

        Raises:
            RemoteError: VALIDATION when the per-user limit is reached
        """
        user_id = self._require_user()
        now = datetime.now(timezone.utc).isoformat()
        resume_id = generate_resume_id()
        clean_title = sanitize_title(title, self._policy.default_title)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM resumes WHERE user_id = ?", (user_id,)
                )
                (count,) = await cursor.fetchone()
                if count >= self._policy.max_resumes:
                    raise RemoteError(
                        f"Maximum resume limit reached ({self._policy.max_resumes})",
                        ErrorCode.VALIDATION,
                    )

                await db.execute(
                    """
                    INSERT INTO resumes (
                        id, user_id, title, template_id, accent_color,
                        data, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        resume_id,
                        user_id,
                        clean_title,
                        self._policy.default_template_id,
                        self._policy.default_accent_color,
                        default_resume_data().model_dump_json(),
                        now,
                        now,
                    ),
                )
                await db.commit()
                logger.info(f"Created resume {resume_id} for user {user_id}")

            except Exception:
                await db.rollback()
                raise

        return ResumeListItem(
            id=resume_id,
            title=clean_title,
            template_id=self._policy.default_template_id,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    async def delete(self, resume_id: str) -> None:
        """Delete a resume after verifying ownership."""
        user_id = self._require_user()
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                await self._verify_ownership(db, resume_id, user_id)
                await db.execute("DELETE FROM resumes WHERE id = ?", (resume_id,))
                await db.commit()
                logger.info(f"Deleted resume {resume_id}")

            except Exception:
                await db.rollback()
                raise

    async def get(self, resume_id: str) -> ResumeDocument:
        """Get a full resume owned by the caller."""
        user_id = self._require_user()
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            await self._verify_ownership(db, resume_id, user_id)
            cursor = await db.execute("SELECT * FROM resumes WHERE id = ?", (resume_id,))
            row = await cursor.fetchone()
            return self._row_to_document(row)

    async def update_content(self, resume_id: str, data: ResumeData) -> datetime:
        """
        Replace resume content.

        Returns:
            New updated_at timestamp
        """
        user_id = self._require_user()
        validated = validate_content(data)
        updated_at = datetime.now(timezone.utc)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                await self._verify_ownership(db, resume_id, user_id)
                await db.execute(
                    "UPDATE resumes SET data = ?, updated_at = ? WHERE id = ?",
                    (validated.model_dump_json(), updated_at.isoformat(), resume_id),
                )
                await db.commit()
                logger.info(f"Updated content of resume {resume_id}")

            except Exception:
                await db.rollback()
                raise

        return updated_at

    async def update_metadata(self, resume_id: str, metadata: ResumeMetadata) -> None:
        """Apply a partial metadata update (only provided fields change)."""
        user_id = self._require_user()
        changes = validate_metadata(metadata).changes()

        # Build SET clause; column names come from the validated model only
        set_parts = [f"{key} = ?" for key in changes]
        values: list = list(changes.values())
        set_parts.append("updated_at = ?")
        values.append(datetime.now(timezone.utc).isoformat())
        values.append(resume_id)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                await self._verify_ownership(db, resume_id, user_id)
                await db.execute(
                    f"UPDATE resumes SET {', '.join(set_parts)} WHERE id = ?", values
                )
                await db.commit()
                logger.info(f"Updated metadata of resume {resume_id}: {list(changes)}")

            except Exception:
                await db.rollback()
                raise

    async def set_public(self, resume_id: str, is_public: bool) -> PublicLinkInfo:
        """
        Enable or disable the public link.

        Raises:
            RemoteError: SERVER if no free slug was found in slug_attempts tries
        """
        user_id = self._require_user()
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                await self._verify_ownership(db, resume_id, user_id)
                cursor = await db.execute(
                    "SELECT public_slug FROM resumes WHERE id = ?", (resume_id,)
                )
                (slug,) = await cursor.fetchone()

                if is_public and not slug:
                    slug = await self._free_slug(db)

                # Keep the slug even when disabled
                await db.execute(
                    "UPDATE resumes SET is_public = ?, public_slug = ? WHERE id = ?",
                    (1 if is_public else 0, slug, resume_id),
                )
                await db.commit()
                logger.info(f"Resume {resume_id} public={is_public}")

            except Exception:
                await db.rollback()
                raise

        return public_link_info(is_public, slug, self._policy.path_prefix)

    async def _free_slug(self, db: aiosqlite.Connection) -> str:
        for attempt in range(self._policy.slug_attempts):
            candidate = generate_public_slug(self._policy.slug_length)
            cursor = await db.execute(
                "SELECT id FROM resumes WHERE public_slug = ?", (candidate,)
            )
            if not await cursor.fetchone():
                return candidate
            logger.warning(f"Public slug collision on attempt {attempt + 1}")
        raise RemoteError("Could not generate unique link", ErrorCode.SERVER)

    async def get_public_link(self, resume_id: str) -> PublicLinkInfo:
        user_id = self._require_user()
        async with aiosqlite.connect(self._db_path) as db:
            await self._verify_ownership(db, resume_id, user_id)
            cursor = await db.execute(
                "SELECT is_public, public_slug FROM resumes WHERE id = ?", (resume_id,)
            )
            is_public, slug = await cursor.fetchone()
            return public_link_info(bool(is_public), slug, self._policy.path_prefix)

    async def get_public(self, slug: str) -> ResumeDocument | None:
        cleaned = sanitize_slug(slug)
        if cleaned is None:
            return None

        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM resumes WHERE public_slug = ? AND is_public = 1", (cleaned,)
            )
            row = await cursor.fetchone()
            return self._row_to_document(row) if row else None

    async def close(self) -> None:
        """
        Checkpoint WAL and close database.

        Truncates WAL file to avoid unbounded growth.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                logger.info("WAL checkpoint completed")
        except Exception as e:
            logger.warning(f"WAL checkpoint failed: {e}")

    def _row_to_item(self, row: aiosqlite.Row) -> ResumeListItem:
        return ResumeListItem(
            id=row["id"],
            title=row["title"],
            template_id=row["template_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_document(self, row: aiosqlite.Row) -> ResumeDocument:
        """
        Convert SQLite row to ResumeDocument.

        Stored content that no longer validates falls back to empty content
        rather than failing the load.
        """
        raw = json.loads(row["data"]) if row["data"] else {}
        try:
            data = ResumeData.model_validate(raw)
        except ValueError as e:
            logger.warning(f"Resume {row['id']} has invalid stored content: {e}")
            data = default_resume_data()

        return ResumeDocument(
            id=row["id"],
            title=row["title"],
            template_id=row["template_id"],
            accent_color=row["accent_color"],
            data=data,
            updated_at=datetime.fromisoformat(row["updated_at"]),
            is_public=bool(row["is_public"]),
            public_slug=row["public_slug"],
        )
