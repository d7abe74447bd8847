# resumekit/models/__init__.py
"""
Data models for resumekit.

Provides resume records, Pydantic content schemas and the store protocol.
Store implementations live in memory_store and sqlite_store.
"""

from resumekit.models.content import ResumeData, ResumeMetadata, default_resume_data
from resumekit.models.errors import ErrorCode, RemoteError
from resumekit.models.resume import (
    PublicLinkInfo,
    ResumeDocument,
    ResumeListItem,
    generate_public_slug,
    generate_resume_id,
)
from resumekit.models.store import ResumeStore, StorePolicy

__all__ = [
    # Records
    "ResumeListItem",
    "ResumeDocument",
    "PublicLinkInfo",
    "generate_resume_id",
    "generate_public_slug",
    # Content
    "ResumeData",
    "ResumeMetadata",
    "default_resume_data",
    # Errors
    "ErrorCode",
    "RemoteError",
    # Store protocol
    "ResumeStore",
    "StorePolicy",
]
