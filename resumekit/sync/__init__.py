# resumekit/sync/__init__.py
"""
Client-side synchronization of resumes with a remote store.

Exports:
    - QueryCache: Shared keyed cache with subscribers
    - ResumeListQuery: The resume list view over the cache
    - ResumeListCoordinator: Optimistic create/delete with rollback
    - ResumeEditor: Single-resume editing with debounced autosave
    - Notifier implementations
"""

from resumekit.sync.cache import RESUMES_KEY, QueryCache, QueryState, ResumeListQuery
from resumekit.sync.coordinator import (
    MutationKind,
    PendingMutation,
    ResumeListCoordinator,
    editor_path,
)
from resumekit.sync.editor import ResumeEditor, SaveStatus, resume_key
from resumekit.sync.notifications import (
    LoggingNotifier,
    Notification,
    NotificationLevel,
    Notifier,
    RecordingNotifier,
)

__all__ = [
    "RESUMES_KEY",
    "QueryCache",
    "QueryState",
    "ResumeListQuery",
    "MutationKind",
    "PendingMutation",
    "ResumeListCoordinator",
    "editor_path",
    "ResumeEditor",
    "SaveStatus",
    "resume_key",
    "Notifier",
    "Notification",
    "NotificationLevel",
    "LoggingNotifier",
    "RecordingNotifier",
]
