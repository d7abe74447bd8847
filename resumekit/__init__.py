# resumekit/__init__.py
"""
resumekit: resume storage and client-side list synchronization.

Keeps a local view of a user's resumes consistent with a remote store
using optimistic updates with rollback.
"""

__version__ = "0.1.0"
