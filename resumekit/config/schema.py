# resumekit/config/schema.py
"""
Pydantic configuration models for resumekit.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StoreConfig(BaseModel):
    """Remote store configuration."""

    model_config = ConfigDict(extra="ignore")

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Store implementation (memory is for library and test use; the CLI rejects it)",
    )
    db_path: str | None = Field(
        default=None,
        description="SQLite database path (None = resumes.db in the user data dir)",
    )
    user_id: str | None = Field(
        default="local",
        description="Signed-in user the store acts for (None = signed out)",
    )
    max_resumes: int = Field(
        default=50, ge=1, le=1000, description="Maximum resumes per user"
    )


class DefaultsConfig(BaseModel):
    """Values a new resume starts with."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(default="Untitled Resume", min_length=1, max_length=100)
    template_id: Literal["classic", "modern", "minimal"] = Field(default="classic")
    accent_color: str = Field(default="#2563eb", pattern=r"^#[0-9a-fA-F]{6}$")


class EditorConfig(BaseModel):
    """Autosave and retry behaviour of the resume editor."""

    model_config = ConfigDict(extra="ignore")

    autosave_delay: float = Field(
        default=1.5, ge=0.0, description="Seconds of inactivity before autosave"
    )
    save_attempts: int = Field(
        default=3, ge=1, le=10, description="Save attempts before giving up"
    )
    retry_min_delay: float = Field(
        default=1.0, ge=0.0, description="Backoff before the second attempt (seconds)"
    )
    retry_max_delay: float = Field(
        default=4.0, ge=0.0, description="Upper bound for backoff between attempts"
    )


class SharingConfig(BaseModel):
    """Public link configuration."""

    model_config = ConfigDict(extra="ignore")

    slug_length: int = Field(default=8, ge=4, le=32)
    slug_attempts: int = Field(
        default=10, ge=1, le=100, description="Collision retries before failing"
    )
    path_prefix: str = Field(default="/r/", description="URL prefix of public pages")


class OutputConfig(BaseModel):
    """Logging output configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )
    log_format: Literal["json", "text"] = Field(
        default="json", description="Log record format on stderr"
    )


class ResumeKitConfig(BaseModel):
    """Root configuration for resumekit."""

    model_config = ConfigDict(extra="ignore")

    store: StoreConfig = Field(default_factory=StoreConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    sharing: SharingConfig = Field(default_factory=SharingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
