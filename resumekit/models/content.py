# resumekit/models/content.py
"""
Pydantic models for resume content and metadata.

Content follows the JSON Resume layout (basics, work, education, skills,
languages, projects). Metadata is the small set of fields shown in lists
and edited separately from the content.
"""

import re
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://\S+$")

TemplateId = Literal["classic", "modern", "minimal"]
SkillLevel = Literal["Beginner", "Intermediate", "Advanced", "Expert"]


def _check_url(value: str | None) -> str | None:
    """Allow empty strings and None, otherwise require an http(s) URL."""
    if value and not _URL_RE.match(value):
        raise ValueError(f"Invalid URL: {value}")
    return value


OptionalUrl = Annotated[str | None, AfterValidator(_check_url)]


class Location(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country_code: str | None = Field(default=None, max_length=10)


class Profile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    network: str = Field(min_length=1, max_length=50)
    username: str | None = Field(default=None, max_length=100)
    url: Annotated[str, AfterValidator(_check_url)]


class ResumeBasics(BaseModel):
    """Personal details at the top of a resume."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", max_length=100)
    label: str | None = Field(default="", max_length=100)
    email: str = ""
    phone: str | None = Field(default="", max_length=30)
    url: OptionalUrl = ""
    summary: str | None = Field(default="", max_length=2000)
    image: OptionalUrl = ""
    location: Location | None = Field(default_factory=Location)
    profiles: list[Profile] = Field(default_factory=list, max_length=10)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if value and not _EMAIL_RE.match(value):
            raise ValueError("Invalid email")
        return value


class WorkEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    company: str = Field(min_length=1, max_length=100)
    position: str = Field(min_length=1, max_length=100)
    url: OptionalUrl = ""
    start_date: str
    end_date: str | None = None  # None means "Present"
    summary: str | None = Field(default=None, max_length=500)
    highlights: list[str] = Field(default_factory=list, max_length=10)


class EducationEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    institution: str = Field(min_length=1, max_length=100)
    url: OptionalUrl = ""
    area: str = Field(default="", max_length=100)
    study_type: str = Field(default="", max_length=50)
    start_date: str
    end_date: str | None = None
    score: str | None = Field(default=None, max_length=20)
    courses: list[str] = Field(default_factory=list, max_length=20)


class SkillEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = Field(min_length=1, max_length=50)
    level: SkillLevel | None = None
    keywords: list[str] = Field(default_factory=list, max_length=20)


class LanguageEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    language: str = Field(min_length=1, max_length=50)
    fluency: str = Field(default="", max_length=50)


class ProjectEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    highlights: list[str] = Field(default_factory=list, max_length=10)
    keywords: list[str] = Field(default_factory=list, max_length=20)
    start_date: str | None = None
    end_date: str | None = None
    url: OptionalUrl = ""


class ResumeData(BaseModel):
    """Complete resume content."""

    model_config = ConfigDict(extra="ignore")

    basics: ResumeBasics = Field(default_factory=ResumeBasics)
    work: list[WorkEntry] = Field(default_factory=list, max_length=20)
    education: list[EducationEntry] = Field(default_factory=list, max_length=10)
    skills: list[SkillEntry] = Field(default_factory=list, max_length=50)
    languages: list[LanguageEntry] = Field(default_factory=list, max_length=10)
    projects: list[ProjectEntry] = Field(default_factory=list, max_length=20)


class ResumeMetadata(BaseModel):
    """
    Partial metadata update.

    Fields left as None are not changed by update_metadata().
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=100)
    template_id: TemplateId | None = None
    accent_color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")

    def changes(self) -> dict:
        """Return only the fields that were provided."""
        return self.model_dump(exclude_none=True)


def default_resume_data() -> ResumeData:
    """Return the empty content a new resume starts with."""
    return ResumeData()
