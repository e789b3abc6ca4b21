"""
Job posting schemas.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from jobmarket.models.job import ExperienceLevel, JobType


def to_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC already."""
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


def clean_skill_list(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return None
    return [s.strip() for s in v if s.strip()]


class JobCreate(BaseModel):
    """Schema for creating a job. Company falls back to the employer's profile."""

    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=20, max_length=5000)
    company: Optional[str] = Field(default=None, max_length=100)
    location: str = Field(min_length=1, max_length=255)
    salary: Optional[float] = Field(default=None, ge=0)
    job_type: JobType = JobType.FULL_TIME
    experience_level: Optional[ExperienceLevel] = None
    skills_required: List[str] = Field(default_factory=list)
    application_deadline: Optional[datetime] = None

    @field_validator("title", "description", "company", "location", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("application_deadline")
    @classmethod
    def deadline_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)

    @field_validator("skills_required")
    @classmethod
    def clean_skills(cls, v: List[str]) -> List[str]:
        return clean_skill_list(v)


class JobUpdate(BaseModel):
    """
    Partial update of a job.

    Only fields present in the body are applied. `salary`,
    `experience_level` and `application_deadline` may be set to null to
    clear them; the other fields cannot be cleared.
    """

    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, min_length=20, max_length=5000)
    company: Optional[str] = Field(default=None, min_length=1, max_length=100)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    salary: Optional[float] = Field(default=None, ge=0)
    job_type: Optional[JobType] = None
    experience_level: Optional[ExperienceLevel] = None
    skills_required: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("title", "description", "company", "location", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("application_deadline")
    @classmethod
    def deadline_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)

    @field_validator("skills_required")
    @classmethod
    def clean_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return clean_skill_list(v)


# Columns that are NOT NULL; a null in an update body leaves them unchanged
REQUIRED_JOB_FIELDS = frozenset({
    "title", "description", "company", "location", "job_type", "skills_required", "is_active",
})


class EmployerSummary(BaseModel):
    id: int
    company_name: Optional[str] = None
    profile_picture: Optional[str] = None
    website: Optional[str] = None

    class Config:
        from_attributes = True


class JobResponse(BaseModel):
    """Job posting returned by the API."""

    id: int
    title: str
    description: str
    company: str
    location: str
    salary: Optional[float] = None
    job_type: JobType
    experience_level: Optional[ExperienceLevel] = None
    skills_required: List[str] = Field(default_factory=list)
    application_deadline: Optional[datetime] = None
    is_active: bool
    employer_id: int
    employer: Optional[EmployerSummary] = None
    created_at: datetime
    updated_at: datetime
    is_owner: Optional[bool] = Field(
        default=None,
        description="Whether the signed-in caller posted this job (only set when authenticated)",
    )

    class Config:
        from_attributes = True
