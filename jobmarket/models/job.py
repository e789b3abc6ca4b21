"""
Job posting model.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobmarket.core.database import Base
from jobmarket.models.user import User, utc_now


class JobType(str, PyEnum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"
    TEMPORARY = "Temporary"


class ExperienceLevel(str, PyEnum):
    INTERNSHIP = "Internship"
    ENTRY_LEVEL = "Entry-level"
    ASSOCIATE = "Associate"
    MID_SENIOR = "Mid-senior level"
    DIRECTOR = "Director"
    EXECUTIVE = "Executive"


class Job(Base):
    """A job posting owned by the employer who created it."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    salary: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Enum values are stored rather than names ("Full-time", not "FULL_TIME")
    job_type: Mapped[JobType] = mapped_column(
        Enum(JobType, values_callable=lambda e: [m.value for m in e]),
        default=JobType.FULL_TIME,
        nullable=False,
    )
    experience_level: Mapped[Optional[ExperienceLevel]] = mapped_column(
        Enum(ExperienceLevel, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
    skills_required: Mapped[List[str]] = mapped_column(JSON, default=list)
    application_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Ownership
    employer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    employer: Mapped["User"] = relationship("User", lazy="joined")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )

    def __repr__(self) -> str:
        return f"<Job {self.title} @ {self.company}>"
