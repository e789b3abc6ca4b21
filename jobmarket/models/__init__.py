"""
SQLAlchemy models.
"""

from jobmarket.models.user import User, UserRole, SessionRecord, utc_now
from jobmarket.models.job import Job, JobType, ExperienceLevel

__all__ = [
    "User",
    "UserRole",
    "SessionRecord",
    "utc_now",
    "Job",
    "JobType",
    "ExperienceLevel",
]
