"""
User and session models.

Security considerations:
- Passwords are hashed with Argon2id (see jobmarket.auth.password)
- Each issued refresh token is persisted as a SessionRecord owned by its
  user; revoking a session means deleting the row
- All timestamps use UTC
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobmarket.core.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, PyEnum):
    """Marketplace roles. A user's role is fixed at registration."""
    APPLICANT = "applicant"
    EMPLOYER = "employer"


class User(Base):
    """
    User model with secure authentication.

    Security features:
    - Argon2id password hashing
    - Revocable refresh-token sessions
    - Soft deactivation (`is_active`)
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.APPLICANT)

    # Profile
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Applicant fields
    resume: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    skills: Mapped[List[str]] = mapped_column(JSON, default=list)
    experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Employer fields
    company_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    company_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )

    # Sessions are never loaded implicitly; SessionStore queries them directly
    sessions: Mapped[List["SessionRecord"]] = relationship(
        "SessionRecord",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionRecord.id",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class SessionRecord(Base):
    """
    One issued, still revocable refresh token.

    The token value is written once and never updated; records are only
    inserted or deleted. The autoincrement id preserves issue order.
    """

    __tablename__ = "user_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<SessionRecord user={self.user_id} expires={self.expires_at:%Y-%m-%d %H:%M}>"
