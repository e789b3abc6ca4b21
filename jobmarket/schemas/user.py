"""
User profile schemas.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

from jobmarket.models.user import User, UserRole
from jobmarket.schemas.auth import check_password_strength, check_phone


class ProfileUpdate(BaseModel):
    """
    Partial profile update.

    Which fields are applied depends on the caller's role; the endpoint
    filters them (see ROLE_PROFILE_FIELDS).
    """

    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    phone: Optional[str] = None

    # Applicant
    skills: Optional[Union[List[str], str]] = None
    experience: Optional[int] = Field(default=None, ge=0, le=100)

    # Employer
    company_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    company_description: Optional[str] = Field(default=None, max_length=500)
    website: Optional[HttpUrl] = None

    @field_validator("first_name", "last_name", "company_name", "company_description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return check_phone(v)

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: Optional[Union[List[str], str]]) -> Optional[List[str]]:
        """Accept a list or a comma-separated string; drop blank entries."""
        if v is None:
            return None
        items = v.split(",") if isinstance(v, str) else v
        skills = [s.strip() for s in items if s.strip()]
        if not skills:
            raise ValueError("Skills must be a non-empty array of strings or a comma-separated string")
        return skills


ROLE_PROFILE_FIELDS = {
    UserRole.APPLICANT: {"first_name", "last_name", "phone", "skills", "experience"},
    UserRole.EMPLOYER: {"first_name", "last_name", "phone", "company_name", "company_description", "website"},
}


class PasswordChangeRequest(BaseModel):
    """Request to change password."""

    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(max_length=128)
    confirm_password: str = Field(max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChangeRequest":
        if self.confirm_password != self.new_password:
            raise ValueError("Password confirmation does not match new password")
        return self


def user_to_profile(user: User) -> dict[str, Any]:
    """Serialize a user for self-view, with the fields of its role only."""
    profile: dict[str, Any] = {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role.value,
        "phone": user.phone,
        "profile_picture": user.profile_picture,
        "is_email_verified": user.is_email_verified,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }

    if user.role == UserRole.APPLICANT:
        profile.update({
            "resume": user.resume,
            "skills": user.skills or [],
            "experience": user.experience,
        })
    elif user.role == UserRole.EMPLOYER:
        profile.update({
            "company_name": user.company_name,
            "company_description": user.company_description,
            "website": user.website,
        })

    return profile
