"""
Authentication and Authorization module.

Provides:
- JWT access/refresh token signing and verification
- Password hashing (Argon2id)
- Revocable refresh-token sessions
- Authentication, role and ownership dependencies
"""

from jobmarket.auth.jwt import (
    TokenCodec,
    TokenClaims,
    IssuedToken,
    TokenError,
    InvalidSignature,
    TokenExpired,
)
from jobmarket.auth.password import PasswordHasher
from jobmarket.auth.sessions import SessionStore
from jobmarket.auth.service import AuthService, AuthResult, RefreshResult, TokenPair
from jobmarket.auth.dependencies import (
    Identity,
    RequestContext,
    authenticate,
    optional_authenticate,
    RoleChecker,
    OwnershipChecker,
    require_applicant,
    require_employer,
    get_auth_service,
)

__all__ = [
    # JWT
    "TokenCodec",
    "TokenClaims",
    "IssuedToken",
    "TokenError",
    "InvalidSignature",
    "TokenExpired",
    # Password
    "PasswordHasher",
    # Sessions
    "SessionStore",
    "AuthService",
    "AuthResult",
    "RefreshResult",
    "TokenPair",
    # Dependencies
    "Identity",
    "RequestContext",
    "authenticate",
    "optional_authenticate",
    "RoleChecker",
    "OwnershipChecker",
    "require_applicant",
    "require_employer",
    "get_auth_service",
]
