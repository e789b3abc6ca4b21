"""
JWT Token handling with security best practices.

Security measures:
- Short-lived access tokens (30 min default)
- Longer-lived refresh tokens (7 days)
- Distinct signing secret per token class
- Token type validation
- Issuer and audience validation
- Unique token ID so no two issued tokens share a value
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from jobmarket.core.config import Settings

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Base exception for token errors."""
    pass


class InvalidSignature(TokenError):
    """Token is malformed, tampered with, or of the wrong type."""
    pass


class TokenExpired(TokenError):
    """Token signature is valid but its expiry has passed."""
    pass


class TokenClaims(BaseModel):
    """Decoded JWT claims."""
    user_id: str                      # "sub"
    email: str
    role: str
    token_type: str                   # "access" or "refresh"
    issued_at: datetime               # "iat"
    expires_at: datetime              # "exp"
    jti: Optional[str] = None         # JWT ID (unique per token)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenClaims":
        return cls(
            user_id=str(payload["sub"]),
            email=payload["email"],
            role=payload["role"],
            token_type=payload["type"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            jti=payload.get("jti"),
        )


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and the expiry embedded in it."""
    token: str
    expires_at: datetime


class TokenCodec:
    """
    Signs, verifies and decodes access and refresh tokens.

    Stateless apart from its configuration, so one instance is shared by
    all requests.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=30),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "jobmarket-api",
        audience: str = "jobmarket-client",
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self.algorithm = algorithm
        self.ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
        self.issuer = issuer
        self.audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            access_secret=settings.jwt_access_secret,
            refresh_secret=settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            issuer=settings.token_issuer,
            audience=settings.token_audience,
        )

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.ttls[ACCESS].total_seconds())

    # -------------------------------------------------------------------------
    # Signing
    # -------------------------------------------------------------------------

    def _sign(
        self,
        token_type: str,
        user_id: Any,
        email: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> IssuedToken:
        # JWT timestamps have one-second resolution; keep the returned
        # expiry identical to the one embedded in the token.
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expire = now + (expires_delta if expires_delta is not None else self.ttls[token_type])

        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "type": token_type,
            "iat": now,
            "exp": expire,
            "iss": self.issuer,
            "aud": self.audience,
            "jti": secrets.token_urlsafe(16),
        }

        token = jwt.encode(payload, self._secrets[token_type], algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expire)

    def sign_access(
        self,
        user_id: Any,
        email: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> IssuedToken:
        """Create a short-lived access token."""
        return self._sign(ACCESS, user_id, email, role, expires_delta)

    def sign_refresh(
        self,
        user_id: Any,
        email: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> IssuedToken:
        """Create a longer-lived refresh token."""
        return self._sign(REFRESH, user_id, email, role, expires_delta)

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def _verify(self, token: str, expected_type: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secrets[expected_type],
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except JWTError as exc:
            raise InvalidSignature("Token signature or claims are invalid") from exc

        if payload.get("type") != expected_type:
            raise InvalidSignature(
                f"Invalid token type. Expected {expected_type}, got {payload.get('type')}"
            )

        try:
            return TokenClaims.from_payload(payload)
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            raise InvalidSignature("Token claims are missing or out of range") from exc

    def verify_access(self, token: str) -> TokenClaims:
        """
        Verify and decode an access token.

        Raises:
            InvalidSignature: Bad signature, malformed token or wrong type
            TokenExpired: Token expiry has passed
        """
        return self._verify(token, ACCESS)

    def verify_refresh(self, token: str) -> TokenClaims:
        """
        Verify and decode a refresh token.

        Raises:
            InvalidSignature: Bad signature, malformed token or wrong type
            TokenExpired: Token expiry has passed
        """
        return self._verify(token, REFRESH)

    @staticmethod
    def decode_unverified(token: str) -> Optional[TokenClaims]:
        """
        Decode token without verification.
        Returns None if token is malformed.

        ⚠️ Do NOT use this for authentication - it is only a lookup aid for
        finding which session an (possibly expired) token belongs to.
        """
        try:
            return TokenClaims.from_payload(jwt.get_unverified_claims(token))
        except (JWTError, KeyError, TypeError, ValueError, OverflowError, OSError):
            return None

    @staticmethod
    def extract_bearer(header: Optional[str]) -> Optional[str]:
        """Extract the token from an `Authorization: Bearer <token>` header value."""
        if not header:
            return None
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer":
            return None
        return token.strip() or None
