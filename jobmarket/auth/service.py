"""
Authentication service.

Orchestrates registration, login, token refresh and logout over the
token codec, the password hasher and the session store. The service keeps
no state of its own; a new instance is built per request around that
request's database session.

Session lifecycle for one refresh token:

    issued -> active (stored, unexpired) -> revoked (deleted)
                                         -> expired (past TTL, pruned at next login)

There is no way back to active.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.jwt import TokenCodec, TokenError
from jobmarket.auth.password import PasswordHasher
from jobmarket.auth.sessions import SessionStore
from jobmarket.core.errors import (
    AccountDeactivated,
    DuplicateEmail,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFound,
    SessionNotFound,
    ValidationFailed,
)
from jobmarket.core.repositories import UserRepository, parse_id
from jobmarket.models.user import User, UserRole
from jobmarket.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class AuthResult:
    user: User
    tokens: TokenPair


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None


class AuthService:
    """Session state machine over the user store."""

    def __init__(
        self,
        db: AsyncSession,
        codec: TokenCodec,
        hasher: PasswordHasher,
        rotate_refresh_tokens: bool = False,
        max_sessions_per_user: Optional[int] = None,
    ):
        self.db = db
        self.codec = codec
        self.hasher = hasher
        self.users = UserRepository(db)
        self.sessions = SessionStore(db)
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self.max_sessions_per_user = max_sessions_per_user

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _start_session(self, user: User) -> TokenPair:
        """Issue a token pair and record the refresh token as active."""
        role = user.role.value
        access = self.codec.sign_access(user.id, user.email, role)
        refresh = self.codec.sign_refresh(user.id, user.email, role)

        await self.sessions.add(user.id, refresh.token, refresh.expires_at)
        if self.max_sessions_per_user:
            evicted = await self.sessions.evict_oldest(user.id, self.max_sessions_per_user)
            if evicted:
                logger.info("Evicted %d oldest session(s) for user %s", evicted, user.id)

        return TokenPair(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_in=self.codec.access_expires_in,
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def register(self, data: RegisterRequest) -> AuthResult:
        """
        Create a user and open its first session.

        Raises:
            DuplicateEmail: If the email is already registered
        """
        if await self.users.find_user_by_email(data.email):
            raise DuplicateEmail()

        role = data.role or UserRole.APPLICANT
        fields = {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "email": data.email,
            "password_hash": await self.hasher.hash_async(data.password),
            "role": role,
            "phone": data.phone,
        }
        if role == UserRole.EMPLOYER and data.company_name:
            fields["company_name"] = data.company_name

        try:
            user = await self.users.create_user(**fields)
            tokens = await self._start_session(user)
            await self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email
            await self.db.rollback()
            raise DuplicateEmail() from exc

        logger.info("Registered user %s as %s", user.id, role.value)
        return AuthResult(user=user, tokens=tokens)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password and open a new session.

        Unknown email and wrong password raise the same error so callers
        cannot probe which accounts exist.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccountDeactivated: Credentials are right but the account is inactive
        """
        user = await self.users.find_user_by_email(email)
        # Unknown emails still run one verify against a throwaway hash
        password_hash = user.password_hash if user else self.hasher.dummy_hash
        if not await self.hasher.verify_async(password, password_hash) or not user:
            logger.warning("Failed login attempt%s", f" for user {user.id}" if user else "")
            raise InvalidCredentials()

        if not user.is_active:
            logger.warning("Login attempt on deactivated account %s", user.id)
            raise AccountDeactivated()

        # Upgrade the stored hash if the Argon2 parameters were raised
        if self.hasher.needs_rehash(user.password_hash):
            user.password_hash = await self.hasher.hash_async(password)

        await self.sessions.prune_expired(user.id)
        tokens = await self._start_session(user)
        await self.db.commit()

        logger.info("User %s logged in", user.id)
        return AuthResult(user=user, tokens=tokens)

    async def refresh(self, refresh_token: str) -> RefreshResult:
        """
        Exchange an active refresh token for a new access token.

        A valid signature is not enough: the token must still be present in
        the user's sessions, so a revoked token is rejected even before it
        expires.

        Raises:
            InvalidOrExpiredToken: Bad signature, wrong type or expired
            SessionNotFound: User gone or inactive, or the session was revoked
        """
        try:
            claims = self.codec.verify_refresh(refresh_token)
        except TokenError as exc:
            logger.info("Refresh rejected: %s", type(exc).__name__)
            raise InvalidOrExpiredToken() from exc

        user_id = parse_id(claims.user_id)
        user = await self.users.find_user_by_id(user_id) if user_id is not None else None
        if not user or not user.is_active or not await self.sessions.contains(user.id, refresh_token):
            logger.info("Refresh rejected: no active session for user %s", claims.user_id)
            raise SessionNotFound()

        access = self.codec.sign_access(user.id, user.email, user.role.value)

        if not self.rotate_refresh_tokens:
            return RefreshResult(access_token=access.token, expires_in=self.codec.access_expires_in)

        # Rotation: the presented token is retired and replaced in one transaction
        replacement = self.codec.sign_refresh(user.id, user.email, user.role.value)
        if not await self.sessions.remove(user.id, refresh_token):
            # Another request rotated this token first
            await self.db.rollback()
            raise SessionNotFound()
        await self.sessions.add(user.id, replacement.token, replacement.expires_at)
        await self.db.commit()

        return RefreshResult(
            access_token=access.token,
            expires_in=self.codec.access_expires_in,
            refresh_token=replacement.token,
        )

    async def logout(self, refresh_token: str) -> bool:
        """
        Revoke the session of a refresh token.

        The token is decoded without verification so that an expired token
        can still be logged out. Succeeds whether or not a session was
        removed.

        Raises:
            ValidationFailed: If the token cannot be decoded at all

        Returns:
            True if a session was removed (for logging only)
        """
        claims = self.codec.decode_unverified(refresh_token)
        if claims is None:
            raise ValidationFailed("Invalid refresh token")

        user_id = parse_id(claims.user_id)
        if user_id is None:
            return False

        removed = await self.sessions.remove(user_id, refresh_token)
        await self.db.commit()

        if removed:
            logger.info("User %s logged out", user_id)
        return removed

    async def logout_all(self, user_id: int) -> int:
        """Revoke every session of an authenticated user."""
        removed = await self.sessions.remove_all(user_id)
        await self.db.commit()
        logger.info("User %s logged out from all devices (%d sessions)", user_id, removed)
        return removed

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            NotFound: If the user does not exist
            ValidationFailed: If the current password is wrong
        """
        user = await self.users.find_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")

        if not await self.hasher.verify_async(current_password, user.password_hash):
            raise ValidationFailed("Current password is incorrect")

        password_hash = await self.hasher.hash_async(new_password)
        await self.users.update_user(user_id, password_hash=password_hash)
        await self.db.commit()
        logger.info("User %s changed password", user_id)

    async def deactivate(self, user_id: int) -> None:
        """Deactivate the account and revoke all of its sessions."""
        user = await self.users.update_user(user_id, is_active=False)
        if not user:
            raise NotFound("User not found")
        await self.sessions.remove_all(user_id)
        await self.db.commit()
        logger.info("User %s deactivated", user_id)
