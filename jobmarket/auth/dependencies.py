"""
FastAPI dependencies for authentication and authorization.

The authorization pipeline is a chain of dependencies, each of which
either returns a value to the next stage or raises a typed error:

    authenticate  ->  RoleChecker(roles)  ->  OwnershipChecker(loader)
       Identity          Identity             RequestContext(identity, resource)

`optional_authenticate` is the lenient variant for public endpoints.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.jwt import TokenCodec, TokenError
from jobmarket.auth.password import PasswordHasher
from jobmarket.auth.service import AuthService
from jobmarket.core.config import Settings
from jobmarket.core.database import get_db
from jobmarket.core.errors import AppError, Forbidden, MissingToken, NotFound, Unauthenticated
from jobmarket.core.repositories import UserRepository, parse_id
from jobmarket.models.user import UserRole

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Identity(BaseModel):
    """Minimal read-only view of the authenticated user."""

    user_id: int
    email: str
    role: UserRole
    first_name: str
    last_name: str

    class Config:
        frozen = True


@dataclass(frozen=True)
class RequestContext(Generic[T]):
    """What the pipeline hands to a handler: who is asking, and for what."""

    identity: Optional[Identity] = None
    resource: Optional[T] = None


# =============================================================================
# Application components
# =============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        db,
        codec,
        hasher,
        rotate_refresh_tokens=settings.rotate_refresh_tokens,
        max_sessions_per_user=settings.max_sessions_per_user,
    )


# =============================================================================
# Stage 1: authentication
# =============================================================================

async def authenticate(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """
    Resolve the caller from the `Authorization: Bearer <token>` header.

    Raises:
        MissingToken: If no bearer token is present
        Unauthenticated: If the token is invalid or expired, or the user
            no longer exists or is deactivated
    """
    token = codec.extract_bearer(request.headers.get("Authorization"))
    if not token:
        raise MissingToken()

    try:
        claims = codec.verify_access(token)
    except TokenError as exc:
        logger.debug("Access token rejected: %s", type(exc).__name__)
        raise Unauthenticated() from exc

    user_id = parse_id(claims.user_id)
    if user_id is None:
        raise Unauthenticated()

    user = await UserRepository(db).find_user_by_id(user_id)
    if not user:
        raise Unauthenticated("User not found")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated")

    return Identity(
        user_id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
    )


async def optional_authenticate(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> Optional[Identity]:
    """
    Try to resolve the caller, but return None instead of rejecting.
    Useful for public endpoints that personalize output for signed-in users.
    """
    try:
        return await authenticate(request, db, codec)
    except AppError:
        return None


# =============================================================================
# Stage 2: role check
# =============================================================================

class RoleChecker:
    """
    Class-based dependency for role checking.

    Usage:
        require_employer = RoleChecker([UserRole.EMPLOYER])

        @router.post("/")
        async def endpoint(identity: Identity = Depends(require_employer)):
            ...
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = frozenset(allowed_roles)

    async def __call__(self, identity: Identity = Depends(authenticate)) -> Identity:
        if identity.role not in self.allowed_roles:
            roles = ", ".join(sorted(r.value for r in self.allowed_roles))
            raise Forbidden(f"Forbidden: This action requires one of the following roles: {roles}.")
        return identity


require_applicant = RoleChecker([UserRole.APPLICANT])
require_employer = RoleChecker([UserRole.EMPLOYER])


# =============================================================================
# Stage 3: ownership check
# =============================================================================

ResourceLoader = Callable[[AsyncSession, int], Awaitable[Optional[Any]]]


class OwnershipChecker(Generic[T]):
    """
    Load the resource named by a path parameter and require that the caller owns it.

    Place the role check first in the route's `dependencies` so that it runs
    before the resource is loaded; both stages share the cached identity.

    Usage:
        job_owner = OwnershipChecker(load_job, owner_attr="employer_id", path_param="job_id")

        @router.put("/{job_id}", dependencies=[Depends(require_employer)])
        async def update(ctx: RequestContext = Depends(job_owner)):
            ctx.resource  # already loaded, no second lookup needed
    """

    def __init__(
        self,
        loader: ResourceLoader,
        owner_attr: str,
        path_param: str = "id",
        resource_name: str = "Resource",
    ):
        self.loader = loader
        self.owner_attr = owner_attr
        self.path_param = path_param
        self.resource_name = resource_name

    async def __call__(
        self,
        request: Request,
        identity: Identity = Depends(authenticate),
        db: AsyncSession = Depends(get_db),
    ) -> RequestContext[T]:
        raw_id = request.path_params.get(self.path_param)
        resource_id = parse_id(raw_id)
        resource = await self.loader(db, resource_id) if resource_id is not None else None
        if resource is None:
            raise NotFound(f"{self.resource_name} not found")

        if getattr(resource, self.owner_attr) != identity.user_id:
            logger.warning(
                "User %s denied access to %s %s",
                identity.user_id, self.resource_name.lower(), resource_id,
            )
            raise Forbidden(
                f"Forbidden: You are not authorized to modify this {self.resource_name.lower()}."
            )

        return RequestContext(identity=identity, resource=resource)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.
    Handles X-Forwarded-For header for proxied requests.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
