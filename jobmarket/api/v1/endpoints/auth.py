"""
Authentication endpoints.

Provides:
- Registration (profile → user + first session)
- Login (email/password → JWT tokens)
- Token refresh
- Logout (one session) and logout from all devices
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from jobmarket.auth.dependencies import (
    Identity,
    authenticate,
    get_auth_service,
    get_client_ip,
)
from jobmarket.auth.service import AuthResult, AuthService
from jobmarket.core.errors import MissingToken, ValidationFailed
from jobmarket.schemas.auth import (
    AuthData,
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshData,
    RefreshResponse,
    RegisterRequest,
    TokenRequest,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        data=AuthData(
            user=UserSummary.model_validate(result.user),
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=result.tokens.expires_in,
        ),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new applicant or employer.

    Returns the new user together with its first access/refresh token pair.
    """
    result = await service.register(data)
    return auth_response(result, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate user and return JWT tokens.

    Every login opens an independent session, so several devices can be
    signed in at once.
    """
    logger.debug("Login attempt from %s", get_client_ip(request))
    result = await service.login(login_data.email, login_data.password)
    return auth_response(result, "Login successful")


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_token(
    token_data: Optional[TokenRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """Exchange an active refresh token for a new access token."""
    if not token_data or not token_data.refresh_token:
        raise MissingToken("Refresh token is required")

    result = await service.refresh(token_data.refresh_token)
    return RefreshResponse(
        data=RefreshData(
            access_token=result.access_token,
            expires_in=result.expires_in,
            refresh_token=result.refresh_token,
        )
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token_data: Optional[TokenRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Revoke the session of a refresh token.

    Always succeeds once a token is supplied, whether or not the session
    still existed, so retries are safe and session existence is not leaked.
    """
    if not token_data or not token_data.refresh_token:
        raise ValidationFailed("Refresh token is required")

    await service.logout(token_data.refresh_token)
    return MessageResponse(message="Logout successful")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    identity: Identity = Depends(authenticate),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke every session of the current user. Requires an access token."""
    await service.logout_all(identity.user_id)
    return MessageResponse(message="Logged out from all devices successfully")
