"""JSON endpoints for profile and password self-service."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, ConfigDict, Field

from .credentials import CredentialService
from .errors import AccountError, ValidationError
from .models import ProfileView
from .profiles import ProfileService
from .sessions import SESSION_COOKIE_NAME, SessionManager

logger = logging.getLogger("selfserve.api")


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    name: str
    role: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class MessageResponse(BaseModel):
    message: str


def profile_to_response(profile: ProfileView) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        role=profile.role,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def build_auth_dependency(credentials: CredentialService, session_manager: SessionManager):
    """Resolve the caller from the session cookie or HTTP Basic credentials."""

    basic_security = HTTPBasic(auto_error=False)

    async def dependency(
        request: Request,
        basic: HTTPBasicCredentials | None = Depends(basic_security),
    ) -> str:
        user_id = session_manager.resolve(request.cookies.get(SESSION_COOKIE_NAME))
        if user_id is not None:
            return user_id

        if basic is not None:
            user = await credentials.authenticate(basic.username, basic.password)
            if user is not None:
                return user.id
            logger.warning("Failed API authentication for %s", basic.username)

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

    return dependency


def register_api_routes(
    app: FastAPI,
    *,
    profiles: ProfileService,
    credentials: CredentialService,
    current_user: Callable[..., object],
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    router = APIRouter(prefix="/api")

    @router.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @router.get("/users/profile", response_model=ProfileResponse)
    async def read_profile(user_id: str = Depends(current_user)) -> ProfileResponse:
        profile = await profiles.get_profile(user_id)
        return profile_to_response(profile)

    @router.put("/users/profile", response_model=ProfileResponse)
    async def update_profile(
        payload: UpdateProfileRequest,
        user_id: str = Depends(current_user),
    ) -> ProfileResponse:
        profile = await profiles.update_profile(
            user_id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
        )
        return profile_to_response(profile)

    @router.put("/users/password", response_model=MessageResponse)
    async def change_password(
        payload: ChangePasswordRequest,
        user_id: str = Depends(current_user),
    ) -> MessageResponse:
        result = await credentials.change_password(
            user_id,
            payload.current_password,
            payload.new_password,
        )
        return MessageResponse(message=result.message)

    app.include_router(router)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AccountError)
    async def handle_account_error(_: object, exc: AccountError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        # Only the field locations are logged; pydantic errors carry the rejected input.
        fields = sorted(
            ".".join(str(part) for part in item["loc"][1:]) or "body" for item in exc.errors()
        )
        logger.info("Rejected malformed request to %s: %s", request.url.path, ", ".join(fields))
        error = ValidationError("Malformed request body")
        return JSONResponse(status_code=error.status_code, content={"detail": error.message})


__all__ = [
    "ChangePasswordRequest",
    "ProfileResponse",
    "UpdateProfileRequest",
    "build_auth_dependency",
    "profile_to_response",
    "register_api_routes",
    "register_error_handlers",
]
