"""Browser-facing login and account settings pages."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .credentials import CredentialService
from .errors import AccountError, NotFoundError
from .models import ProfileView
from .profiles import ProfileService
from .sessions import SESSION_COOKIE_NAME, SessionManager

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

logger = logging.getLogger("selfserve.web")


def register_ui_routes(
    app: FastAPI,
    *,
    profiles: ProfileService,
    credentials: CredentialService,
    session_manager: SessionManager,
    secure_cookies: bool = True,
) -> None:
    """Register the login and account pages on ``app``."""

    if not secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    router = APIRouter()

    def _current_user_id(request: Request) -> Optional[str]:
        return session_manager.resolve(request.cookies.get(SESSION_COOKIE_NAME))

    def _issue_session_cookie(response, token: str) -> None:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            token,
            max_age=session_manager.cookie_max_age,
            secure=secure_cookies,
            httponly=True,
            samesite="lax",
            path="/",
        )

    def _clear_session_cookie(request: Request, response) -> None:
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if token:
            session_manager.destroy(token)
        response.delete_cookie(SESSION_COOKIE_NAME, path="/")

    def _redirect(request: Request, name: str) -> RedirectResponse:
        return RedirectResponse(request.url_for(name), status_code=status.HTTP_303_SEE_OTHER)

    def _render_login(
        request: Request,
        *,
        email: str = "",
        error: Optional[str] = None,
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"email": email, "error": error},
            status_code=status_code,
        )

    def _render_account(
        request: Request,
        profile: ProfileView,
        *,
        form: Optional[Dict[str, str]] = None,
        message: Optional[str] = None,
        error: Optional[str] = None,
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        values = {
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "email": profile.email,
        }
        if form:
            values.update(form)
        return templates.TemplateResponse(
            request,
            "account.html",
            {
                "profile": profile,
                "form": values,
                "message": message,
                "error": error,
                "password_min_length": credentials.min_length,
            },
            status_code=status_code,
        )

    async def _load_profile(request: Request) -> Optional[ProfileView]:
        user_id = _current_user_id(request)
        if user_id is None:
            return None
        try:
            return await profiles.get_profile(user_id)
        except NotFoundError:
            return None

    def _signed_out(request: Request) -> RedirectResponse:
        response = _redirect(request, "ui_login")
        _clear_session_cookie(request, response)
        return response

    @router.get("/", name="ui_home")
    async def homepage(request: Request):
        if _current_user_id(request) is None:
            return _redirect(request, "ui_login")
        return _redirect(request, "ui_account")

    @router.get("/login", response_class=HTMLResponse, name="ui_login")
    async def login_form(request: Request):
        if _current_user_id(request) is not None:
            return _redirect(request, "ui_account")
        return _render_login(request)

    @router.post("/login", name="ui_login_submit")
    async def login_submit(request: Request, email: str = Form(""), password: str = Form("")):
        if not email.strip() or not password:
            return _render_login(
                request,
                email=email,
                error="Please provide both email and password.",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        user = await credentials.authenticate(email, password)
        if user is None:
            logger.warning("Failed web login attempt for %s", email)
            return _render_login(
                request,
                email=email,
                error="Invalid email or password. Please try again.",
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        token = session_manager.create(user.id)
        logger.info("User %s signed in", user.id)
        response = _redirect(request, "ui_account")
        _issue_session_cookie(response, token)
        return response

    @router.get("/logout", name="ui_logout")
    async def logout(request: Request):
        return _signed_out(request)

    @router.get("/account", response_class=HTMLResponse, name="ui_account")
    async def account(request: Request):
        profile = await _load_profile(request)
        if profile is None:
            return _signed_out(request)
        return _render_account(request, profile)

    @router.post("/account/profile", name="ui_update_profile")
    async def update_profile(
        request: Request,
        first_name: str = Form(""),
        last_name: str = Form(""),
        email: str = Form(""),
    ):
        profile = await _load_profile(request)
        if profile is None:
            return _signed_out(request)

        try:
            updated = await profiles.update_profile(
                profile.id,
                first_name=first_name,
                last_name=last_name,
                email=email,
            )
        except AccountError as exc:
            return _render_account(
                request,
                profile,
                form={"first_name": first_name, "last_name": last_name, "email": email},
                error=exc.message,
                status_code=exc.status_code,
            )

        return _render_account(request, updated, message="Profile updated successfully.")

    @router.post("/account/password", name="ui_change_password")
    async def change_password(
        request: Request,
        current_password: str = Form(""),
        new_password: str = Form(""),
        confirm_password: str = Form(""),
    ):
        profile = await _load_profile(request)
        if profile is None:
            return _signed_out(request)

        if new_password != confirm_password:
            return _render_account(
                request,
                profile,
                error="Passwords do not match",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = await credentials.change_password(profile.id, current_password, new_password)
        except AccountError as exc:
            return _render_account(request, profile, error=exc.message, status_code=exc.status_code)

        revoked = session_manager.revoke_user(
            profile.id, keep=request.cookies.get(SESSION_COOKIE_NAME)
        )
        if revoked:
            logger.info("Signed out %d other session(s) for user %s", revoked, profile.id)

        try:
            profile = await profiles.get_profile(profile.id)
        except NotFoundError:
            return _signed_out(request)
        return _render_account(request, profile, message=result.message)

    app.include_router(router)


__all__ = ["register_ui_routes", "TEMPLATE_DIR"]
