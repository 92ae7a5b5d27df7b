from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
import logging

from hrms_portal.config.settings import Settings
from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import LOGIN_PATH, SessionController
from hrms_portal.core.state import BrowserStorage
from hrms_portal.dependencies import (
    get_auth_service,
    get_notifier,
    get_session,
    get_settings,
    get_storage,
    guarded_session,
)
from hrms_portal.services.api_client import ApiError
from hrms_portal.services.auth_service import AuthService
from hrms_portal.utils.rendering import render_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

# ============ Login ============

@router.get("/login", response_class=HTMLResponse)
def login_page(
    request: Request,
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier)
):
    """Login form. Signed-in users are sent to their dashboard by the guard."""
    return render_page(request, "login.html", session, notifier, email="")

@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Exchange credentials with the backend and start a session.

    A 401 from the backend here means wrong credentials, not an expired
    session, so it is reported on the form and never triggers logout.
    """
    email = email.strip()
    if not email or not password:
        notifier.error("Email and password are required")
        return render_page(
            request, "login.html", session, notifier,
            status_code=status.HTTP_400_BAD_REQUEST, email=email
        )

    try:
        result = auth_service.login(email, password)
    except ApiError as e:
        logger.warning(f"Login failed for {email}: status={e.status_code}")
        notifier.error(e.detail or "Login failed")
        if e.status_code and 400 <= e.status_code < 500:
            status_code = e.status_code
        else:
            status_code = status.HTTP_502_BAD_GATEWAY
        return render_page(
            request, "login.html", session, notifier,
            status_code=status_code, email=email
        )

    session.login(result.user, result.token)

    home = session.home_route()
    if home == LOGIN_PATH:
        logger.warning(f"User {result.user.id} has no dashboard for role '{result.user.role}'")
        session.logout()
        notifier.error("Your account does not have access to this portal")
        return render_page(
            request, "login.html", session, notifier,
            status_code=status.HTTP_403_FORBIDDEN, email=email
        )

    notifier.success(f"Welcome back, {result.user.name}!")
    return RedirectResponse(home, status_code=status.HTTP_303_SEE_OTHER)

# ============ Logout ============

@router.post("/logout")
def logout(session: SessionController = Depends(get_session)):
    session.logout()
    return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)

# ============ Session Status ============

@router.get("/session/status")
def session_status(
    path: str = "/",
    storage: BrowserStorage = Depends(get_storage),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings)
):
    """
    Periodic check polled by open pages.

    Args:
        path: Path of the page the browser is showing

    Returns:
        Dictionary with the session state and where the page should go
    """
    controller = SessionController(
        storage,
        notifier,
        buffer_ms=settings.TOKEN_EXPIRY_BUFFER_MS
    )
    expired = controller.check_expiry(path)
    controller.load(path)

    return {
        "authenticated": controller.is_authenticated,
        "role": controller.role,
        "expired": expired,
        "redirect": controller.guard(path),
    }
