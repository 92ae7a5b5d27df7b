from fastapi import Depends, Request

from hrms_portal.config.settings import Settings
from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController
from hrms_portal.core.state import BrowserStorage
from hrms_portal.services.api_client import ApiClient
from hrms_portal.services.auth_service import AuthService
from hrms_portal.services.payroll_service import PayrollService

class RedirectRequired(Exception):
    """The current session may not view the requested path"""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_storage(request: Request) -> BrowserStorage:
    return request.app.state.registry.for_browser(request.state.browser_id)

def get_notifier(storage: BrowserStorage = Depends(get_storage)) -> Notifier:
    return Notifier(storage)

def get_session(
    request: Request,
    storage: BrowserStorage = Depends(get_storage),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings)
) -> SessionController:
    """Session of the requesting browser, loaded from its storage."""
    controller = SessionController(
        storage,
        notifier,
        buffer_ms=settings.TOKEN_EXPIRY_BUFFER_MS
    )
    controller.load(request.url.path)
    return controller

def guarded_session(
    request: Request,
    session: SessionController = Depends(get_session)
) -> SessionController:
    """Loaded session, or a redirect when the path is off limits for it."""
    location = session.guard(request.url.path)
    if location:
        raise RedirectRequired(location)
    return session

def get_api_client(
    request: Request,
    session: SessionController = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> ApiClient:
    return ApiClient(
        settings.API_URL,
        token=session.token,
        session=request.app.state.http_session,
        timeout=settings.REQUEST_TIMEOUT,
        buffer_ms=settings.TOKEN_EXPIRY_BUFFER_MS
    )

def get_auth_service(client: ApiClient = Depends(get_api_client)) -> AuthService:
    return AuthService(client)

def get_payroll_service(
    client: ApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier)
) -> PayrollService:
    return PayrollService(client, notifier)
