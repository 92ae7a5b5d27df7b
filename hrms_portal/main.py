from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import RedirectResponse
import logging
import requests

from hrms_portal.config.settings import Settings, settings as default_settings
from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import LOGIN_PATH, SessionController
from hrms_portal.core.state import StorageRegistry, new_browser_id
from hrms_portal.core.watcher import TokenExpiryWatcher
from hrms_portal.database.db import build_engine, build_session_factory, init_db
from hrms_portal.dependencies import RedirectRequired, get_session
from hrms_portal.routes import admin, auth, employee
from hrms_portal.services.api_client import SessionExpiredError
from hrms_portal.utils.rendering import render_page

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

def create_app(
    settings: Optional[Settings] = None,
    http_session: Optional[requests.Session] = None
) -> FastAPI:
    """
    Build the portal application.

    Args:
        settings: Settings to run with (defaults to the environment)
        http_session: Session used for backend calls (defaults to a new one)
    """
    settings = settings or default_settings

    engine = build_engine(settings.STORAGE_DATABASE_URL)
    registry = StorageRegistry(build_session_factory(engine))
    watcher = TokenExpiryWatcher(
        registry,
        interval=settings.TOKEN_CHECK_INTERVAL,
        buffer_ms=settings.TOKEN_EXPIRY_BUFFER_MS
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            init_db(engine)
            watcher.start()
            logger.info(f"✅ {settings.API_TITLE} started, backend at {settings.API_URL}")
        except Exception as e:
            logger.error(f"❌ Failed to start application: {str(e)}")
            raise
        yield
        await watcher.stop()
        app.state.http_session.close()
        engine.dispose()
        logger.info("❌ Application shutdown")

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description="HR and payroll administration portal",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.watcher = watcher
    app.state.http_session = http_session or requests.Session()

    # ============ Browser Identity ============

    @app.middleware("http")
    async def assign_browser_id(request: Request, call_next):
        browser_id = request.cookies.get(settings.BROWSER_COOKIE_NAME)
        is_new = not browser_id
        request.state.browser_id = browser_id or new_browser_id()

        response = await call_next(request)

        if is_new:
            response.set_cookie(
                settings.BROWSER_COOKIE_NAME,
                request.state.browser_id,
                max_age=60 * 60 * 24 * 365,
                httponly=True,
                samesite="lax"
            )
        return response

    # ============ Error Handlers ============

    @app.exception_handler(RedirectRequired)
    async def redirect_required_handler(request: Request, exc: RedirectRequired):
        return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(SessionExpiredError)
    def session_expired_handler(request: Request, exc: SessionExpiredError):
        """
        Single place where an expired or rejected credential turns into
        navigation: log out and go to the login view, unless already there.
        """
        storage = request.app.state.registry.for_browser(request.state.browser_id)
        notifier = Notifier(storage)
        controller = SessionController(
            storage,
            notifier,
            buffer_ms=settings.TOKEN_EXPIRY_BUFFER_MS
        )

        if controller.expire(request.url.path):
            return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)

        controller.load(request.url.path)
        notifier.error(exc.detail or "Login failed")
        return render_page(
            request, "login.html", controller, notifier,
            status_code=status.HTTP_401_UNAUTHORIZED, email=""
        )

    # ============ Routers ============

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(employee.router)

    # ============ Health Check ============

    @app.get("/health", tags=["health"])
    async def health_check():
        return {
            "status": "healthy",
            "service": settings.API_TITLE,
            "version": settings.API_VERSION,
            "watcher_running": watcher.running
        }

    # ============ Root Dispatcher ============

    @app.get("/", tags=["root"])
    def root(session: SessionController = Depends(get_session)):
        """Send the browser to the dashboard of its role, or to login."""
        return RedirectResponse(session.home_route(), status_code=status.HTTP_303_SEE_OTHER)

    return app

app = create_app()

def run():
    import uvicorn

    logger.info(f"Starting portal on {default_settings.HOST}:{default_settings.PORT}")

    uvicorn.run(
        "hrms_portal.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level="info"
    )

if __name__ == "__main__":
    run()
