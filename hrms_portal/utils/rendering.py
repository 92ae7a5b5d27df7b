"""Template rendering helpers"""

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

def render_page(
    request: Request,
    name: str,
    session: SessionController,
    notifier: Notifier,
    status_code: int = 200,
    **context
):
    """Render a page with the session user and pending toasts."""
    context.update(
        user=session.user,
        toasts=notifier.pop_all(),
        check_interval=request.app.state.settings.TOKEN_CHECK_INTERVAL,
    )
    return templates.TemplateResponse(request, name, context, status_code=status_code)
